"""
Pytest configuration and shared fixtures.

Database tests run against a fresh in-memory SQLite database per test,
created from the ORM metadata and seeded with a small reference catalog.
"""

import os

# Must be set before marketplace.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-marketplace-suite")

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import marketplace.models  # noqa: F401
from marketplace.core.cache import lookup_cache
from marketplace.core.permissions import Roles
from marketplace.core.security import Principal, create_access_token
from marketplace.core.status import STATUS_IDS
from marketplace.db.base import Base
from marketplace.db.session import get_db
from marketplace.main import app
from marketplace.models import (
    Country,
    Language,
    OpportunityCategory,
    OpportunityDifficulty,
    OpportunityStatus,
    OpportunityType,
    Organization,
    Skill,
    TimeInterval,
)
from marketplace.schemas.opportunity import OpportunityRequest
from marketplace.services.opportunity_service import OpportunityService


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no database")
    config.addinivalue_line("markers", "db: runs against the in-memory SQLite database")
    config.addinivalue_line("markers", "server: drives the FastAPI app in-process")


@dataclass
class ReferenceData:
    """Ids of the seeded reference rows, keyed by a short name."""

    organizations: Dict[str, uuid.UUID] = field(default_factory=dict)
    types: Dict[str, uuid.UUID] = field(default_factory=dict)
    difficulties: Dict[str, uuid.UUID] = field(default_factory=dict)
    intervals: Dict[str, uuid.UUID] = field(default_factory=dict)
    categories: Dict[str, uuid.UUID] = field(default_factory=dict)
    countries: Dict[str, uuid.UUID] = field(default_factory=dict)
    languages: Dict[str, uuid.UUID] = field(default_factory=dict)
    skills: Dict[str, uuid.UUID] = field(default_factory=dict)


@pytest.fixture(autouse=True)
def clear_lookup_cache():
    lookup_cache.clear()
    yield
    lookup_cache.clear()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def reference_data(session_maker) -> ReferenceData:
    data = ReferenceData()

    def add(session, bucket, key, model, **fields):
        row = model(id=uuid.uuid4(), **fields)
        session.add(row)
        bucket[key] = row.id

    async with session_maker() as session:
        for status, status_id in STATUS_IDS.items():
            session.add(OpportunityStatus(id=status_id, name=status.value))

        add(session, data.organizations, "acme", Organization, name="Acme Learning Foundation")
        add(session, data.organizations, "green", Organization, name="Green Fields Cooperative")

        add(session, data.types, "task", OpportunityType, name="Task")
        add(session, data.types, "learning", OpportunityType, name="Learning")

        add(session, data.difficulties, "beginner", OpportunityDifficulty, name="Beginner")
        add(session, data.intervals, "week", TimeInterval, name="Week")

        add(session, data.categories, "technology", OpportunityCategory, name="Technology")
        add(session, data.categories, "agriculture", OpportunityCategory, name="Agriculture")

        add(session, data.countries, "za", Country, name="South Africa", code_alpha2="ZA", code_alpha3="ZAF", code_numeric="710")
        add(session, data.countries, "ke", Country, name="Kenya", code_alpha2="KE", code_alpha3="KEN", code_numeric="404")

        add(session, data.languages, "en", Language, name="English", code_alpha2="EN")
        add(session, data.languages, "fr", Language, name="French", code_alpha2="FR")

        add(session, data.skills, "python", Skill, name="Python Programming")
        add(session, data.skills, "carpentry", Skill, name="Carpentry")

        await session.commit()

    return data


@pytest.fixture
def admin() -> Principal:
    return Principal(username="admin@example.com", roles=frozenset({Roles.ADMIN}))


@pytest.fixture
def acme_admin(reference_data) -> Principal:
    return Principal(
        username="owner@acme.example.com",
        roles=frozenset({Roles.ORGANIZATION_ADMIN}),
        organization_ids=frozenset({reference_data.organizations["acme"]}),
    )


def build_request(reference_data: ReferenceData, **overrides) -> OpportunityRequest:
    """An insert request for an active Acme task that started yesterday."""
    now = datetime.now(timezone.utc)
    fields = {
        "title": f"Opportunity {uuid.uuid4().hex[:8]}",
        "description": "Help out for a few weeks",
        "type_id": reference_data.types["task"],
        "organization_id": reference_data.organizations["acme"],
        "difficulty_id": reference_data.difficulties["beginner"],
        "commitment_interval_id": reference_data.intervals["week"],
        "commitment_interval_count": 2,
        "date_start": now - timedelta(days=1),
        "date_end": now + timedelta(days=30),
        "post_as_active": True,
    }
    fields.update(overrides)
    return OpportunityRequest(**fields)


async def create_opportunity(db, reference_data: ReferenceData, principal: Principal, **overrides):
    return await OpportunityService(db).upsert(build_request(reference_data, **overrides), principal)


def auth_headers(principal: Principal) -> Dict[str, str]:
    token = create_access_token(principal.username, principal.roles, principal.organization_ids)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
