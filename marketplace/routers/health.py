"""
Health check router.

Besides database reachability and the migration revision, the check
verifies that the opportunity_status catalog holds exactly the rows
seeded from marketplace.core.status.STATUS_IDS.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional
from uuid import UUID

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.status import STATUS_IDS
from marketplace.db.session import get_db
from marketplace.models.lookups import OpportunityStatus

logger = logging.getLogger(__name__)

router = APIRouter()


def _migration_head() -> Optional[str]:
    project_root = Path(__file__).resolve().parents[2]
    ini_path = project_root / "alembic.ini"
    script_location = project_root / "alembic"
    if not ini_path.exists() or not script_location.exists():
        return None

    config = Config(str(ini_path))
    config.set_main_option("script_location", str(script_location))
    return ScriptDirectory.from_config(config).get_current_head()


async def _migration_current(db: AsyncSession) -> Optional[str]:
    try:
        result = await db.execute(text("SELECT version_num FROM alembic_version"))
    except SQLAlchemyError:
        # no alembic_version table: schema created outside of migrations
        await db.rollback()
        return None
    return result.scalar_one_or_none()


def status_catalog_problems(rows: Dict[UUID, str]) -> List[str]:
    """Compare stored status rows (id -> name) with the expected catalog."""
    problems = []
    for status, status_id in STATUS_IDS.items():
        stored = rows.get(status_id)
        if stored is None:
            problems.append(f"missing status {status.value} ({status_id})")
        elif stored != status.value:
            problems.append(f"status {status_id} is named {stored!r}, expected {status.value!r}")
    for status_id in rows.keys() - set(STATUS_IDS.values()):
        problems.append(f"unexpected status row {status_id}")
    return problems


async def _status_catalog(db: AsyncSession) -> List[str]:
    result = await db.execute(select(OpportunityStatus.id, OpportunityStatus.name))
    return status_catalog_problems({row.id: row.name for row in result})


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Database, migration revision and status catalog checks."""

    db_ok = False
    migration_current: Optional[str] = None
    status_problems: List[str] = []

    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        logger.warning("Health check: database unreachable", exc_info=True)

    if db_ok:
        migration_current = await _migration_current(db)
        try:
            status_problems = await _status_catalog(db)
        except SQLAlchemyError:
            logger.warning("Health check: status catalog unreadable", exc_info=True)
            await db.rollback()
            status_problems = ["opportunity_status table unreadable"]
        if status_problems:
            logger.warning("Health check: status catalog mismatch: %s", "; ".join(status_problems))

    migration_head = _migration_head()

    return {
        "api_ok": True,
        "db_ok": db_ok,
        "alembic_head_ok": bool(migration_current and migration_head and migration_current == migration_head),
        "alembic_current": migration_current,
        "alembic_head": migration_head,
        "statuses_ok": db_ok and not status_problems,
        "status_problems": status_problems,
    }
