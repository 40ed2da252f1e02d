"""
Opportunity repository - database operations for Opportunity.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.core.status import EXPIRABLE_STATUSES, Status, status_id
from marketplace.models.opportunity import Opportunity


class OpportunityRepository:
    """Repository for Opportunity database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def query(self, include_children: bool = False) -> Select:
        """
        Base select for opportunities.

        With include_children the categories, countries, languages and
        skills are loaded as well, replacing whatever an earlier load left
        in the session.
        """
        query = select(Opportunity)
        if include_children:
            query = query.options(
                selectinload(Opportunity.categories),
                selectinload(Opportunity.countries),
                selectinload(Opportunity.languages),
                selectinload(Opportunity.skills),
            ).execution_options(populate_existing=True)
        return query

    @staticmethod
    def contains(value: str) -> ColumnElement[bool]:
        """Title, description, instructions or keywords contain value (any case)."""
        value = value.lower()
        return or_(
            func.lower(Opportunity.title).contains(value, autoescape=True),
            func.lower(Opportunity.description).contains(value, autoescape=True),
            func.lower(Opportunity.instructions).contains(value, autoescape=True),
            func.lower(Opportunity.keywords).contains(value, autoescape=True),
        )

    async def get_by_id(self, opportunity_id: UUID, include_children: bool = False) -> Optional[Opportunity]:
        result = await self.db.execute(
            self.query(include_children).where(Opportunity.id == opportunity_id)
        )
        return result.scalar_one_or_none()

    async def get_by_title(self, title: str, include_children: bool = False) -> Optional[Opportunity]:
        """Exact title match among opportunities that are not deleted."""
        result = await self.db.execute(
            self.query(include_children).where(
                Opportunity.title == title,
                Opportunity.status_id != status_id(Status.DELETED),
            )
        )
        return result.scalars().first()

    async def count(self, *criteria: ColumnElement[bool]) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Opportunity).where(*criteria)
        )
        return result.scalar_one()

    async def list(self, query: Select) -> List[Opportunity]:
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_expired(self, now: datetime, limit: int) -> List[Opportunity]:
        """Active / inactive opportunities whose end date has passed."""
        query = (
            self.query()
            .where(
                Opportunity.status_id.in_([status_id(s) for s in EXPIRABLE_STATUSES]),
                Opportunity.date_end <= now,
            )
            .order_by(Opportunity.date_end, Opportunity.id)
            .limit(limit)
        )
        return await self.list(query)

    async def list_expiring(self, start: datetime, end: datetime, offset: int, limit: int) -> List[Opportunity]:
        """Active / inactive opportunities ending within [start, end]."""
        query = (
            self.query()
            .where(
                Opportunity.status_id.in_([status_id(s) for s in EXPIRABLE_STATUSES]),
                Opportunity.date_end >= start,
                Opportunity.date_end <= end,
            )
            .order_by(Opportunity.date_end, Opportunity.id)
            .offset(offset)
            .limit(limit)
        )
        return await self.list(query)

    async def create(self, opportunity: Opportunity) -> Opportunity:
        self.db.add(opportunity)
        await self.db.flush()
        await self.db.refresh(opportunity)
        return opportunity

    async def update(self, opportunity: Opportunity) -> Opportunity:
        await self.db.flush()
        await self.db.refresh(opportunity)
        return opportunity
