"""
Lookup repository - database operations for reference tables.

One repository class serves every table built on LookupModel
(categories, statuses, types, countries, organizations, ...).
"""

from typing import Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.base_model import LookupModel

ModelT = TypeVar("ModelT", bound=LookupModel)


class LookupRepository(Generic[ModelT]):
    """Repository for reference table database operations."""

    def __init__(self, db: AsyncSession, model: Type[ModelT]):
        self.db = db
        self.model = model

    async def list(self) -> List[ModelT]:
        """All rows, ordered by name."""
        result = await self.db.execute(select(self.model).order_by(self.model.name))
        return list(result.scalars().all())

    async def get_by_id(self, id: UUID) -> Optional[ModelT]:
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def contains(self, value: str) -> List[ModelT]:
        """Rows whose name contains value, ignoring case."""
        query = (
            select(self.model)
            .where(func.lower(self.model.name).contains(value.lower(), autoescape=True))
            .order_by(self.model.name)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

