"""
Organization business logic service.

Only the lookup surface of organizations is needed by opportunities;
organizations are not cached.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.errors import ArgumentNullError, NotFoundError
from marketplace.models.organization import Organization
from marketplace.repositories.lookup_repository import LookupRepository
from marketplace.schemas.lookup import LookupRead


class OrganizationService:
    """Service for organization lookups."""

    def __init__(self, db: AsyncSession):
        self.repository = LookupRepository(db, Organization)

    async def get_by_id_or_none(self, id: Optional[UUID]) -> Optional[LookupRead]:
        if id is None:
            raise ArgumentNullError("id")
        organization = await self.repository.get_by_id(id)
        return LookupRead.model_validate(organization) if organization else None

    async def get_by_id(self, id: Optional[UUID]) -> LookupRead:
        organization = await self.get_by_id_or_none(id)
        if organization is None:
            raise NotFoundError("id", f"Organization with id '{id}' does not exist")
        return organization

    async def contains(self, value: Optional[str]) -> List[LookupRead]:
        """Organizations whose name contains value, ignoring case."""
        if value is None or not value.strip():
            raise ArgumentNullError("value")
        rows = await self.repository.contains(value.strip())
        return [LookupRead.model_validate(row) for row in rows]
