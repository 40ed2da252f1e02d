"""
Lookup business logic service.

Reference tables are small and read-mostly. When lookup caching is enabled
the full list of a table is cached and every other read (by id, by name,
contains) is answered from that list.
"""

import logging
from typing import ClassVar, Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.cache import LookupCache, lookup_cache, lookup_cache_enabled, lookup_cache_policy
from marketplace.errors import ArgumentNullError, NotFoundError
from marketplace.models.base_model import LookupModel
from marketplace.repositories.lookup_repository import LookupRepository
from marketplace.schemas.lookup import LookupRead

logger = logging.getLogger(__name__)

ReadT = TypeVar("ReadT", bound=LookupRead)


class LookupService(Generic[ReadT]):
    """
    Service for one reference table.

    Subclasses set model, schema and label:

        class OpportunityTypeService(LookupService[LookupRead]):
            model = OpportunityType
            schema = LookupRead
            label = "opportunity type"
    """

    model: ClassVar[Type[LookupModel]]
    schema: ClassVar[Type[LookupRead]] = LookupRead
    label: ClassVar[str] = "lookup"

    def __init__(self, db: AsyncSession, cache: Optional[LookupCache] = None):
        self.repository = LookupRepository(db, self.model)
        self.cache = cache if cache is not None else lookup_cache

    @property
    def cache_key(self) -> str:
        return f"lookup:{self.model.__tablename__}"

    async def _load(self) -> List[ReadT]:
        rows = await self.repository.list()
        return [self.schema.model_validate(row) for row in rows]

    async def list(self) -> List[ReadT]:
        """All rows ordered by name."""
        if not lookup_cache_enabled():
            return await self._load()
        items = await self.cache.get_or_load(self.cache_key, self._load, lookup_cache_policy())
        # Callers get their own list; the cached one is shared
        return list(items)

    async def get_by_id_or_none(self, id: Optional[UUID]) -> Optional[ReadT]:
        if id is None:
            raise ArgumentNullError("id")
        return next((item for item in await self.list() if item.id == id), None)

    async def get_by_id(self, id: Optional[UUID]) -> ReadT:
        item = await self.get_by_id_or_none(id)
        if item is None:
            raise NotFoundError("id", f"{self.label.capitalize()} with id '{id}' does not exist")
        return item

    async def get_by_name_or_none(self, name: Optional[str]) -> Optional[ReadT]:
        if name is None or not name.strip():
            raise ArgumentNullError("name")
        name = name.strip()
        return next((item for item in await self.list() if item.name == name), None)

    async def get_by_name(self, name: Optional[str]) -> ReadT:
        item = await self.get_by_name_or_none(name)
        if item is None:
            raise NotFoundError("name", f"{self.label.capitalize()} with name '{name.strip()}' does not exist")
        return item

    async def contains(self, value: Optional[str]) -> List[ReadT]:
        """Rows whose name contains value, ignoring case."""
        if value is None or not value.strip():
            raise ArgumentNullError("value")
        value = value.strip().lower()
        return [item for item in await self.list() if value in item.name.lower()]
