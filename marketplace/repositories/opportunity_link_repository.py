"""
Opportunity link repository - database operations for the
opportunity_categories / _countries / _languages / _skills tables.
"""

from typing import Generic, List, Optional, Type, TypeVar, Union
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models.opportunity_links import (
    OpportunityCategoryLink,
    OpportunityCountryLink,
    OpportunityLanguageLink,
    OpportunitySkillLink,
)

LinkModel = Union[
    OpportunityCategoryLink,
    OpportunityCountryLink,
    OpportunityLanguageLink,
    OpportunitySkillLink,
]
LinkT = TypeVar("LinkT", bound=LinkModel)


class OpportunityLinkRepository(Generic[LinkT]):
    """
    Repository for one opportunity association table.

    reference_column is the name of the column pointing at the reference
    row, e.g. "category_id".
    """

    def __init__(self, db: AsyncSession, model: Type[LinkT], reference_column: str):
        self.db = db
        self.model = model
        self.reference_column = reference_column

    @property
    def _reference(self):
        return getattr(self.model, self.reference_column)

    async def get(self, opportunity_id: UUID, reference_id: UUID) -> Optional[LinkT]:
        result = await self.db.execute(
            select(self.model).where(
                self.model.opportunity_id == opportunity_id,
                self._reference == reference_id,
            )
        )
        return result.scalar_one_or_none()

    def opportunity_ids_linked_to(self, reference_ids: List[UUID]) -> Select:
        """Subquery of opportunity ids linked to any of the reference ids."""
        return select(self.model.opportunity_id).where(self._reference.in_(reference_ids))

    async def create(self, opportunity_id: UUID, reference_id: UUID) -> LinkT:
        link = self.model(opportunity_id=opportunity_id, **{self.reference_column: reference_id})
        self.db.add(link)
        await self.db.flush()
        return link

    async def delete(self, link: LinkT) -> None:
        await self.db.delete(link)
        await self.db.flush()


def category_links(db: AsyncSession) -> OpportunityLinkRepository[OpportunityCategoryLink]:
    return OpportunityLinkRepository(db, OpportunityCategoryLink, "category_id")


def country_links(db: AsyncSession) -> OpportunityLinkRepository[OpportunityCountryLink]:
    return OpportunityLinkRepository(db, OpportunityCountryLink, "country_id")


def language_links(db: AsyncSession) -> OpportunityLinkRepository[OpportunityLanguageLink]:
    return OpportunityLinkRepository(db, OpportunityLanguageLink, "language_id")


def skill_links(db: AsyncSession) -> OpportunityLinkRepository[OpportunitySkillLink]:
    return OpportunityLinkRepository(db, OpportunitySkillLink, "skill_id")
