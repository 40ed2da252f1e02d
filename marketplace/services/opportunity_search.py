"""
Opportunity search predicate builder.

A search filter is turned into a small predicate tree first and compiled
to a SQLAlchemy clause afterwards. The tree keeps the shape of the query
(what is AND-ed, what is OR-ed) inspectable without rendering SQL.

Rules:
- start_date / end_date bound date_created inclusively, widened to the
  start and end of their days.
- Empty id lists are ignored, duplicates are dropped.
- Without value_contains, organization, type and category are AND-ed.
- With value_contains, organization, type, category, the opportunity's own
  text fields and its skills form one disjunction. Status, date range,
  language and country stay AND-ed.
- organization_scope, when given, is always AND-ed, outside the disjunction.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import ColumnElement, and_, false, or_, true

from marketplace.models.opportunity import Opportunity
from marketplace.repositories.opportunity_link_repository import (
    category_links,
    country_links,
    language_links,
    skill_links,
)
from marketplace.repositories.opportunity_repository import OpportunityRepository
from marketplace.schemas.opportunity import OpportunitySearchFilter
from marketplace.services.lookups.opportunity_lookups import (
    OpportunityCategoryService,
    OpportunityTypeService,
    SkillService,
)
from marketplace.services.organization_service import OrganizationService
from marketplace.utils.time import end_of_day, start_of_day

logger = logging.getLogger(__name__)


class Predicate:
    """Node of a search predicate tree."""

    def compile(self) -> ColumnElement[bool]:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Condition(Predicate):
    """Leaf node wrapping a single clause."""

    name: str
    clause: ColumnElement[bool]

    def compile(self) -> ColumnElement[bool]:
        return self.clause

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True)
class AllOf(Predicate):
    children: Tuple[Predicate, ...]

    def compile(self) -> ColumnElement[bool]:
        if not self.children:
            return true()
        return and_(*(child.compile() for child in self.children))

    def describe(self) -> str:
        return "and(" + ", ".join(child.describe() for child in self.children) + ")"


@dataclass(frozen=True)
class AnyOf(Predicate):
    children: Tuple[Predicate, ...]

    def compile(self) -> ColumnElement[bool]:
        if not self.children:
            return false()
        return or_(*(child.compile() for child in self.children))

    def describe(self) -> str:
        return "or(" + ", ".join(child.describe() for child in self.children) + ")"


def and_all(*predicates: Optional[Predicate]) -> AllOf:
    """AND the given predicates, skipping None and flattening nested ANDs."""
    children: List[Predicate] = []
    for predicate in predicates:
        if predicate is None:
            continue
        if isinstance(predicate, AllOf):
            children.extend(predicate.children)
        else:
            children.append(predicate)
    return AllOf(tuple(children))


def or_any(*predicates: Optional[Predicate]) -> AnyOf:
    """OR the given predicates, skipping None and flattening nested ORs."""
    children: List[Predicate] = []
    for predicate in predicates:
        if predicate is None:
            continue
        if isinstance(predicate, AnyOf):
            children.extend(predicate.children)
        else:
            children.append(predicate)
    return AnyOf(tuple(children))


def distinct_ids(ids: Optional[Iterable[UUID]]) -> List[UUID]:
    """De-duplicate, keeping first-seen order. None becomes an empty list."""
    return list(dict.fromkeys(ids or []))


def _union(first: Sequence[UUID], second: Iterable[UUID]) -> List[UUID]:
    return distinct_ids([*first, *second])


class OpportunitySearchBuilder:
    """Builds the predicate tree for an OpportunitySearchFilter."""

    def __init__(
        self,
        organizations: OrganizationService,
        types: OpportunityTypeService,
        categories: OpportunityCategoryService,
        skills: SkillService,
    ):
        db = organizations.repository.db
        self.organizations = organizations
        self.types = types
        self.categories = categories
        self.skills = skills
        self.category_links = category_links(db)
        self.country_links = country_links(db)
        self.language_links = language_links(db)
        self.skill_links = skill_links(db)

    def _linked_to(self, links, name: str, ids: List[UUID]) -> Condition:
        return Condition(name, Opportunity.id.in_(links.opportunity_ids_linked_to(ids)))

    async def build(
        self,
        search_filter: OpportunitySearchFilter,
        organization_scope: Optional[Iterable[UUID]] = None,
    ) -> AllOf:
        conditions: List[Optional[Predicate]] = []

        if organization_scope is not None:
            conditions.append(
                Condition("organization_scope", Opportunity.organization_id.in_(distinct_ids(organization_scope)))
            )

        if search_filter.start_date is not None:
            conditions.append(
                Condition("date_created_from", Opportunity.date_created >= start_of_day(search_filter.start_date))
            )
        if search_filter.end_date is not None:
            conditions.append(
                Condition("date_created_to", Opportunity.date_created <= end_of_day(search_filter.end_date))
            )

        organization_ids = [search_filter.organization_id] if search_filter.organization_id else []
        type_ids = distinct_ids(search_filter.type_ids)
        category_ids = distinct_ids(search_filter.category_ids)
        language_ids = distinct_ids(search_filter.language_ids)
        country_ids = distinct_ids(search_filter.country_ids)
        status_ids = distinct_ids(search_filter.status_ids)

        if language_ids:
            conditions.append(self._linked_to(self.language_links, "languages", language_ids))
        if country_ids:
            conditions.append(self._linked_to(self.country_links, "countries", country_ids))
        if status_ids:
            conditions.append(Condition("statuses", Opportunity.status_id.in_(status_ids)))

        value_contains = (search_filter.value_contains or "").strip()
        if value_contains:
            conditions.append(await self._contains(value_contains, organization_ids, category_ids))
        else:
            if organization_ids:
                conditions.append(Condition("organizations", Opportunity.organization_id.in_(organization_ids)))
            if type_ids:
                conditions.append(Condition("types", Opportunity.type_id.in_(type_ids)))
            if category_ids:
                conditions.append(self._linked_to(self.category_links, "categories", category_ids))

        predicate = and_all(*conditions)
        logger.debug("Opportunity search predicate: %s", predicate.describe())
        return predicate

    async def _contains(
        self,
        value: str,
        organization_ids: List[UUID],
        category_ids: List[UUID],
    ) -> AnyOf:
        matched_organizations = [item.id for item in await self.organizations.contains(value)]
        matched_types = [item.id for item in await self.types.contains(value)]
        matched_categories = [item.id for item in await self.categories.contains(value)]
        matched_skills = [item.id for item in await self.skills.contains(value)]

        organization_ids = _union(organization_ids, matched_organizations)
        category_ids = _union(category_ids, matched_categories)

        return or_any(
            Condition("organizations", Opportunity.organization_id.in_(organization_ids)),
            Condition("types", Opportunity.type_id.in_(matched_types)),
            self._linked_to(self.category_links, "categories", category_ids),
            Condition("text", OpportunityRepository.contains(value)),
            self._linked_to(self.skill_links, "skills", matched_skills),
        )
