"""
Opportunity business logic service.

Owns the opportunity lifecycle: upsert, status changes, participant
counting, category / country / language / skill associations, search and
the scheduled expiration sweeps. Every mutating call commits its own unit
of work and rolls it back on failure.
"""

import logging
from datetime import timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.config import settings
from marketplace.core.permissions import ensure_organization_authorization as ensure_organization_access
from marketplace.core.security import SYSTEM_PRINCIPAL, Principal
from marketplace.core.status import Status, check_transition, ensure_updatable, status_id
from marketplace.errors import (
    ArgumentNullError,
    InvalidOperationError,
    NotFoundError,
    SecurityError,
    ValidationError,
)
from marketplace.models.opportunity import KEYWORD_SEPARATOR, Opportunity
from marketplace.repositories.opportunity_link_repository import (
    OpportunityLinkRepository,
    category_links,
    country_links,
    language_links,
    skill_links,
)
from marketplace.repositories.opportunity_repository import OpportunityRepository
from marketplace.schemas.opportunity import (
    OpportunityInfo,
    OpportunityRead,
    OpportunityRequest,
    OpportunitySearchFilter,
    OpportunitySearchFilterInfo,
    OpportunitySearchResults,
    OpportunitySearchResultsInfo,
)
from marketplace.services.lookups.lookup_service import LookupService
from marketplace.services.lookups.opportunity_lookups import (
    CountryService,
    LanguageService,
    OpportunityCategoryService,
    OpportunityDifficultyService,
    OpportunityTypeService,
    SkillService,
    TimeIntervalService,
)
from marketplace.services.opportunity_search import OpportunitySearchBuilder, distinct_ids
from marketplace.services.organization_service import OrganizationService
from marketplace.utils.time import end_of_day, ensure_utc, start_of_day, utc_now

logger = logging.getLogger(__name__)


class Association(str, Enum):
    """Reference collections linked to an opportunity."""

    CATEGORIES = "categories"
    COUNTRIES = "countries"
    LANGUAGES = "languages"
    SKILLS = "skills"

    @property
    def ids_argument(self) -> str:
        return _ID_ARGUMENTS[self]


_ID_ARGUMENTS = {
    Association.CATEGORIES: "category_ids",
    Association.COUNTRIES: "country_ids",
    Association.LANGUAGES: "language_ids",
    Association.SKILLS: "skill_ids",
}


class OpportunityService:
    """Service for opportunity business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = OpportunityRepository(db)

        self.organizations = OrganizationService(db)
        self.types = OpportunityTypeService(db)
        self.difficulties = OpportunityDifficultyService(db)
        self.time_intervals = TimeIntervalService(db)
        self.categories = OpportunityCategoryService(db)
        self.countries = CountryService(db)
        self.languages = LanguageService(db)
        self.skills = SkillService(db)

        self.search_builder = OpportunitySearchBuilder(
            organizations=self.organizations,
            types=self.types,
            categories=self.categories,
            skills=self.skills,
        )

        self._associations: Dict[Association, Tuple[LookupService, OpportunityLinkRepository]] = {
            Association.CATEGORIES: (self.categories, category_links(db)),
            Association.COUNTRIES: (self.countries, country_links(db)),
            Association.LANGUAGES: (self.languages, language_links(db)),
            Association.SKILLS: (self.skills, skill_links(db)),
        }

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(
        self,
        id: Optional[UUID],
        include_children: bool = False,
        principal: Optional[Principal] = None,
        ensure_organization_authorization: bool = False,
    ) -> Opportunity:
        """
        Get an opportunity by id.

        Raises:
            ArgumentNullError: id is missing
            NotFoundError: no opportunity with that id
            ForbiddenError: organization authorization requested and denied
        """
        if id is None:
            raise ArgumentNullError("id")

        opportunity = await self.repository.get_by_id(id, include_children=include_children)
        if opportunity is None:
            raise NotFoundError("id", f"Opportunity with id '{id}' does not exist")

        if ensure_organization_authorization:
            self._ensure_organization_access(principal, opportunity.organization_id)

        return opportunity

    async def get_info_by_id(self, id: Optional[UUID], include_children: bool = True) -> OpportunityInfo:
        opportunity = await self.get_by_id(id, include_children=include_children)
        return OpportunityInfo.from_model(opportunity)

    async def get_by_title_or_none(self, title: Optional[str], include_children: bool = False) -> Optional[Opportunity]:
        """Exact match on the trimmed title, ignoring deleted opportunities."""
        if title is None or not title.strip():
            raise ArgumentNullError("title")
        return await self.repository.get_by_title(title.strip(), include_children=include_children)

    async def get_info_by_title_or_none(self, title: Optional[str], include_children: bool = True) -> Optional[OpportunityInfo]:
        opportunity = await self.get_by_title_or_none(title, include_children=include_children)
        if opportunity is None:
            return None
        return OpportunityInfo.from_model(opportunity)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def _search(
        self,
        search_filter: OpportunitySearchFilter,
        organization_scope: Optional[List[UUID]] = None,
    ) -> Tuple[Optional[int], List[Opportunity]]:
        predicate = await self.search_builder.build(search_filter, organization_scope=organization_scope)
        criteria = predicate.compile()

        query = (
            self.repository.query(include_children=True)
            .where(criteria)
            .order_by(Opportunity.date_created.desc(), Opportunity.id)
        )

        total_count: Optional[int] = None
        if search_filter.pagination_enabled:
            total_count = await self.repository.count(criteria)
            query = query.offset((search_filter.page_number - 1) * search_filter.page_size).limit(search_filter.page_size)

        items = await self.repository.list(query)
        return total_count, items

    async def search(
        self,
        search_filter: Optional[OpportunitySearchFilter],
        organization_scope: Optional[List[UUID]] = None,
    ) -> OpportunitySearchResults:
        """
        Administrative search across all statuses.

        organization_scope, when given, restricts results to those
        organizations regardless of what the filter matches.
        """
        if search_filter is None:
            raise ArgumentNullError("filter")

        total_count, items = await self._search(search_filter, organization_scope)
        return OpportunitySearchResults(
            total_count=total_count,
            items=[OpportunityRead.from_model(item) for item in items],
        )

    async def search_info(self, filter_info: Optional[OpportunitySearchFilterInfo]) -> OpportunitySearchResultsInfo:
        """Public search: active opportunities only, reduced projection."""
        if filter_info is None:
            raise ArgumentNullError("filter")

        search_filter = OpportunitySearchFilter(
            status_ids=[status_id(Status.ACTIVE)],
            type_ids=filter_info.type_ids,
            category_ids=filter_info.category_ids,
            language_ids=filter_info.language_ids,
            country_ids=filter_info.country_ids,
            value_contains=filter_info.value_contains,
            page_number=filter_info.page_number,
            page_size=filter_info.page_size,
        )
        total_count, items = await self._search(search_filter)
        return OpportunitySearchResultsInfo(
            total_count=total_count,
            items=[OpportunityInfo.from_model(item) for item in items],
        )

    # ------------------------------------------------------------------
    # Upsert
    # ------------------------------------------------------------------

    async def upsert(
        self,
        request: Optional[OpportunityRequest],
        principal: Optional[Principal],
        ensure_organization_authorization: bool = False,
    ) -> Opportunity:
        """
        Insert (request.id unset) or update an opportunity.

        Raises:
            SecurityError: no principal
            ValidationError: title already used by another opportunity
            NotFoundError: unknown id, type, organization, difficulty or interval
            InvalidOperationError: not updatable, or limit below current count
        """
        if request is None:
            raise ArgumentNullError("request")
        self._require_principal(principal)

        opportunity: Optional[Opportunity] = None
        if request.id is not None:
            opportunity = await self.get_by_id(request.id)

        if ensure_organization_authorization:
            self._ensure_organization_access(principal, request.organization_id)
            if opportunity is not None:
                self._ensure_organization_access(principal, opportunity.organization_id)

        existing = await self.repository.get_by_title(request.title)
        if existing is not None and (opportunity is None or existing.id != opportunity.id):
            raise ValidationError(
                f"Opportunity with the specified title '{request.title}' already exists",
                {"title": request.title},
            )

        opportunity_type = await self.types.get_by_id(request.type_id)
        organization = await self.organizations.get_by_id(request.organization_id)
        difficulty = await self.difficulties.get_by_id(request.difficulty_id)
        commitment_interval = await self.time_intervals.get_by_id(request.commitment_interval_id)

        if opportunity is not None:
            ensure_updatable(opportunity.status)
            if request.participant_limit is not None and request.participant_limit < opportunity.participant_count:
                raise InvalidOperationError(
                    f"Participant limit can not be less than the current participant count "
                    f"(current count '{opportunity.participant_count}' vs requested limit '{request.participant_limit}')",
                    {
                        "participant_count": opportunity.participant_count,
                        "participant_limit": request.participant_limit,
                    },
                )

        fields = {
            "title": request.title,
            "description": request.description,
            "type_id": opportunity_type.id,
            "organization_id": organization.id,
            "instructions": request.instructions,
            "url": str(request.url) if request.url is not None else None,
            "zlto_reward": request.zlto_reward,
            "yoma_reward": request.yoma_reward,
            "zlto_reward_pool": request.zlto_reward_pool,
            "yoma_reward_pool": request.yoma_reward_pool,
            "verification_supported": request.verification_supported,
            "difficulty_id": difficulty.id,
            "commitment_interval_id": commitment_interval.id,
            "commitment_interval_count": request.commitment_interval_count,
            "participant_limit": request.participant_limit,
            "keywords": KEYWORD_SEPARATOR.join(request.keywords) if request.keywords else None,
            "date_start": start_of_day(request.date_start),
            "date_end": end_of_day(request.date_end) if request.date_end is not None else None,
        }

        try:
            if opportunity is None:
                opportunity = Opportunity(
                    **fields,
                    participant_count=0,
                    status_id=status_id(Status.ACTIVE if request.post_as_active else Status.INACTIVE),
                    created_by=principal.username,
                )
                opportunity = await self.repository.create(opportunity)
                logger.info(
                    "Opportunity %s created by %s (status %s)",
                    opportunity.id, principal.username, opportunity.status.value,
                )
            else:
                for field, value in fields.items():
                    setattr(opportunity, field, value)
                opportunity.modified_by = principal.username
                opportunity = await self.repository.update(opportunity)
                logger.info("Opportunity %s updated by %s", opportunity.id, principal.username)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return await self.get_by_id(opportunity.id, include_children=True)

    # ------------------------------------------------------------------
    # Status & participants
    # ------------------------------------------------------------------

    async def update_status(
        self,
        id: Optional[UUID],
        status: Status,
        principal: Optional[Principal],
        ensure_organization_authorization: bool = False,
    ) -> Opportunity:
        """
        Move an opportunity to another status.

        Requesting the current Active / Inactive status is a no-op.

        Raises:
            InvalidOperationError: the transition is not allowed
        """
        self._require_principal(principal)
        opportunity = await self.get_by_id(
            id,
            principal=principal,
            ensure_organization_authorization=ensure_organization_authorization,
        )

        try:
            changed = check_transition(opportunity.status, status)
        except InvalidOperationError:
            logger.warning(
                "Opportunity %s: status change %s -> %s rejected",
                opportunity.id, opportunity.status.value, status.value,
            )
            raise

        if changed:
            previous = opportunity.status
            try:
                self._set_status(opportunity, status, principal)
                await self.repository.update(opportunity)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise
            logger.info(
                "Opportunity %s: status %s -> %s by %s",
                opportunity.id, previous.value, status.value, principal.username,
            )

        return await self.get_by_id(opportunity.id, include_children=True)

    async def increment_participant_count(self, id: Optional[UUID], increment: int = 1) -> Opportunity:
        """
        Count new participants of an active, started opportunity.

        Raises:
            ValidationError: increment is not positive
            InvalidOperationError: not active, not started, or the limit would be exceeded
        """
        if increment <= 0:
            raise ValidationError("Increment must be greater than zero", {"increment": increment})

        opportunity = await self.get_by_id(id)

        if opportunity.status != Status.ACTIVE:
            raise InvalidOperationError(
                f"Opportunity must be active (current status '{opportunity.status.value}')",
                {"current_status": opportunity.status.value},
            )

        if ensure_utc(opportunity.date_start) > utc_now():
            raise InvalidOperationError(
                f"Opportunity is active but has not started (start date '{opportunity.date_start}')",
                {"date_start": str(opportunity.date_start)},
            )

        count = opportunity.participant_count + increment
        if opportunity.participant_limit is not None and count > opportunity.participant_limit:
            raise InvalidOperationError(
                f"Increment will exceed limit (current count '{opportunity.participant_count}' "
                f"vs current limit '{opportunity.participant_limit}')",
                {
                    "participant_count": opportunity.participant_count,
                    "participant_limit": opportunity.participant_limit,
                },
            )

        try:
            opportunity.participant_count = count
            opportunity.modified_by = SYSTEM_PRINCIPAL.username
            await self.repository.update(opportunity)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Opportunity %s: participant count now %d", opportunity.id, count)
        return opportunity

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    async def assign(
        self,
        association: Association,
        id: Optional[UUID],
        ids: Optional[List[UUID]],
        principal: Optional[Principal],
        ensure_organization_authorization: bool = False,
    ) -> Opportunity:
        """Link reference rows to an opportunity; rows already linked are skipped."""
        return await self._update_associations(
            association, id, ids, principal, ensure_organization_authorization, assign=True
        )

    async def remove(
        self,
        association: Association,
        id: Optional[UUID],
        ids: Optional[List[UUID]],
        principal: Optional[Principal],
        ensure_organization_authorization: bool = False,
    ) -> Opportunity:
        """Unlink reference rows from an opportunity; rows not linked are skipped."""
        return await self._update_associations(
            association, id, ids, principal, ensure_organization_authorization, assign=False
        )

    async def assign_categories(self, id, category_ids, principal, ensure_organization_authorization=False):
        return await self.assign(Association.CATEGORIES, id, category_ids, principal, ensure_organization_authorization)

    async def remove_categories(self, id, category_ids, principal, ensure_organization_authorization=False):
        return await self.remove(Association.CATEGORIES, id, category_ids, principal, ensure_organization_authorization)

    async def assign_countries(self, id, country_ids, principal, ensure_organization_authorization=False):
        return await self.assign(Association.COUNTRIES, id, country_ids, principal, ensure_organization_authorization)

    async def remove_countries(self, id, country_ids, principal, ensure_organization_authorization=False):
        return await self.remove(Association.COUNTRIES, id, country_ids, principal, ensure_organization_authorization)

    async def assign_languages(self, id, language_ids, principal, ensure_organization_authorization=False):
        return await self.assign(Association.LANGUAGES, id, language_ids, principal, ensure_organization_authorization)

    async def remove_languages(self, id, language_ids, principal, ensure_organization_authorization=False):
        return await self.remove(Association.LANGUAGES, id, language_ids, principal, ensure_organization_authorization)

    async def assign_skills(self, id, skill_ids, principal, ensure_organization_authorization=False):
        return await self.assign(Association.SKILLS, id, skill_ids, principal, ensure_organization_authorization)

    async def remove_skills(self, id, skill_ids, principal, ensure_organization_authorization=False):
        return await self.remove(Association.SKILLS, id, skill_ids, principal, ensure_organization_authorization)

    async def _update_associations(
        self,
        association: Association,
        id: Optional[UUID],
        ids: Optional[List[UUID]],
        principal: Optional[Principal],
        ensure_organization_authorization: bool,
        assign: bool,
    ) -> Opportunity:
        self._require_principal(principal)
        opportunity = await self.get_by_id(
            id,
            principal=principal,
            ensure_organization_authorization=ensure_organization_authorization,
        )

        ids = distinct_ids(ids)
        if not ids:
            raise ArgumentNullError(association.ids_argument)

        ensure_updatable(opportunity.status)

        lookup, links = self._associations[association]
        # Resolve everything before writing so an unknown id leaves no partial batch
        references = [await lookup.get_by_id(reference_id) for reference_id in ids]

        changed = 0
        try:
            for reference in references:
                link = await links.get(opportunity.id, reference.id)
                if assign and link is None:
                    await links.create(opportunity.id, reference.id)
                    changed += 1
                elif not assign and link is not None:
                    await links.delete(link)
                    changed += 1
            if changed:
                opportunity.modified_by = principal.username
                await self.repository.update(opportunity)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Opportunity %s: %s %d of %d %s",
            opportunity.id, "assigned" if assign else "removed", changed, len(references), association.value,
        )
        return await self.get_by_id(opportunity.id, include_children=True)

    # ------------------------------------------------------------------
    # Scheduled sweeps
    # ------------------------------------------------------------------

    async def process_expiration(self) -> int:
        """
        Expire active / inactive opportunities whose end date has passed.

        Works in batches of OPPORTUNITY_EXPIRATION_BATCH_SIZE, committing per
        batch. Returns the number of opportunities expired.
        """
        batch_size = settings.OPPORTUNITY_EXPIRATION_BATCH_SIZE
        total = 0

        while True:
            items = await self.repository.list_expired(utc_now(), batch_size)
            if not items:
                break

            try:
                for item in items:
                    check_transition(item.status, Status.EXPIRED, system=True)
                    self._set_status(item, Status.EXPIRED, SYSTEM_PRINCIPAL)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise

            total += len(items)
            logger.info("Expired %d opportunities (%d so far)", len(items), total)

        return total

    async def expiration_notifications(self) -> int:
        """
        Find active / inactive opportunities ending within the notification
        window (today up to OPPORTUNITY_EXPIRATION_NOTIFICATION_INTERVAL_IN_DAYS
        days ahead) and log one notification per opportunity. Returns the
        number of opportunities notified.
        """
        batch_size = settings.OPPORTUNITY_EXPIRATION_BATCH_SIZE
        window_start = start_of_day(utc_now())
        window_end = end_of_day(window_start + timedelta(days=settings.OPPORTUNITY_EXPIRATION_NOTIFICATION_INTERVAL_IN_DAYS))

        notified = 0
        offset = 0
        while True:
            items = await self.repository.list_expiring(window_start, window_end, offset, batch_size)
            if not items:
                break

            for item in items:
                logger.info(
                    "Opportunity %s ('%s') of organization %s expires on %s",
                    item.id, item.title, item.organization_id, item.date_end,
                )
            notified += len(items)
            offset += len(items)

        return notified

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_principal(principal: Optional[Principal]) -> None:
        if principal is None or not principal.username.strip():
            raise SecurityError("An authenticated principal is required")

    def _ensure_organization_access(self, principal: Optional[Principal], organization_id: UUID) -> None:
        self._require_principal(principal)
        ensure_organization_access(principal, organization_id)

    @staticmethod
    def _set_status(opportunity: Opportunity, status: Status, principal: Principal) -> None:
        opportunity.status = status
        opportunity.modified_by = principal.username
