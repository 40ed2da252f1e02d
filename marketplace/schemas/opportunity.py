"""
Opportunity Pydantic schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl, field_validator, model_validator

from marketplace.core.status import Status
from marketplace.models.opportunity import KEYWORD_SEPARATOR, Opportunity
from marketplace.schemas.lookup import CountryRead, LanguageRead, LookupRead, SkillRead

KEYWORDS_MAX_LENGTH = 500


class OpportunityRequest(BaseModel):
    """
    Schema for inserting (id omitted) or updating (id set) an opportunity.
    """

    id: Optional[UUID] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    type_id: UUID
    organization_id: UUID
    instructions: Optional[str] = None
    url: Optional[HttpUrl] = None
    zlto_reward: Optional[Decimal] = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    yoma_reward: Optional[Decimal] = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    zlto_reward_pool: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    yoma_reward_pool: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    verification_supported: bool = False
    difficulty_id: UUID
    commitment_interval_id: UUID
    commitment_interval_count: int = Field(..., ge=1, le=32767)
    participant_limit: Optional[int] = Field(default=None, ge=1)
    keywords: Optional[List[str]] = None
    date_start: datetime
    date_end: Optional[datetime] = None
    post_as_active: bool = False

    @field_validator("title", "description")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("keywords")
    @classmethod
    def _check_keywords(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        keywords = [keyword.strip() for keyword in value]
        if any(not keyword for keyword in keywords):
            raise ValueError("keywords must not be blank")
        if any(len(keyword.split()) > 1 for keyword in keywords):
            raise ValueError("keywords must be single words")
        if len(KEYWORD_SEPARATOR.join(keywords)) > KEYWORDS_MAX_LENGTH:
            raise ValueError(f"keywords exceed {KEYWORDS_MAX_LENGTH} characters in total")
        return keywords

    @model_validator(mode="after")
    def _check_ranges(self) -> "OpportunityRequest":
        if self.date_end is not None and self.date_end < self.date_start:
            raise ValueError("date_end must be on or after date_start")
        if self.zlto_reward is not None and self.zlto_reward_pool is not None and self.zlto_reward > self.zlto_reward_pool:
            raise ValueError("zlto_reward must not exceed zlto_reward_pool")
        if self.yoma_reward is not None and self.yoma_reward_pool is not None and self.yoma_reward > self.yoma_reward_pool:
            raise ValueError("yoma_reward must not exceed yoma_reward_pool")
        return self


class PaginatedFilter(BaseModel):
    """Page number and size are 1-based and must be supplied together."""

    page_number: Optional[int] = Field(default=None, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1, le=1000)

    @model_validator(mode="after")
    def _check_pagination(self):
        if (self.page_number is None) != (self.page_size is None):
            raise ValueError("page_number and page_size must be specified together")
        return self

    @property
    def pagination_enabled(self) -> bool:
        return self.page_number is not None and self.page_size is not None


class OpportunitySearchFilterInfo(PaginatedFilter):
    """Public (anonymous) search filter. Only active opportunities are searched."""

    type_ids: Optional[List[UUID]] = None
    category_ids: Optional[List[UUID]] = None
    language_ids: Optional[List[UUID]] = None
    country_ids: Optional[List[UUID]] = None
    value_contains: Optional[str] = Field(default=None, max_length=100)


class OpportunitySearchFilter(OpportunitySearchFilterInfo):
    """Administrative search filter."""

    organization_id: Optional[UUID] = None
    status_ids: Optional[List[UUID]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_date_range(self) -> "OpportunitySearchFilter":
        if self.start_date is not None and self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class OpportunityInfo(BaseModel):
    """Public projection of an opportunity (no audit or internal ids)."""

    id: UUID
    title: str
    description: str
    type: str
    organization: str
    instructions: Optional[str] = None
    url: Optional[str] = None
    zlto_reward: Optional[Decimal] = None
    yoma_reward: Optional[Decimal] = None
    verification_supported: bool
    difficulty: str
    commitment_interval: str
    commitment_interval_count: int
    participant_limit: Optional[int] = None
    participant_count: int
    keywords: Optional[List[str]] = None
    date_start: datetime
    date_end: Optional[datetime] = None
    # None when the opportunity was loaded without its children
    categories: Optional[List[LookupRead]] = None
    countries: Optional[List[CountryRead]] = None
    languages: Optional[List[LanguageRead]] = None
    skills: Optional[List[SkillRead]] = None

    @classmethod
    def _base_fields(cls, opportunity: Opportunity) -> dict:
        fields = {
            "id": opportunity.id,
            "title": opportunity.title,
            "description": opportunity.description,
            "type": opportunity.type.name,
            "organization": opportunity.organization.name,
            "instructions": opportunity.instructions,
            "url": opportunity.url,
            "zlto_reward": opportunity.zlto_reward,
            "yoma_reward": opportunity.yoma_reward,
            "verification_supported": opportunity.verification_supported,
            "difficulty": opportunity.difficulty.name,
            "commitment_interval": opportunity.commitment_interval.name,
            "commitment_interval_count": opportunity.commitment_interval_count,
            "participant_limit": opportunity.participant_limit,
            "participant_count": opportunity.participant_count,
            "keywords": opportunity.keyword_list,
            "date_start": opportunity.date_start,
            "date_end": opportunity.date_end,
        }
        if opportunity.children_loaded:
            fields.update(
                categories=[LookupRead.model_validate(item) for item in opportunity.categories],
                countries=[CountryRead.model_validate(item) for item in opportunity.countries],
                languages=[LanguageRead.model_validate(item) for item in opportunity.languages],
                skills=[SkillRead.model_validate(item) for item in opportunity.skills],
            )
        return fields

    @classmethod
    def from_model(cls, opportunity: Opportunity) -> "OpportunityInfo":
        return cls(**cls._base_fields(opportunity))


class OpportunityRead(OpportunityInfo):
    """Full administrative view of an opportunity."""

    type_id: UUID
    organization_id: UUID
    zlto_reward_pool: Optional[Decimal] = None
    yoma_reward_pool: Optional[Decimal] = None
    difficulty_id: UUID
    commitment_interval_id: UUID
    status_id: UUID
    status: Status
    created_by: str
    date_created: datetime
    modified_by: Optional[str] = None
    date_modified: datetime

    @classmethod
    def from_model(cls, opportunity: Opportunity) -> "OpportunityRead":
        return cls(
            **cls._base_fields(opportunity),
            type_id=opportunity.type_id,
            organization_id=opportunity.organization_id,
            zlto_reward_pool=opportunity.zlto_reward_pool,
            yoma_reward_pool=opportunity.yoma_reward_pool,
            difficulty_id=opportunity.difficulty_id,
            commitment_interval_id=opportunity.commitment_interval_id,
            status_id=opportunity.status_id,
            status=opportunity.status,
            created_by=opportunity.created_by,
            date_created=opportunity.date_created,
            modified_by=opportunity.modified_by,
            date_modified=opportunity.date_modified,
        )


class OpportunitySearchResults(BaseModel):
    """total_count is only set when the filter requested a page."""

    total_count: Optional[int] = None
    items: List[OpportunityRead]


class OpportunitySearchResultsInfo(BaseModel):
    total_count: Optional[int] = None
    items: List[OpportunityInfo]
