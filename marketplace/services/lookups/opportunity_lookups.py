"""
Lookup services for the opportunity reference tables.
"""

from marketplace.models.lookups import (
    Country,
    Language,
    OpportunityCategory,
    OpportunityDifficulty,
    OpportunityStatus,
    OpportunityType,
    Skill,
    TimeInterval,
)
from marketplace.schemas.lookup import CountryRead, LanguageRead, LookupRead, SkillRead
from marketplace.services.lookups.lookup_service import LookupService


class OpportunityCategoryService(LookupService[LookupRead]):
    model = OpportunityCategory
    label = "opportunity category"


class OpportunityDifficultyService(LookupService[LookupRead]):
    model = OpportunityDifficulty
    label = "opportunity difficulty"


class OpportunityStatusService(LookupService[LookupRead]):
    model = OpportunityStatus
    label = "opportunity status"


class OpportunityTypeService(LookupService[LookupRead]):
    model = OpportunityType
    label = "opportunity type"


class TimeIntervalService(LookupService[LookupRead]):
    model = TimeInterval
    label = "time interval"


class CountryService(LookupService[CountryRead]):
    model = Country
    schema = CountryRead
    label = "country"


class LanguageService(LookupService[LanguageRead]):
    model = Language
    schema = LanguageRead
    label = "language"


class SkillService(LookupService[SkillRead]):
    model = Skill
    schema = SkillRead
    label = "skill"
