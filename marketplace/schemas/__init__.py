"""
Schemas package.

Import all schemas here for easy access.
"""

from marketplace.schemas.lookup import CountryRead, LanguageRead, LookupRead, SkillRead
from marketplace.schemas.opportunity import (
    OpportunityInfo,
    OpportunityRead,
    OpportunityRequest,
    OpportunitySearchFilter,
    OpportunitySearchFilterInfo,
    OpportunitySearchResults,
    OpportunitySearchResultsInfo,
    PaginatedFilter,
)

__all__ = [
    "CountryRead",
    "LanguageRead",
    "LookupRead",
    "SkillRead",
    "OpportunityInfo",
    "OpportunityRead",
    "OpportunityRequest",
    "OpportunitySearchFilter",
    "OpportunitySearchFilterInfo",
    "OpportunitySearchResults",
    "OpportunitySearchResultsInfo",
    "PaginatedFilter",
]
