"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
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
from marketplace.models.organization import Organization
from marketplace.models.opportunity import Opportunity
from marketplace.models.opportunity_links import (
    OpportunityCategoryLink,
    OpportunityCountryLink,
    OpportunityLanguageLink,
    OpportunitySkillLink,
)

# Export all models
__all__ = [
    "Country",
    "Language",
    "OpportunityCategory",
    "OpportunityDifficulty",
    "OpportunityStatus",
    "OpportunityType",
    "Skill",
    "TimeInterval",
    "Organization",
    "Opportunity",
    "OpportunityCategoryLink",
    "OpportunityCountryLink",
    "OpportunityLanguageLink",
    "OpportunitySkillLink",
]
