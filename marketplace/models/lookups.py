"""
Reference data tables.

Each table is a small catalog with a unique name. Opportunities point at
type, difficulty, commitment interval and status directly, and at
categories, countries, languages and skills through link tables.
"""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.models.base_model import LookupModel


class OpportunityCategory(LookupModel):
    __tablename__ = "opportunity_category"


class OpportunityStatus(LookupModel):
    """Rows are seeded with the fixed ids from marketplace.core.status."""

    __tablename__ = "opportunity_status"


class OpportunityType(LookupModel):
    __tablename__ = "opportunity_type"


class OpportunityDifficulty(LookupModel):
    __tablename__ = "opportunity_difficulty"


class TimeInterval(LookupModel):
    __tablename__ = "time_interval"


class Country(LookupModel):
    __tablename__ = "country"

    code_alpha2: Mapped[str] = mapped_column(String(2), nullable=False, unique=True)
    code_alpha3: Mapped[str] = mapped_column(String(3), nullable=False, unique=True)
    code_numeric: Mapped[str] = mapped_column(String(3), nullable=False, unique=True)


class Language(LookupModel):
    __tablename__ = "language"

    code_alpha2: Mapped[str] = mapped_column(String(2), nullable=False, unique=True)


class Skill(LookupModel):
    __tablename__ = "skill"

    # Identifier in the external skills taxonomy the catalog is synced from
    external_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, unique=True)
    info_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
