"""
Opportunity association tables.

Each row links one opportunity to one reference row; a pair is linked at
most once.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.models.base_model import IdentifiedModel
from marketplace.utils.time import utc_now


class OpportunityCategoryLink(IdentifiedModel):
    __tablename__ = "opportunity_categories"

    opportunity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("opportunity.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("opportunity_category.id"), nullable=False, index=True
    )
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("opportunity_id", "category_id", name="uq_opportunity_categories_pair"),
    )


class OpportunityCountryLink(IdentifiedModel):
    __tablename__ = "opportunity_countries"

    opportunity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("opportunity.id", ondelete="CASCADE"), nullable=False, index=True
    )
    country_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("country.id"), nullable=False, index=True
    )
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("opportunity_id", "country_id", name="uq_opportunity_countries_pair"),
    )


class OpportunityLanguageLink(IdentifiedModel):
    __tablename__ = "opportunity_languages"

    opportunity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("opportunity.id", ondelete="CASCADE"), nullable=False, index=True
    )
    language_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("language.id"), nullable=False, index=True
    )
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("opportunity_id", "language_id", name="uq_opportunity_languages_pair"),
    )


class OpportunitySkillLink(IdentifiedModel):
    __tablename__ = "opportunity_skills"

    opportunity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("opportunity.id", ondelete="CASCADE"), nullable=False, index=True
    )
    skill_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("skill.id"), nullable=False, index=True
    )
    date_created: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("opportunity_id", "skill_id", name="uq_opportunity_skills_pair"),
    )
