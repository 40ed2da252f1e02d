"""
Opportunity model.

Represents a published volunteering opportunity / challenge.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Text,
    Uuid,
    inspect,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.core.status import STATUS_IDS, Status, status_from_id, status_id
from marketplace.models.base_model import IdentifiedModel
from marketplace.utils.time import utc_now

if TYPE_CHECKING:
    from marketplace.models.lookups import (
        Country,
        Language,
        OpportunityCategory,
        OpportunityDifficulty,
        OpportunityType,
        Skill,
        TimeInterval,
    )
    from marketplace.models.organization import Organization

KEYWORD_SEPARATOR = " "

CHILD_COLLECTIONS = ("categories", "countries", "languages", "skills")

_DELETED_ID = STATUS_IDS[Status.DELETED]


class Opportunity(IdentifiedModel):
    """
    Opportunity table - the aggregate root.

    Categories, countries, languages and skills are linked through the
    opportunity_* link tables and exposed here as read-only collections.
    The collections are only populated when the opportunity is queried
    with its children (see OpportunityRepository.query).
    """

    __tablename__ = "opportunity"

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("opportunity_type.id"),
        nullable=False,
    )

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("organization.id"),
        nullable=False,
        index=True,
    )

    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # Rewards, in two currencies
    zlto_reward: Mapped[Optional[Decimal]] = mapped_column(Numeric(8, 2), nullable=True)
    yoma_reward: Mapped[Optional[Decimal]] = mapped_column(Numeric(8, 2), nullable=True)
    zlto_reward_pool: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    yoma_reward_pool: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    verification_supported: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    difficulty_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("opportunity_difficulty.id"),
        nullable=False,
    )

    # Expected commitment, e.g. 3 x "Week"
    commitment_interval_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("time_interval.id"),
        nullable=False,
    )
    commitment_interval_count: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    participant_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    participant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Space separated
    keywords: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    date_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    date_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    status_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("opportunity_status.id"),
        nullable=False,
        index=True,
    )

    # Audit
    created_by: Mapped[str] = mapped_column(String(320), nullable=False)
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )
    modified_by: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    date_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    # Relationships
    type: Mapped["OpportunityType"] = relationship(lazy="selectin")
    organization: Mapped["Organization"] = relationship(lazy="selectin")
    difficulty: Mapped["OpportunityDifficulty"] = relationship(lazy="selectin")
    commitment_interval: Mapped["TimeInterval"] = relationship(lazy="selectin")

    categories: Mapped[List["OpportunityCategory"]] = relationship(
        secondary="opportunity_categories",
        order_by="OpportunityCategory.name",
        viewonly=True,
        lazy="raise",
    )
    countries: Mapped[List["Country"]] = relationship(
        secondary="opportunity_countries",
        order_by="Country.name",
        viewonly=True,
        lazy="raise",
    )
    languages: Mapped[List["Language"]] = relationship(
        secondary="opportunity_languages",
        order_by="Language.name",
        viewonly=True,
        lazy="raise",
    )
    skills: Mapped[List["Skill"]] = relationship(
        secondary="opportunity_skills",
        order_by="Skill.name",
        viewonly=True,
        lazy="raise",
    )

    __table_args__ = (
        # Titles only need to be unique among opportunities that are not deleted
        Index(
            "uq_opportunity_title_not_deleted",
            "title",
            unique=True,
            postgresql_where=text(f"status_id <> '{_DELETED_ID}'"),
            sqlite_where=text(f"status_id <> '{_DELETED_ID.hex}'"),
        ),
        CheckConstraint(
            "participant_limit IS NULL OR participant_count <= participant_limit",
            name="ck_opportunity_participant_count_within_limit",
        ),
    )

    @property
    def status(self) -> Status:
        return status_from_id(self.status_id)

    @status.setter
    def status(self, value: Status) -> None:
        self.status_id = status_id(value)

    @property
    def children_loaded(self) -> bool:
        return not (set(CHILD_COLLECTIONS) & inspect(self).unloaded)

    @property
    def keyword_list(self) -> Optional[List[str]]:
        if not self.keywords:
            return None
        return [keyword for keyword in self.keywords.split(KEYWORD_SEPARATOR) if keyword]
