"""
Base models with common fields.

- IdentifiedModel: UUID primary key
- LookupModel: UUID primary key, unique name, creation timestamp
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from marketplace.db.base import Base
from marketplace.utils.time import utc_now


class IdentifiedModel(Base):
    """
    Abstract base class for tables keyed by a UUID.

    This is not a real table - it's a template that other models inherit from.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )


class LookupModel(IdentifiedModel):
    """
    Abstract base class for reference data (categories, countries, ...).

    Rows are read-mostly and cached by the lookup services.
    """

    __abstract__ = True

    name: Mapped[str] = mapped_column(
        String(125),
        nullable=False,
        unique=True,
    )

    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
