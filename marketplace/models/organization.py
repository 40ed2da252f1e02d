"""
Organization model.

Only the parts opportunities depend on (identity and name) live here.
"""

from marketplace.models.base_model import LookupModel


class Organization(LookupModel):
    """Organization publishing opportunities."""

    __tablename__ = "organization"
