"""
Lookup (reference data) Pydantic schemas.

Lookup services cache these read models rather than ORM instances, so a
cached list can be shared across sessions.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class LookupRead(BaseModel):
    """Schema for reading a reference row (API response)."""

    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True, frozen=True)


class CountryRead(LookupRead):
    code_alpha2: str
    code_alpha3: str
    code_numeric: str


class LanguageRead(LookupRead):
    code_alpha2: str


class SkillRead(LookupRead):
    external_id: Optional[str] = None
    info_url: Optional[str] = None
