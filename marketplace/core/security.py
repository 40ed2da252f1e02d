"""
Bearer token handling and the authenticated principal.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, FrozenSet, Iterable, Optional
from uuid import UUID

from jose import JWTError, jwt

from marketplace.core.config import settings
from marketplace.errors import SecurityError
from marketplace.utils.time import utc_now


@dataclass(frozen=True)
class Principal:
    """The caller of an operation: a username, its roles and organizations."""

    username: str
    roles: FrozenSet[str] = field(default_factory=frozenset)
    organization_ids: FrozenSet[UUID] = field(default_factory=frozenset)

    def has_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)


# Used for changes made by the scheduled sweeps and participant counting
SYSTEM_PRINCIPAL = Principal(username="system")


def create_access_token(
    username: str,
    roles: Iterable[str] = (),
    organization_ids: Iterable[UUID] = (),
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed token carrying sub, roles and organizations claims."""
    claims: Dict[str, Any] = {
        "sub": username,
        "roles": list(roles),
        "organizations": [str(organization_id) for organization_id in organization_ids],
    }
    if expires_delta is not None:
        claims["exp"] = int((utc_now() + expires_delta).timestamp())
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Principal:
    """
    Verify a token and build the principal from its claims.

    Raises:
        SecurityError: the token is invalid, expired or has no subject
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise SecurityError("Invalid authentication credentials") from exc

    username = str(claims.get("sub") or "").strip()
    if not username:
        raise SecurityError("Invalid token payload: missing subject")

    roles = claims.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]

    try:
        organization_ids = frozenset(UUID(str(value)) for value in claims.get("organizations") or [])
    except ValueError as exc:
        raise SecurityError("Invalid token payload: malformed organizations claim") from exc

    return Principal(username=username, roles=frozenset(roles), organization_ids=organization_ids)
