"""
FastAPI dependencies for the application.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketplace.core.permissions import check_role_permission
from marketplace.core.security import Principal, decode_access_token
from marketplace.errors import ForbiddenError, SecurityError

# Security scheme for JWT bearer tokens; missing credentials are reported
# through SecurityError so they share the application error shape
security = HTTPBearer(auto_error=False)


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Principal]:
    """Principal from the bearer token, or None for anonymous requests."""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


async def get_current_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    """
    Get the current authenticated principal.

    Raises:
        401: If the token is missing or invalid
    """
    if principal is None:
        raise SecurityError("Not authenticated")
    return principal


def require_roles(*allowed_roles: str):
    """
    Dependency factory to require specific roles.

    Usage:
        @router.get("/{id}")
        async def get_by_id(
            principal: Principal = Depends(require_roles(Roles.ADMIN, Roles.ORGANIZATION_ADMIN)),
        ):
            ...

    Raises:
        403: If the principal doesn't hold one of the roles
    """
    async def check_role(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not check_role_permission(principal, list(allowed_roles)):
            raise ForbiddenError(
                f"Requires one of roles: {', '.join(allowed_roles)}",
                {"required_roles": list(allowed_roles)},
            )
        return principal

    return check_role
