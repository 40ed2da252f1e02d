"""
Role-based permission helpers for the marketplace.

Defines roles and the organization-scoped authorization check.
"""

from typing import List, Optional
from uuid import UUID

from marketplace.core.security import Principal
from marketplace.errors import ForbiddenError


class Roles:
    """Standard roles in the marketplace."""
    ADMIN = "Admin"
    ORGANIZATION_ADMIN = "OrganizationAdmin"

    # Roles allowed on the administrative opportunity endpoints
    ADMINISTRATIVE = [ADMIN, ORGANIZATION_ADMIN]

    # admin: Full access to every organization's opportunities
    # organization admin: Manage opportunities of their own organizations


def check_role_permission(principal: Optional[Principal], allowed_roles: List[str]) -> bool:
    """
    Check if the principal holds one of the allowed roles.

    Args:
        principal: The caller, None when anonymous
        allowed_roles: List of roles that are permitted

    Returns:
        True if the principal has permission, False otherwise
    """
    if principal is None or not allowed_roles:
        return False
    return principal.has_role(*allowed_roles)


def check_is_admin(principal: Principal) -> bool:
    """Check if principal is admin."""
    return principal.has_role(Roles.ADMIN)


def ensure_organization_authorization(principal: Principal, organization_id: UUID) -> None:
    """
    Raise 403 unless the principal may manage the organization.

    Admins may manage every organization; organization admins only the
    organizations listed in their token.

    Raises:
        ForbiddenError: if the principal lacks access
    """
    if check_is_admin(principal):
        return
    if principal.has_role(Roles.ORGANIZATION_ADMIN) and organization_id in principal.organization_ids:
        return
    raise ForbiddenError(
        f"Not authorized to manage organization '{organization_id}'",
        {"organization_id": str(organization_id)},
    )
