"""Auth package: token verification, dependencies, RBAC."""

from comptracker.auth.dependencies import (
    authorize_company,
    get_current_user,
    require_company_permission,
    require_superadmin,
)
from comptracker.auth.rbac import can_manage, check_permission, get_permissions_for_role

__all__ = [
    "authorize_company",
    "can_manage",
    "check_permission",
    "get_current_user",
    "get_permissions_for_role",
    "require_company_permission",
    "require_superadmin",
]
