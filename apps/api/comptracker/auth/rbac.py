"""RBAC permission matrix and checker.

Roles inherit cumulatively: viewer < editor < admin < superadmin.
Permissions are (action, resource_type) tuples in a set for O(1) lookup.
A superadmin is platform-level and holds every permission on every company.
"""

from comptracker.models.enums import CompanyRole


# ── Actions ───────────────────────────────────────────────────────────────


class Action:
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    MANAGE = "manage"


# ── Resource Types ────────────────────────────────────────────────────────


class Resource:
    REQUIREMENT = "requirement"
    TEAM = "team"
    TEMPLATE = "template"


# ── Per-role permission sets ──────────────────────────────────────────────

_VIEWER_PERMS: set[tuple[str, str]] = {
    (Action.VIEW, Resource.REQUIREMENT),
}

_EDITOR_EXTRA: set[tuple[str, str]] = {
    (Action.CREATE, Resource.REQUIREMENT),
    (Action.EDIT, Resource.REQUIREMENT),
}

_ADMIN_EXTRA: set[tuple[str, str]] = {
    (Action.DELETE, Resource.REQUIREMENT),
    (Action.MANAGE, Resource.TEAM),
}

_SUPERADMIN_EXTRA: set[tuple[str, str]] = {
    (Action.MANAGE, Resource.TEMPLATE),
}

# ── Cumulative permission matrix ──────────────────────────────────────────

PERMISSION_MATRIX: dict[CompanyRole, set[tuple[str, str]]] = {
    CompanyRole.VIEWER: _VIEWER_PERMS,
    CompanyRole.EDITOR: _VIEWER_PERMS | _EDITOR_EXTRA,
    CompanyRole.ADMIN: _VIEWER_PERMS | _EDITOR_EXTRA | _ADMIN_EXTRA,
    CompanyRole.SUPERADMIN: _VIEWER_PERMS | _EDITOR_EXTRA | _ADMIN_EXTRA | _SUPERADMIN_EXTRA,
}


# ── Public API ────────────────────────────────────────────────────────────


def check_permission(role: CompanyRole | str | None, action: str, resource_type: str) -> bool:
    """Check if a role has permission for an action on a resource type."""
    if role is None:
        return False
    try:
        perms = PERMISSION_MATRIX.get(CompanyRole(role))
    except ValueError:
        return False
    if perms is None:
        return False
    return (action, resource_type) in perms


def can_manage(role: CompanyRole | str | None) -> bool:
    """Admin or superadmin: may manage the company team."""
    return check_permission(role, Action.MANAGE, Resource.TEAM)


def get_permissions_for_role(role: CompanyRole) -> dict[str, list[str]]:
    """Return permissions grouped by resource type (for API responses)."""
    perms = PERMISSION_MATRIX.get(role, set())
    result: dict[str, list[str]] = {}
    for action, resource in sorted(perms):
        result.setdefault(resource, []).append(action)
    return result
