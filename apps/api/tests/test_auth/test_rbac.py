"""Tests for the RBAC permission matrix and check_permission function."""

import pytest

from comptracker.auth.rbac import (
    PERMISSION_MATRIX,
    Action,
    Resource,
    can_manage,
    check_permission,
    get_permissions_for_role,
)
from comptracker.models.enums import CompanyRole


class TestPermissionMatrix:
    """Verify the static permission matrix is correctly built."""

    def test_all_roles_present(self):
        assert set(PERMISSION_MATRIX.keys()) == {
            CompanyRole.VIEWER,
            CompanyRole.EDITOR,
            CompanyRole.ADMIN,
            CompanyRole.SUPERADMIN,
        }

    def test_role_hierarchy_sizes(self):
        """Higher roles have strictly more permissions than lower ones."""
        counts = [
            len(PERMISSION_MATRIX[role])
            for role in (CompanyRole.VIEWER, CompanyRole.EDITOR, CompanyRole.ADMIN, CompanyRole.SUPERADMIN)
        ]
        assert counts == sorted(counts)
        assert len(set(counts)) == 4

    def test_viewer_is_subset_of_editor(self):
        assert PERMISSION_MATRIX[CompanyRole.VIEWER].issubset(PERMISSION_MATRIX[CompanyRole.EDITOR])

    def test_editor_is_subset_of_admin(self):
        assert PERMISSION_MATRIX[CompanyRole.EDITOR].issubset(PERMISSION_MATRIX[CompanyRole.ADMIN])

    def test_admin_is_subset_of_superadmin(self):
        assert PERMISSION_MATRIX[CompanyRole.ADMIN].issubset(PERMISSION_MATRIX[CompanyRole.SUPERADMIN])


class TestCheckPermission:
    """Test the check_permission function."""

    # ── Viewer permissions ────────────────────────────────────────────

    def test_viewer_can_view_requirements(self):
        assert check_permission(CompanyRole.VIEWER, Action.VIEW, Resource.REQUIREMENT) is True

    def test_viewer_cannot_edit_requirements(self):
        assert check_permission(CompanyRole.VIEWER, Action.EDIT, Resource.REQUIREMENT) is False

    # ── Editor permissions ────────────────────────────────────────────

    def test_editor_can_edit_requirements(self):
        assert check_permission(CompanyRole.EDITOR, Action.EDIT, Resource.REQUIREMENT) is True

    def test_editor_cannot_delete_requirements(self):
        assert check_permission(CompanyRole.EDITOR, Action.DELETE, Resource.REQUIREMENT) is False

    # ── Admin / superadmin ────────────────────────────────────────────

    def test_admin_can_delete_requirements(self):
        assert check_permission(CompanyRole.ADMIN, Action.DELETE, Resource.REQUIREMENT) is True

    def test_only_admins_manage_the_team(self):
        assert check_permission(CompanyRole.EDITOR, Action.MANAGE, Resource.TEAM) is False
        assert check_permission(CompanyRole.ADMIN, Action.MANAGE, Resource.TEAM) is True

    def test_only_superadmin_manages_templates(self):
        assert check_permission(CompanyRole.ADMIN, Action.MANAGE, Resource.TEMPLATE) is False
        assert check_permission(CompanyRole.SUPERADMIN, Action.MANAGE, Resource.TEMPLATE) is True

    # ── Edge cases ────────────────────────────────────────────────────

    def test_plain_string_role_is_coerced(self):
        assert check_permission("editor", Action.EDIT, Resource.REQUIREMENT) is True

    def test_no_role_has_no_permissions(self):
        assert check_permission(None, Action.VIEW, Resource.REQUIREMENT) is False

    def test_unknown_role_has_no_permissions(self):
        assert check_permission("owner", Action.VIEW, Resource.REQUIREMENT) is False

    def test_unknown_action_is_denied(self):
        assert check_permission(CompanyRole.SUPERADMIN, "approve", Resource.REQUIREMENT) is False


@pytest.mark.parametrize(
    "role,manageable",
    [
        (CompanyRole.VIEWER, False),
        (CompanyRole.EDITOR, False),
        (CompanyRole.ADMIN, True),
        (CompanyRole.SUPERADMIN, True),
        ("admin", True),
        (None, False),
    ],
)
def test_can_manage_is_team_management(role, manageable):
    assert can_manage(role) is manageable


def test_get_permissions_for_role_groups_by_resource():
    perms = get_permissions_for_role(CompanyRole.EDITOR)
    assert perms[Resource.REQUIREMENT] == sorted([Action.CREATE, Action.EDIT, Action.VIEW])
    assert Resource.TEMPLATE not in perms
