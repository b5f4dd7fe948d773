"""Tests for auth dependency functions and token verification."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError, jwt

from comptracker.auth.dependencies import (
    authorize_company,
    get_current_user,
    require_company_permission,
    require_superadmin,
)
from comptracker.auth.rbac import Action, Resource
from comptracker.auth.tokens import verify_access_token
from comptracker.core.errors import NotAuthenticated, PermissionDenied
from comptracker.models.core import User
from comptracker.models.enums import CompanyRole
from conftest import (
    ADMIN_USER_ID,
    EDITOR_USER_ID,
    SAMPLE_COMPANY_ID,
    SUPERADMIN_USER_ID,
    current_user,
)

SECRET = "test-secret"


def _token(sub, secret=SECRET, aud="authenticated"):
    return jwt.encode({"sub": str(sub), "aud": aud}, secret, algorithm="HS256")


def _bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def _store(role):
    store = MagicMock()
    store.get_user_role = AsyncMock(return_value=role)
    return store


@pytest.fixture
def jwt_secret():
    with patch("comptracker.auth.tokens.settings") as mock_settings:
        mock_settings.AUTH_JWT_SECRET = SECRET
        mock_settings.AUTH_JWT_ALGORITHM = "HS256"
        mock_settings.AUTH_JWT_AUDIENCE = "authenticated"
        yield mock_settings


class TestVerifyAccessToken:
    def test_valid_token(self, jwt_secret):
        assert verify_access_token(_token(ADMIN_USER_ID))["sub"] == str(ADMIN_USER_ID)

    def test_wrong_secret(self, jwt_secret):
        with pytest.raises(JWTError):
            verify_access_token(_token(ADMIN_USER_ID, secret="other"))

    def test_wrong_audience(self, jwt_secret):
        with pytest.raises(JWTError):
            verify_access_token(_token(ADMIN_USER_ID, aud="someone-else"))

    def test_unconfigured_secret(self, jwt_secret):
        jwt_secret.AUTH_JWT_SECRET = ""
        with pytest.raises(JWTError):
            verify_access_token(_token(ADMIN_USER_ID))


@pytest.mark.anyio
class TestGetCurrentUser:
    async def test_missing_credentials(self, db):
        with pytest.raises(NotAuthenticated):
            await get_current_user(credentials=None, db=db)

    async def test_invalid_token(self, db, jwt_secret):
        with pytest.raises(NotAuthenticated) as exc:
            await get_current_user(credentials=_bearer("not-a-jwt"), db=db)
        assert exc.value.message == "Invalid or expired token"

    async def test_non_uuid_subject(self, db, jwt_secret):
        with pytest.raises(NotAuthenticated):
            await get_current_user(credentials=_bearer(_token("clerk_123")), db=db)

    async def test_resolves_active_user(self, db, seeded, jwt_secret):
        user = await get_current_user(credentials=_bearer(_token(ADMIN_USER_ID)), db=db)
        assert user.user_id == ADMIN_USER_ID
        assert user.email == "admin@acme.test"
        assert user.full_name == "Asha Admin"

    async def test_inactive_user_rejected(self, db, seeded, jwt_secret):
        admin = await db.get(User, ADMIN_USER_ID)
        admin.is_active = False
        await db.commit()
        with pytest.raises(NotAuthenticated):
            await get_current_user(credentials=_bearer(_token(ADMIN_USER_ID)), db=db)

    async def test_unknown_user_rejected(self, db, seeded, jwt_secret):
        with pytest.raises(NotAuthenticated):
            await get_current_user(credentials=_bearer(_token(uuid.uuid4())), db=db)


@pytest.mark.anyio
class TestAuthorizeCompany:
    async def test_missing_caller(self):
        with pytest.raises(NotAuthenticated):
            await authorize_company(_store(CompanyRole.ADMIN), None, SAMPLE_COMPANY_ID, "view", "requirement")

    async def test_allowed_returns_role(self):
        role = await authorize_company(
            _store(CompanyRole.EDITOR), current_user(EDITOR_USER_ID), SAMPLE_COMPANY_ID,
            Action.EDIT, Resource.REQUIREMENT,
        )
        assert role == CompanyRole.EDITOR

    async def test_non_member_is_denied(self):
        with pytest.raises(PermissionDenied) as exc:
            await authorize_company(
                _store(None), current_user(EDITOR_USER_ID), SAMPLE_COMPANY_ID,
                Action.VIEW, Resource.REQUIREMENT,
            )
        assert exc.value.status_code == 403
        assert exc.value.details["role"] is None

    async def test_viewer_cannot_edit(self):
        with pytest.raises(PermissionDenied):
            await authorize_company(
                _store(CompanyRole.VIEWER), current_user(EDITOR_USER_ID), SAMPLE_COMPANY_ID,
                Action.EDIT, Resource.REQUIREMENT,
            )


@pytest.mark.anyio
class TestRequireCompanyPermission:
    async def test_factory_checks_against_path_company(self):
        store = _store(CompanyRole.ADMIN)
        checker = require_company_permission(Action.DELETE, Resource.REQUIREMENT)
        user = current_user(ADMIN_USER_ID)
        result = await checker(company_id=SAMPLE_COMPANY_ID, current_user=user, store=store)
        assert result is user
        store.get_user_role.assert_awaited_once_with(ADMIN_USER_ID, SAMPLE_COMPANY_ID)

    async def test_factory_denies(self):
        checker = require_company_permission(Action.DELETE, Resource.REQUIREMENT)
        with pytest.raises(PermissionDenied):
            await checker(
                company_id=SAMPLE_COMPANY_ID, current_user=current_user(EDITOR_USER_ID),
                store=_store(CompanyRole.EDITOR),
            )


@pytest.mark.anyio
class TestRequireSuperadmin:
    async def test_superadmin_passes(self):
        user = current_user(SUPERADMIN_USER_ID)
        store = _store(CompanyRole.SUPERADMIN)
        assert await require_superadmin(current_user=user, store=store) is user
        store.get_user_role.assert_awaited_once_with(SUPERADMIN_USER_ID, None)

    async def test_company_admin_is_rejected(self):
        with pytest.raises(PermissionDenied):
            await require_superadmin(current_user=current_user(ADMIN_USER_ID), store=_store(None))
