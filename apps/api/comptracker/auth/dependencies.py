"""FastAPI auth dependencies: get_current_user, company permission checks, superadmin gate."""

import uuid

import sentry_sdk
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.auth.rbac import Action, Resource, check_permission
from comptracker.auth.tokens import verify_access_token
from comptracker.core.database import get_db
from comptracker.core.errors import NotAuthenticated, PermissionDenied
from comptracker.models.core import User
from comptracker.models.enums import CompanyRole
from comptracker.modules.compliance.store import RecordStore, SqlAlchemyRecordStore
from comptracker.schemas.auth import CurrentUser

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=False)


def get_record_store(db: AsyncSession = Depends(get_db)) -> RecordStore:
    return SqlAlchemyRecordStore(db)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    Verify the bearer token and resolve the platform user.

    Decodes JWT -> `sub` claim is the user id -> looks up an active,
    non-deleted User row.
    """
    if credentials is None:
        raise NotAuthenticated()

    try:
        payload = verify_access_token(credentials.credentials)
    except JWTError as e:
        logger.warning("jwt_verification_failed", error=str(e))
        raise NotAuthenticated("Invalid or expired token") from e

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError as e:
        raise NotAuthenticated("Token missing subject claim") from e

    result = await db.execute(
        select(User).where(
            User.id == user_id,
            User.is_active.is_(True),
            User.is_deleted.is_(False),
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("user_not_found", user_id=str(user_id))
        raise NotAuthenticated("User not found or inactive")

    sentry_sdk.set_user({"id": str(user.id)})

    return CurrentUser(user_id=user.id, email=user.email, full_name=user.full_name)


async def authorize_company(
    store: RecordStore,
    current_user: CurrentUser | None,
    company_id: uuid.UUID | None,
    action: str,
    resource_type: str,
) -> CompanyRole:
    """Resolve the caller's role for ``company_id`` and check one permission."""
    if current_user is None:
        raise NotAuthenticated()
    role = await store.get_user_role(current_user.user_id, company_id)
    if not check_permission(role, action, resource_type):
        raise PermissionDenied(
            f"Permission denied: {action} on {resource_type}",
            details={"company_id": str(company_id) if company_id else None, "role": role.value if role else None},
        )
    return role


def require_company_permission(action: str, resource_type: str):
    """
    Dependency factory for routes with a ``company_id`` path parameter.

    Usage:
        @router.get("/companies/{company_id}/requirements")
        async def list_(current_user=Depends(require_company_permission("view", "requirement"))): ...
    """

    async def _check(
        company_id: uuid.UUID,
        current_user: CurrentUser = Depends(get_current_user),
        store: RecordStore = Depends(get_record_store),
    ) -> CurrentUser:
        await authorize_company(store, current_user, company_id, action, resource_type)
        return current_user

    return _check


async def require_superadmin(
    current_user: CurrentUser = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
) -> CurrentUser:
    """Platform-level superadmin only (company_id IS NULL role row)."""
    role = await store.get_user_role(current_user.user_id, None)
    if not check_permission(role, Action.MANAGE, Resource.TEMPLATE):
        raise PermissionDenied("Only superadmins can manage templates")
    return current_user
