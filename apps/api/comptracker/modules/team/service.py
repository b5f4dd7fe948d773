"""Company team service: members are user_roles rows scoped to one company."""

import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.auth.rbac import can_manage
from comptracker.core.errors import Conflict, NotFound
from comptracker.models.core import User, UserRoleAssignment
from comptracker.models.enums import CompanyRole

logger = structlog.get_logger()

MANAGER_ROLES = [r.value for r in CompanyRole if can_manage(r)]


async def list_members(db: AsyncSession, company_id: uuid.UUID) -> list[tuple[UserRoleAssignment, User]]:
    result = await db.execute(
        select(UserRoleAssignment, User)
        .join(User, User.id == UserRoleAssignment.user_id)
        .where(
            UserRoleAssignment.company_id == company_id,
            UserRoleAssignment.is_deleted.is_(False),
            User.is_deleted.is_(False),
        )
        .order_by(UserRoleAssignment.created_at)
    )
    return [(assignment, user) for assignment, user in result.all()]


async def get_member(
    db: AsyncSession, company_id: uuid.UUID, role_id: uuid.UUID
) -> tuple[UserRoleAssignment, User]:
    result = await db.execute(
        select(UserRoleAssignment, User)
        .join(User, User.id == UserRoleAssignment.user_id)
        .where(
            UserRoleAssignment.id == role_id,
            UserRoleAssignment.company_id == company_id,
            UserRoleAssignment.is_deleted.is_(False),
        )
    )
    row = result.first()
    if row is None:
        raise NotFound("Team member not found", details={"role_id": str(role_id)})
    return row[0], row[1]


async def _manager_count(db: AsyncSession, company_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(UserRoleAssignment)
        .where(
            UserRoleAssignment.company_id == company_id,
            UserRoleAssignment.role.in_(MANAGER_ROLES),
            UserRoleAssignment.is_deleted.is_(False),
        )
    )
    return result.scalar_one()


async def add_member(
    db: AsyncSession, company_id: uuid.UUID, email: str, role: CompanyRole
) -> tuple[UserRoleAssignment, User]:
    """Grant an existing user a role on the company."""
    result = await db.execute(
        select(User).where(
            func.lower(User.email) == email.strip().lower(),
            User.is_deleted.is_(False),
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound(
            "User not found. They need to sign up first before you can add them to the team.",
            details={"email": email},
        )

    existing = await db.execute(
        select(UserRoleAssignment.id).where(
            UserRoleAssignment.user_id == user.id,
            UserRoleAssignment.company_id == company_id,
            UserRoleAssignment.is_deleted.is_(False),
        )
    )
    if existing.first() is not None:
        raise Conflict("This user is already a member of this company", details={"user_id": str(user.id)})

    assignment = UserRoleAssignment(user_id=user.id, company_id=company_id, role=role.value)
    db.add(assignment)
    await db.flush()
    logger.info("team.member_added", company_id=str(company_id), user_id=str(user.id), role=role.value)
    return assignment, user


async def update_member_role(
    db: AsyncSession, company_id: uuid.UUID, role_id: uuid.UUID, role: CompanyRole
) -> tuple[UserRoleAssignment, User]:
    assignment, user = await get_member(db, company_id, role_id)
    if can_manage(assignment.role) and not can_manage(role) and await _manager_count(db, company_id) <= 1:
        raise Conflict("A company must keep at least one admin", details={"role_id": str(role_id)})
    assignment.role = role.value
    logger.info("team.role_changed", company_id=str(company_id), user_id=str(user.id), role=role.value)
    return assignment, user


async def remove_member(
    db: AsyncSession, company_id: uuid.UUID, role_id: uuid.UUID, actor_id: uuid.UUID
) -> None:
    assignment, user = await get_member(db, company_id, role_id)
    if assignment.user_id == actor_id and await _manager_count(db, company_id) <= 1:
        raise Conflict(
            "You cannot remove your own access as you are the only admin",
            details={"role_id": str(role_id)},
        )
    await db.delete(assignment)
    logger.info("team.member_removed", company_id=str(company_id), user_id=str(user.id))
