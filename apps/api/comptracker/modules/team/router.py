"""Company team API router: list, add, change role, remove (company admins)."""

import uuid

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.auth.dependencies import require_company_permission
from comptracker.auth.rbac import Action, Resource, get_permissions_for_role
from comptracker.core.database import get_db
from comptracker.models.core import User, UserRoleAssignment
from comptracker.models.enums import CompanyRole
from comptracker.modules.team import service
from comptracker.modules.team.schemas import (
    AddTeamMemberRequest,
    TeamListResponse,
    TeamMember,
    UpdateTeamRoleRequest,
)
from comptracker.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/companies/{company_id}/team", tags=["team"])

manage_team = require_company_permission(Action.MANAGE, Resource.TEAM)


def _to_member(assignment: UserRoleAssignment, user: User) -> TeamMember:
    role = CompanyRole(assignment.role)
    return TeamMember(
        id=assignment.id,
        user_id=user.id,
        company_id=assignment.company_id,
        role=role,
        user_email=user.email,
        user_name=user.full_name or user.email.split("@")[0],
        permissions=get_permissions_for_role(role),
        created_at=assignment.created_at,
    )


@router.get("", response_model=TeamListResponse)
async def list_team(
    company_id: uuid.UUID,
    current_user: CurrentUser = Depends(manage_team),
    db: AsyncSession = Depends(get_db),
):
    """List the company's members with their roles."""
    rows = await service.list_members(db, company_id)
    items = [_to_member(assignment, user) for assignment, user in rows]
    return TeamListResponse(items=items, total=len(items))


@router.post("", response_model=TeamMember, status_code=status.HTTP_201_CREATED)
async def add_member(
    company_id: uuid.UUID,
    body: AddTeamMemberRequest,
    current_user: CurrentUser = Depends(manage_team),
    db: AsyncSession = Depends(get_db),
):
    """Add a registered user to the company by email."""
    assignment, user = await service.add_member(db, company_id, body.email, body.role)
    await db.commit()
    await db.refresh(assignment)
    return _to_member(assignment, user)


@router.put("/{role_id}", response_model=TeamMember)
async def update_role(
    company_id: uuid.UUID,
    role_id: uuid.UUID,
    body: UpdateTeamRoleRequest,
    current_user: CurrentUser = Depends(manage_team),
    db: AsyncSession = Depends(get_db),
):
    """Change a team member's role."""
    assignment, user = await service.update_member_role(db, company_id, role_id, body.role)
    await db.commit()
    await db.refresh(assignment)
    return _to_member(assignment, user)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    company_id: uuid.UUID,
    role_id: uuid.UUID,
    current_user: CurrentUser = Depends(manage_team),
    db: AsyncSession = Depends(get_db),
):
    await service.remove_member(db, company_id, role_id, current_user.user_id)
    await db.commit()
