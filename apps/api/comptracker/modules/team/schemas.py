"""Company team Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, field_validator

from comptracker.models.enums import CompanyRole


def _company_role(v: CompanyRole) -> CompanyRole:
    if v == CompanyRole.SUPERADMIN:
        raise ValueError("Superadmin is a platform role and cannot be granted on a company")
    return v


class AddTeamMemberRequest(BaseModel):
    email: EmailStr
    role: CompanyRole = CompanyRole.VIEWER

    @field_validator("role")
    @classmethod
    def role_is_company_scoped(cls, v: CompanyRole) -> CompanyRole:
        return _company_role(v)


class UpdateTeamRoleRequest(BaseModel):
    role: CompanyRole

    @field_validator("role")
    @classmethod
    def role_is_company_scoped(cls, v: CompanyRole) -> CompanyRole:
        return _company_role(v)


class TeamMember(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    company_id: uuid.UUID
    role: CompanyRole
    user_email: str
    user_name: str
    permissions: dict[str, list[str]]
    created_at: datetime


class TeamListResponse(BaseModel):
    items: list[TeamMember]
    total: int
