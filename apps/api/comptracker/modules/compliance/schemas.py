"""Compliance requirement Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from comptracker.models.enums import ComplianceType, RequirementStatus, YearType
from comptracker.schemas.common import PartialUpdate


class RequirementCreate(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    requirement: str = Field(min_length=1, max_length=255)
    description: str | None = None
    due_date: date
    compliance_type: ComplianceType = ComplianceType.ONE_TIME
    year_type: YearType | None = None
    financial_year: str | None = None
    required_documents: list[str] = Field(default_factory=list)
    penalty: str | None = None
    is_critical: bool = False
    template_id: uuid.UUID | None = None


class RequirementUpdate(PartialUpdate):
    """Field edits. Status changes go through the status endpoint only."""

    non_nullable = frozenset(
        {"category", "requirement", "due_date", "compliance_type", "required_documents", "is_critical"}
    )

    category: str | None = Field(default=None, min_length=1, max_length=100)
    requirement: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    due_date: date | None = None
    compliance_type: ComplianceType | None = None
    year_type: YearType | None = None
    financial_year: str | None = None
    required_documents: list[str] | None = None
    penalty: str | None = None
    is_critical: bool | None = None


class RequirementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    template_id: uuid.UUID | None
    category: str
    requirement: str
    description: str | None
    compliance_type: str
    year_type: str | None
    financial_year: str | None
    due_date: date
    status: str
    status_reason: str | None
    required_documents: list[str]
    penalty: str | None
    is_critical: bool
    filed_on: datetime | None
    filed_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    # Computed
    days_until_due: int | None = None


class RequirementListResponse(BaseModel):
    items: list[RequirementResponse]
    summary: dict[str, int]


class StatusUpdateRequest(BaseModel):
    status: RequirementStatus


class StatusUpdateResponse(BaseModel):
    requirement_id: uuid.UUID
    previous_status: RequirementStatus
    requested_status: RequirementStatus
    status: RequirementStatus
    status_reason: str | None
    completion_blocked: bool
    missing_documents: list[str]
    period_key: str | None
    filed_on: datetime | None


class PeriodKeyResponse(BaseModel):
    compliance_type: ComplianceType
    year_type: YearType
    reference_date: date
    period_key: str
    period_start: date
    period_end: date
    financial_year: str
