"""Compliance template Pydantic schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from comptracker.models.enums import ComplianceType
from comptracker.schemas.common import PartialUpdate


class TemplateCreate(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    requirement: str = Field(min_length=1, max_length=255)
    description: str | None = None
    compliance_type: ComplianceType
    entity_types: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)
    industry_categories: list[str] = Field(default_factory=list)
    required_documents: list[str] = Field(default_factory=list)
    penalty: str | None = None
    is_critical: bool = False
    financial_year: str | None = None
    due_date_offset: int | None = None
    due_month: int | None = Field(default=None, ge=1, le=12)
    due_day: int | None = Field(default=None, ge=1, le=31)
    due_date: date | None = None


class TemplateUpdate(PartialUpdate):
    """Partial template edit. Saving re-generates the template's requirements."""

    non_nullable = frozenset(
        {
            "category",
            "requirement",
            "compliance_type",
            "entity_types",
            "industries",
            "industry_categories",
            "required_documents",
            "is_critical",
            "is_active",
        }
    )

    category: str | None = Field(default=None, min_length=1, max_length=100)
    requirement: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    compliance_type: ComplianceType | None = None
    entity_types: list[str] | None = None
    industries: list[str] | None = None
    industry_categories: list[str] | None = None
    required_documents: list[str] | None = None
    penalty: str | None = None
    is_critical: bool | None = None
    financial_year: str | None = None
    due_date_offset: int | None = None
    due_month: int | None = Field(default=None, ge=1, le=12)
    due_day: int | None = Field(default=None, ge=1, le=31)
    due_date: date | None = None
    is_active: bool | None = None


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    category: str
    requirement: str
    description: str | None
    compliance_type: str
    entity_types: list[str]
    industries: list[str]
    industry_categories: list[str]
    required_documents: list[str]
    penalty: str | None
    is_critical: bool
    financial_year: str | None
    due_date_offset: int | None
    due_month: int | None
    due_day: int | None
    due_date: date | None
    is_active: bool
    created_at: datetime

    matching_companies_count: int = 0


class TemplateCreateResponse(BaseModel):
    template: TemplateResponse
    applied_count: int
    warning: str | None = None


class MatchingCompany(BaseModel):
    company_id: uuid.UUID
    company_name: str | None = None
    entity_type: str | None = None
    industry: str | None = None


class TemplateDetailResponse(BaseModel):
    template: TemplateResponse
    matching_companies: list[MatchingCompany]
