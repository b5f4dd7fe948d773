"""Compliance requirement, template and uploaded-document models."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, false, true
from sqlalchemy.orm import Mapped, mapped_column

from comptracker.models.base import AuditMixin, BaseModel, JSONType
from comptracker.models.enums import ComplianceType, RequirementStatus


class RegulatoryRequirement(BaseModel, AuditMixin):
    """One compliance obligation owned by a company."""

    __tablename__ = "regulatory_requirements"

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    template_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("compliance_templates.id", ondelete="SET NULL"), nullable=True
    )

    # Classification
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    requirement: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    compliance_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ComplianceType.ONE_TIME.value,
        server_default=ComplianceType.ONE_TIME.value,
    )  # one-time, monthly, quarterly, annual
    year_type: Mapped[str | None] = mapped_column(String(2), nullable=True)  # FY, CY; NULL = company default
    financial_year: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Scheduling
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Status
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequirementStatus.NOT_STARTED.value,
        server_default=RequirementStatus.NOT_STARTED.value,
    )  # not_started, upcoming, pending, overdue, completed
    status_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    required_documents: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    is_critical: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    penalty: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Filing: set iff status == completed
    filed_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    filed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        Index("ix_requirements_company_due", "company_id", "due_date"),
        Index("ix_requirements_company_status", "company_id", "status"),
    )


class ComplianceTemplate(BaseModel, AuditMixin):
    """Reusable recurring definition applied to matching companies by a stored procedure."""

    __tablename__ = "compliance_templates"

    category: Mapped[str] = mapped_column(String(100), nullable=False)
    requirement: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    compliance_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_types: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    industries: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    industry_categories: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    required_documents: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    penalty: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_critical: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    financial_year: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Due-date rule, interpreted per compliance_type by apply_template_to_companies()
    due_date_offset: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())


class CompanyDocument(BaseModel):
    """Metadata of a file in a company's document vault. Read-only to the compliance core."""

    __tablename__ = "company_documents"
    __table_args__ = (
        Index("ix_company_documents_company_period", "company_id", "period_key"),
    )

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    document_type: Mapped[str] = mapped_column(String(255), nullable=False)
    folder_name: Mapped[str | None] = mapped_column(String(255))
    file_name: Mapped[str | None] = mapped_column(String(512))

    # Period tagging: NULL period_key means the document applies to every period
    period_type: Mapped[str | None] = mapped_column(String(20))
    period_key: Mapped[str | None] = mapped_column(String(20))
    period_start: Mapped[date | None] = mapped_column(Date)
    period_end: Mapped[date | None] = mapped_column(Date)
    requirement_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("regulatory_requirements.id", ondelete="SET NULL"), nullable=True
    )
