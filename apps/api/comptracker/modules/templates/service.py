"""Compliance template service: validation, create-and-apply, edit-and-reapply, delete, listing."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.core.errors import NotFound, TemplateValidationError
from comptracker.models.base import utcnow
from comptracker.models.compliance import ComplianceTemplate, RegulatoryRequirement
from comptracker.models.core import Company
from comptracker.models.enums import ComplianceType
from comptracker.modules.compliance.procedures import StoredProcedures
from comptracker.modules.templates.schemas import TemplateCreate, TemplateUpdate

logger = structlog.get_logger()


def validate_template(body: TemplateCreate) -> None:
    """Raise TemplateValidationError when targeting or the due-date rule is incomplete."""
    if not body.entity_types:
        raise TemplateValidationError("At least one entity type must be selected", details={"field": "entity_types"})
    if not body.industries:
        raise TemplateValidationError("At least one industry must be selected", details={"field": "industries"})
    if not body.industry_categories:
        raise TemplateValidationError(
            "At least one industry category must be selected", details={"field": "industry_categories"}
        )

    kind = ComplianceType(body.compliance_type)
    if kind == ComplianceType.ONE_TIME and body.due_date is None:
        raise TemplateValidationError(
            "Due date is required for one-time compliances", details={"field": "due_date"}
        )
    if kind == ComplianceType.MONTHLY and body.due_date_offset is None:
        raise TemplateValidationError(
            "Due date offset is required for monthly compliances", details={"field": "due_date_offset"}
        )
    if kind in (ComplianceType.QUARTERLY, ComplianceType.ANNUAL) and (
        body.due_month is None or body.due_day is None
    ):
        raise TemplateValidationError(
            f"Due month and day are required for {kind.value} compliances",
            details={"field": "due_month,due_day"},
        )


def _due_date_offset(body: TemplateCreate) -> int | None:
    # Quarterly rules store month-in-quarter and day as an offset in days as well.
    if body.compliance_type == ComplianceType.QUARTERLY and body.due_month and body.due_day:
        return (body.due_month - 1) * 30 + body.due_day
    return body.due_date_offset


async def create_template(
    db: AsyncSession,
    procedures: StoredProcedures,
    body: TemplateCreate,
    user_id: uuid.UUID,
) -> tuple[ComplianceTemplate, int, str | None]:
    """Insert the template, then apply it to matching companies.

    Returns (template, applied_count, warning). A failed apply leaves the
    template in place and reports ``applied_count=0`` with a warning.
    """
    validate_template(body)

    template = ComplianceTemplate(
        category=body.category,
        requirement=body.requirement,
        description=body.description,
        compliance_type=ComplianceType(body.compliance_type).value,
        entity_types=body.entity_types,
        industries=body.industries,
        industry_categories=body.industry_categories,
        required_documents=body.required_documents,
        penalty=body.penalty,
        is_critical=body.is_critical,
        financial_year=body.financial_year,
        due_date_offset=_due_date_offset(body),
        due_month=body.due_month,
        due_day=body.due_day,
        due_date=body.due_date,
        created_by=user_id,
        updated_by=user_id,
    )
    db.add(template)
    await db.commit()
    await db.refresh(template)
    logger.info("templates.created", template_id=str(template.id), compliance_type=template.compliance_type)

    try:
        applied = await procedures.apply_template_to_companies(template.id)
    except Exception as exc:
        await db.rollback()
        await db.refresh(template)
        logger.error("templates.apply_failed", template_id=str(template.id), error=str(exc))
        return template, 0, f"Template created but failed to apply: {exc}"

    return template, applied, None


async def _get_template(db: AsyncSession, template_id: uuid.UUID) -> ComplianceTemplate:
    result = await db.execute(
        select(ComplianceTemplate).where(
            ComplianceTemplate.id == template_id,
            ComplianceTemplate.is_deleted.is_(False),
        )
    )
    template = result.scalar_one_or_none()
    if template is None:
        raise NotFound("Template not found", details={"template_id": str(template_id)})
    return template


async def update_template(
    db: AsyncSession,
    procedures: StoredProcedures,
    template_id: uuid.UUID,
    body: TemplateUpdate,
    user_id: uuid.UUID,
) -> tuple[ComplianceTemplate, int, str | None]:
    """Apply a partial edit, then regenerate the template's requirements.

    The merged template is validated as a whole before anything is written.
    Requirements generated from the old version are soft-deleted and an
    active template is re-applied to the companies it now matches.
    """
    template = await _get_template(db, template_id)
    changes = body.model_dump(exclude_unset=True)
    is_active = changes.pop("is_active", template.is_active)

    merged = TemplateCreate.model_validate(
        {name: getattr(template, name) for name in TemplateCreate.model_fields} | changes
    )
    validate_template(merged)

    for name in changes:
        setattr(template, name, getattr(merged, name))
    template.compliance_type = ComplianceType(merged.compliance_type).value
    template.due_date_offset = _due_date_offset(merged)
    template.is_active = is_active
    template.updated_by = user_id

    result = await db.execute(
        update(RegulatoryRequirement)
        .where(
            RegulatoryRequirement.template_id == template.id,
            RegulatoryRequirement.is_deleted.is_(False),
        )
        .values(is_deleted=True, updated_by=user_id, updated_at=utcnow())
        .execution_options(synchronize_session="evaluate")
    )
    await db.commit()
    await db.refresh(template)
    logger.info(
        "templates.updated",
        template_id=str(template.id),
        fields=sorted(changes),
        requirements_removed=result.rowcount,
    )

    if not template.is_active:
        return template, 0, None

    try:
        applied = await procedures.apply_template_to_companies(template.id)
    except Exception as exc:
        await db.rollback()
        await db.refresh(template)
        logger.error("templates.reapply_failed", template_id=str(template.id), error=str(exc))
        return template, 0, f"Template updated but failed to re-apply: {exc}"

    return template, applied, None


async def delete_template(
    db: AsyncSession, template_id: uuid.UUID, user_id: uuid.UUID, delete_requirements: bool = False
) -> int:
    """Soft-delete a template.

    Its requirements are soft-deleted too when ``delete_requirements`` is set,
    otherwise they stay with the companies, unlinked from the template.
    Returns the number of requirements affected.
    """
    template = await _get_template(db, template_id)

    linked = update(RegulatoryRequirement).where(
        RegulatoryRequirement.template_id == template.id,
        RegulatoryRequirement.is_deleted.is_(False),
    )
    if delete_requirements:
        linked = linked.values(is_deleted=True, updated_by=user_id, updated_at=utcnow())
    else:
        linked = linked.values(template_id=None, updated_by=user_id, updated_at=utcnow())
    result = await db.execute(linked.execution_options(synchronize_session="evaluate"))

    template.is_deleted = True
    template.updated_by = user_id
    await db.commit()
    logger.info(
        "templates.deleted",
        template_id=str(template_id),
        delete_requirements=delete_requirements,
        requirements_affected=result.rowcount,
    )
    return result.rowcount


async def _matching_count(procedures: StoredProcedures, template_id: uuid.UUID) -> int:
    try:
        return len(await procedures.match_companies_to_template(template_id))
    except Exception as exc:
        logger.warning("templates.match_failed", template_id=str(template_id), error=str(exc))
        return 0


async def list_templates(
    db: AsyncSession, procedures: StoredProcedures
) -> list[tuple[ComplianceTemplate, int]]:
    result = await db.execute(
        select(ComplianceTemplate)
        .where(ComplianceTemplate.is_deleted.is_(False))
        .order_by(ComplianceTemplate.created_at.desc())
    )
    templates = list(result.scalars().all())
    return [(t, await _matching_count(procedures, t.id)) for t in templates]


async def get_template_detail(
    db: AsyncSession, procedures: StoredProcedures, template_id: uuid.UUID
) -> tuple[ComplianceTemplate, list[Company]]:
    template = await _get_template(db, template_id)
    rows = await procedures.match_companies_to_template(template_id)
    company_ids = [row["company_id"] for row in rows if row.get("company_id")]
    companies: list[Company] = []
    if company_ids:
        companies_result = await db.execute(select(Company).where(Company.id.in_(company_ids)))
        companies = list(companies_result.scalars().all())
    return template, companies
