"""Compliance requirement service: CRUD + status updates gated on documents."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.auth.dependencies import authorize_company
from comptracker.auth.rbac import Action, Resource
from comptracker.core.config import settings
from comptracker.core.errors import NotAuthenticated, NotFound, StoreWriteFailed
from comptracker.models.base import utcnow
from comptracker.models.compliance import RegulatoryRequirement
from comptracker.models.enums import RequirementStatus
from comptracker.modules.compliance.matching import attempt_completion
from comptracker.modules.compliance.store import RecordStore, StatusUpdate, resolve_year_type
from comptracker.modules.compliance.transitions import validate_transition
from comptracker.modules.notifications.dispatch import NotificationDispatcher
from comptracker.schemas.auth import CurrentUser

logger = structlog.get_logger()


@dataclass(frozen=True)
class StatusUpdateResult:
    requirement_id: uuid.UUID
    previous_status: RequirementStatus
    requested_status: RequirementStatus
    final_status: RequirementStatus
    status_reason: str | None = None
    missing_documents: list[str] = field(default_factory=list)
    period_key: str | None = None
    filed_on: datetime | None = None

    @property
    def completion_blocked(self) -> bool:
        return (
            self.requested_status == RequirementStatus.COMPLETED
            and self.final_status != RequirementStatus.COMPLETED
        )


async def update_requirement_status(
    store: RecordStore,
    current_user: CurrentUser | None,
    requirement_id: uuid.UUID,
    new_status: RequirementStatus | str,
    dispatcher: NotificationDispatcher | None = None,
    now: datetime | None = None,
) -> StatusUpdateResult:
    """Validate, gate, persist and announce a requirement status change.

    Auth and transition errors are raised before any write. A completion that
    is missing documents is persisted as ``pending`` and reported through the
    result, not raised. Notification failures never surface here.
    """
    if current_user is None:
        raise NotAuthenticated()

    requested = RequirementStatus(new_status)
    requirement = await store.get_requirement(requirement_id)
    if requirement is None:
        raise NotFound("Requirement not found", details={"requirement_id": str(requirement_id)})

    await authorize_company(store, current_user, requirement.company_id, Action.EDIT, Resource.REQUIREMENT)

    previous = RequirementStatus(requirement.status)
    validate_transition(previous, requested)

    if previous == requested:
        return StatusUpdateResult(
            requirement_id=requirement.id,
            previous_status=previous,
            requested_status=requested,
            final_status=previous,
            status_reason=requirement.status_reason,
            filed_on=requirement.filed_on,
        )

    missing: list[str] = []
    period_key: str | None = None
    if requested == RequirementStatus.COMPLETED:
        company_year_type = None
        if not requirement.year_type:
            company_year_type = await store.get_company_year_convention(requirement.company_id)
        year_type = resolve_year_type(requirement.year_type, company_year_type, settings.DEFAULT_YEAR_TYPE)
        documents = []
        if requirement.required_documents:
            documents = await store.list_uploaded_documents(requirement.company_id)
        outcome = attempt_completion(requirement, documents, year_type)
        final = outcome.final_status
        missing = outcome.missing_documents
        period_key = outcome.period_key
        reason = outcome.reason
    else:
        final = requested
        reason = requirement.status_reason

    if final == RequirementStatus.COMPLETED:
        change = StatusUpdate(
            status=final.value,
            status_reason=None,
            filed_on=now or utcnow(),
            filed_by=current_user.user_id,
            updated_by=current_user.user_id,
        )
    else:
        change = StatusUpdate(
            status=final.value,
            status_reason=reason,
            updated_by=current_user.user_id,
        )

    try:
        await store.persist_status(requirement.id, change)
    except StoreWriteFailed:
        logger.error("compliance.status_write_failed", requirement_id=str(requirement.id))
        raise
    except Exception as exc:
        logger.error(
            "compliance.status_write_failed",
            requirement_id=str(requirement.id),
            error=str(exc),
        )
        raise StoreWriteFailed(
            f"Failed to update requirement status: {exc}",
            details={"requirement_id": str(requirement.id)},
        ) from exc

    result = StatusUpdateResult(
        requirement_id=requirement.id,
        previous_status=previous,
        requested_status=requested,
        final_status=final,
        status_reason=change.status_reason,
        missing_documents=missing,
        period_key=period_key,
        filed_on=change.filed_on,
    )

    if result.completion_blocked:
        logger.info(
            "compliance.completion_blocked",
            requirement_id=str(requirement.id),
            period_key=period_key,
            missing_documents=missing,
        )
    logger.info(
        "compliance.status_updated",
        requirement_id=str(requirement.id),
        previous_status=previous.value,
        requested_status=requested.value,
        final_status=final.value,
        user_id=str(current_user.user_id),
    )

    if dispatcher is not None:
        if result.completion_blocked:
            await dispatcher.completion_blocked(
                company_id=requirement.company_id,
                requirement_id=requirement.id,
                requirement_name=requirement.requirement,
                missing_documents=missing,
            )
        await dispatcher.status_changed(
            company_id=requirement.company_id,
            requirement_id=requirement.id,
            requirement_name=requirement.requirement,
            due_date=requirement.due_date,
            old_status=previous.value,
            new_status=final.value,
        )

    return result


# ── CRUD ──────────────────────────────────────────────────────────────────────


async def list_requirements(
    db: AsyncSession,
    company_id: uuid.UUID,
    status: str | None = None,
    category: str | None = None,
) -> list[RegulatoryRequirement]:
    stmt = select(RegulatoryRequirement).where(
        RegulatoryRequirement.company_id == company_id,
        RegulatoryRequirement.is_deleted.is_(False),
    )
    if status:
        stmt = stmt.where(RegulatoryRequirement.status == status)
    if category:
        stmt = stmt.where(RegulatoryRequirement.category == category)
    stmt = stmt.order_by(RegulatoryRequirement.due_date)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_requirement(db: AsyncSession, requirement_id: uuid.UUID) -> RegulatoryRequirement | None:
    result = await db.execute(
        select(RegulatoryRequirement).where(
            RegulatoryRequirement.id == requirement_id,
            RegulatoryRequirement.is_deleted.is_(False),
        )
    )
    return result.scalar_one_or_none()


async def create_requirement(
    db: AsyncSession, company_id: uuid.UUID, body: Any, user_id: uuid.UUID
) -> RegulatoryRequirement:
    data = body.model_dump(exclude_none=True)
    requirement = RegulatoryRequirement(
        company_id=company_id,
        status=RequirementStatus.NOT_STARTED.value,
        created_by=user_id,
        updated_by=user_id,
        **data,
    )
    db.add(requirement)
    await db.commit()
    await db.refresh(requirement)
    logger.info("compliance.requirement_created", requirement_id=str(requirement.id), company_id=str(company_id))
    return requirement


async def update_requirement(
    db: AsyncSession, requirement: RegulatoryRequirement, body: Any, user_id: uuid.UUID
) -> RegulatoryRequirement:
    for field_name, value in body.model_dump(exclude_unset=True).items():
        setattr(requirement, field_name, value)
    requirement.updated_by = user_id
    await db.commit()
    await db.refresh(requirement)
    return requirement


async def delete_requirement(db: AsyncSession, requirement: RegulatoryRequirement, user_id: uuid.UUID) -> None:
    requirement.is_deleted = True
    requirement.updated_by = user_id
    await db.commit()
    logger.info("compliance.requirement_deleted", requirement_id=str(requirement.id))


def summarize(requirements: list[RegulatoryRequirement], today: date | None = None) -> dict[str, int]:
    """Counts by status plus due-soon buckets for list responses."""
    today = today or date.today()
    counts = {s.value: 0 for s in RequirementStatus}
    for r in requirements:
        counts[RequirementStatus(r.status).value] += 1
    open_items = [r for r in requirements if r.status != RequirementStatus.COMPLETED.value]
    return {
        **counts,
        "total": len(requirements),
        "critical_open": sum(1 for r in open_items if r.is_critical),
        "due_this_week": sum(1 for r in open_items if 0 <= (r.due_date - today).days <= 7),
        "due_this_month": sum(1 for r in open_items if 0 <= (r.due_date - today).days <= 30),
    }
