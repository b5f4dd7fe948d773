"""Compliance requirements API router."""

from __future__ import annotations

import uuid
from datetime import date

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.auth.dependencies import (
    authorize_company,
    get_current_user,
    get_record_store,
    require_company_permission,
)
from comptracker.auth.rbac import Action, Resource
from comptracker.core.database import get_db
from comptracker.core.errors import NotFound
from comptracker.models.compliance import RegulatoryRequirement
from comptracker.models.enums import ComplianceType, RequirementStatus, YearType
from comptracker.modules.compliance import service
from comptracker.modules.compliance.periods import compute_period_key, financial_year_label, period_bounds
from comptracker.modules.compliance.schemas import (
    PeriodKeyResponse,
    RequirementCreate,
    RequirementListResponse,
    RequirementResponse,
    RequirementUpdate,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from comptracker.modules.compliance.store import RecordStore
from comptracker.modules.notifications.dispatch import NotificationDispatcher
from comptracker.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/compliance", tags=["compliance"])


def get_dispatcher(store: RecordStore = Depends(get_record_store)) -> NotificationDispatcher:
    return NotificationDispatcher(store)


def _enrich(requirement: RegulatoryRequirement) -> RequirementResponse:
    resp = RequirementResponse.model_validate(requirement)
    resp.days_until_due = (requirement.due_date - date.today()).days
    return resp


async def _load_authorized(
    db: AsyncSession,
    store: RecordStore,
    current_user: CurrentUser,
    requirement_id: uuid.UUID,
    action: str,
) -> RegulatoryRequirement:
    requirement = await service.get_requirement(db, requirement_id)
    if requirement is None:
        raise NotFound("Requirement not found", details={"requirement_id": str(requirement_id)})
    await authorize_company(store, current_user, requirement.company_id, action, Resource.REQUIREMENT)
    return requirement


@router.get("/period-key", response_model=PeriodKeyResponse)
async def get_period_key(
    compliance_type: ComplianceType = Query(...),
    reference_date: date = Query(..., alias="date"),
    year_type: YearType = Query(YearType.FY),
    current_user: CurrentUser = Depends(get_current_user),
):
    start, end = period_bounds(compliance_type, reference_date, year_type)
    return PeriodKeyResponse(
        compliance_type=compliance_type,
        year_type=year_type,
        reference_date=reference_date,
        period_key=compute_period_key(compliance_type, reference_date, year_type),
        period_start=start,
        period_end=end,
        financial_year=financial_year_label(reference_date),
    )


@router.get("/companies/{company_id}/requirements", response_model=RequirementListResponse)
async def list_requirements(
    company_id: uuid.UUID,
    status: RequirementStatus | None = Query(None),
    category: str | None = Query(None),
    current_user: CurrentUser = Depends(require_company_permission(Action.VIEW, Resource.REQUIREMENT)),
    db: AsyncSession = Depends(get_db),
):
    requirements = await service.list_requirements(
        db, company_id, status=status.value if status else None, category=category
    )
    return RequirementListResponse(
        items=[_enrich(r) for r in requirements],
        summary=service.summarize(requirements),
    )


@router.post(
    "/companies/{company_id}/requirements",
    response_model=RequirementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_requirement(
    company_id: uuid.UUID,
    body: RequirementCreate,
    current_user: CurrentUser = Depends(require_company_permission(Action.CREATE, Resource.REQUIREMENT)),
    db: AsyncSession = Depends(get_db),
):
    requirement = await service.create_requirement(db, company_id, body, current_user.user_id)
    return _enrich(requirement)


@router.get("/requirements/{requirement_id}", response_model=RequirementResponse)
async def get_requirement(
    requirement_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_record_store),
):
    requirement = await _load_authorized(db, store, current_user, requirement_id, Action.VIEW)
    return _enrich(requirement)


@router.patch("/requirements/{requirement_id}", response_model=RequirementResponse)
async def update_requirement(
    requirement_id: uuid.UUID,
    body: RequirementUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_record_store),
):
    requirement = await _load_authorized(db, store, current_user, requirement_id, Action.EDIT)
    requirement = await service.update_requirement(db, requirement, body, current_user.user_id)
    return _enrich(requirement)


@router.patch("/requirements/{requirement_id}/status", response_model=StatusUpdateResponse)
async def update_requirement_status(
    requirement_id: uuid.UUID,
    body: StatusUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = await service.update_requirement_status(
        store, current_user, requirement_id, body.status, dispatcher=dispatcher
    )
    return StatusUpdateResponse(
        requirement_id=result.requirement_id,
        previous_status=result.previous_status,
        requested_status=result.requested_status,
        status=result.final_status,
        status_reason=result.status_reason,
        completion_blocked=result.completion_blocked,
        missing_documents=result.missing_documents,
        period_key=result.period_key,
        filed_on=result.filed_on,
    )


@router.delete("/requirements/{requirement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_requirement(
    requirement_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_record_store),
):
    requirement = await _load_authorized(db, store, current_user, requirement_id, Action.DELETE)
    await service.delete_requirement(db, requirement, current_user.user_id)
