"""Compliance templates API router (platform superadmins only)."""

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.auth.dependencies import require_superadmin
from comptracker.core.database import get_db
from comptracker.modules.compliance.procedures import StoredProcedures
from comptracker.modules.templates import service
from comptracker.modules.templates.schemas import (
    MatchingCompany,
    TemplateCreate,
    TemplateCreateResponse,
    TemplateDetailResponse,
    TemplateResponse,
    TemplateUpdate,
)
from comptracker.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/templates", tags=["templates"])


def get_procedures(db: AsyncSession = Depends(get_db)) -> StoredProcedures:
    return StoredProcedures(db)


def _to_response(template, matching_count: int = 0) -> TemplateResponse:
    resp = TemplateResponse.model_validate(template)
    resp.matching_companies_count = matching_count
    return resp


@router.get("", response_model=list[TemplateResponse])
async def list_templates(
    current_user: CurrentUser = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
    procedures: StoredProcedures = Depends(get_procedures),
):
    """List templates with the number of companies each one currently matches."""
    rows = await service.list_templates(db, procedures)
    return [_to_response(t, count) for t, count in rows]


@router.post("", response_model=TemplateCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    body: TemplateCreate,
    current_user: CurrentUser = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
    procedures: StoredProcedures = Depends(get_procedures),
):
    template, applied, warning = await service.create_template(db, procedures, body, current_user.user_id)
    return TemplateCreateResponse(template=_to_response(template), applied_count=applied, warning=warning)


@router.get("/{template_id}", response_model=TemplateDetailResponse)
async def get_template(
    template_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
    procedures: StoredProcedures = Depends(get_procedures),
):
    template, companies = await service.get_template_detail(db, procedures, template_id)
    return TemplateDetailResponse(
        template=_to_response(template, len(companies)),
        matching_companies=[
            MatchingCompany(
                company_id=c.id,
                company_name=c.name,
                entity_type=c.entity_type,
                industry=c.industry,
            )
            for c in companies
        ],
    )


@router.put("/{template_id}", response_model=TemplateCreateResponse)
async def update_template(
    template_id: uuid.UUID,
    body: TemplateUpdate,
    current_user: CurrentUser = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
    procedures: StoredProcedures = Depends(get_procedures),
):
    """Edit a template and regenerate the requirements it created."""
    template, applied, warning = await service.update_template(
        db, procedures, template_id, body, current_user.user_id
    )
    return TemplateCreateResponse(template=_to_response(template), applied_count=applied, warning=warning)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: uuid.UUID,
    delete_requirements: bool = Query(False),
    current_user: CurrentUser = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    await service.delete_template(db, template_id, current_user.user_id, delete_requirements=delete_requirements)
