"""Record-store boundary for the compliance core.

The status pipeline reads and writes only through ``RecordStore``; the
SQLAlchemy implementation is what the API wires in. Each write commits on its
own so a failed side effect never rolls back a persisted status.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.core.errors import StoreWriteFailed
from comptracker.models.base import utcnow
from comptracker.models.compliance import CompanyDocument, RegulatoryRequirement
from comptracker.models.core import (
    Company,
    EmailBatchQueueItem,
    Notification,
    User,
    UserRoleAssignment,
)
from comptracker.models.enums import CompanyRole, EmailType, YearType

logger = structlog.get_logger()

ADMIN_ROLES = (CompanyRole.ADMIN.value, CompanyRole.SUPERADMIN.value)


@dataclass(frozen=True)
class StatusUpdate:
    status: str
    status_reason: str | None
    filed_on: datetime | None = None
    filed_by: uuid.UUID | None = None
    updated_by: uuid.UUID | None = None


@dataclass(frozen=True)
class AdminRecipient:
    user_id: uuid.UUID
    email: str
    full_name: str | None = None


class RecordStore(Protocol):
    async def get_requirement(self, requirement_id: uuid.UUID) -> RegulatoryRequirement | None: ...

    async def get_company_year_convention(self, company_id: uuid.UUID) -> str | None: ...

    async def list_uploaded_documents(self, company_id: uuid.UUID) -> list[CompanyDocument]: ...

    async def persist_status(self, requirement_id: uuid.UUID, change: StatusUpdate) -> None: ...

    async def list_company_admins(self, company_id: uuid.UUID) -> list[AdminRecipient]: ...

    async def write_notification(
        self,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        type: str,
        title: str,
        message: str,
        metadata: dict[str, Any],
    ) -> None: ...

    async def enqueue_email(
        self,
        user_id: uuid.UUID,
        email: str,
        company_id: uuid.UUID,
        payload: dict[str, Any],
        email_type: str = EmailType.STATUS_CHANGE.value,
    ) -> None: ...

    async def get_user_role(self, user_id: uuid.UUID, company_id: uuid.UUID | None) -> CompanyRole | None: ...


class SqlAlchemyRecordStore:
    """RecordStore over an AsyncSession."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_requirement(self, requirement_id: uuid.UUID) -> RegulatoryRequirement | None:
        result = await self.db.execute(
            select(RegulatoryRequirement).where(
                RegulatoryRequirement.id == requirement_id,
                RegulatoryRequirement.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def get_company_year_convention(self, company_id: uuid.UUID) -> str | None:
        result = await self.db.execute(select(Company.year_type).where(Company.id == company_id))
        return result.scalar_one_or_none()

    async def list_uploaded_documents(self, company_id: uuid.UUID) -> list[CompanyDocument]:
        result = await self.db.execute(
            select(CompanyDocument).where(
                CompanyDocument.company_id == company_id,
                CompanyDocument.is_deleted.is_(False),
            )
        )
        return list(result.scalars().all())

    async def persist_status(self, requirement_id: uuid.UUID, change: StatusUpdate) -> None:
        result = await self.db.execute(
            update(RegulatoryRequirement)
            .where(
                RegulatoryRequirement.id == requirement_id,
                RegulatoryRequirement.is_deleted.is_(False),
            )
            .values(
                status=change.status,
                status_reason=change.status_reason,
                filed_on=change.filed_on,
                filed_by=change.filed_by,
                updated_by=change.updated_by,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise StoreWriteFailed(
                "Requirement no longer exists",
                details={"requirement_id": str(requirement_id)},
            )
        await self._commit()

    async def list_company_admins(self, company_id: uuid.UUID) -> list[AdminRecipient]:
        result = await self.db.execute(
            select(User.id, User.email, User.full_name)
            .join(UserRoleAssignment, UserRoleAssignment.user_id == User.id)
            .where(
                UserRoleAssignment.company_id == company_id,
                UserRoleAssignment.role.in_(ADMIN_ROLES),
                UserRoleAssignment.is_deleted.is_(False),
                User.is_active.is_(True),
                User.is_deleted.is_(False),
            )
            .distinct()
        )
        return [AdminRecipient(user_id=row.id, email=row.email, full_name=row.full_name) for row in result]

    async def write_notification(
        self,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        type: str,
        title: str,
        message: str,
        metadata: dict[str, Any],
    ) -> None:
        self.db.add(
            Notification(
                company_id=company_id,
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                metadata_=metadata,
            )
        )
        await self._commit()

    async def enqueue_email(
        self,
        user_id: uuid.UUID,
        email: str,
        company_id: uuid.UUID,
        payload: dict[str, Any],
        email_type: str = EmailType.STATUS_CHANGE.value,
    ) -> None:
        self.db.add(
            EmailBatchQueueItem(
                user_id=user_id,
                user_email=email,
                company_id=company_id,
                email_type=email_type,
                payload=payload,
            )
        )
        await self._commit()

    async def get_user_role(self, user_id: uuid.UUID, company_id: uuid.UUID | None) -> CompanyRole | None:
        """Superadmin (platform-level, company_id NULL) wins over any company role."""
        result = await self.db.execute(
            select(UserRoleAssignment.role, UserRoleAssignment.company_id).where(
                UserRoleAssignment.user_id == user_id,
                UserRoleAssignment.is_deleted.is_(False),
            )
        )
        rows = result.all()
        if any(r.role == CompanyRole.SUPERADMIN.value and r.company_id is None for r in rows):
            return CompanyRole.SUPERADMIN
        if company_id is None:
            return None
        for row in rows:
            if row.company_id == company_id:
                return CompanyRole(row.role)
        return None

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise


def resolve_year_type(requirement_year_type: str | None, company_year_type: str | None, default: str) -> YearType:
    """Requirement setting, then company setting, then the configured default."""
    for candidate in (requirement_year_type, company_year_type, default):
        if candidate:
            try:
                return YearType(str(candidate).upper())
            except ValueError:
                logger.warning("compliance.unknown_year_type", value=candidate)
    return YearType.FY
