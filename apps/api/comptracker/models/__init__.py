"""SQLAlchemy models package: import all models so Base.metadata is populated."""

from comptracker.models.base import AuditMixin, BaseModel, ModelMixin, TimestampedModel
from comptracker.models.compliance import CompanyDocument, ComplianceTemplate, RegulatoryRequirement
from comptracker.models.core import (
    Company,
    EmailBatchQueueItem,
    EmailPreference,
    Notification,
    User,
    UserRoleAssignment,
)
from comptracker.models.enums import (
    CompanyRole,
    ComplianceType,
    EmailType,
    NotificationType,
    RequirementStatus,
    YearType,
)

__all__ = [
    "AuditMixin",
    "BaseModel",
    "Company",
    "CompanyDocument",
    "CompanyRole",
    "ComplianceTemplate",
    "ComplianceType",
    "EmailBatchQueueItem",
    "EmailPreference",
    "EmailType",
    "ModelMixin",
    "Notification",
    "NotificationType",
    "RegulatoryRequirement",
    "RequirementStatus",
    "TimestampedModel",
    "User",
    "UserRoleAssignment",
    "YearType",
]
