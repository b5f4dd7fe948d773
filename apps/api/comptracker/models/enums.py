"""String enums shared by models, schemas and the compliance core.

Columns store the plain ``.value`` strings; always coerce with ``Enum(value)``
before using a stored value as a dict or set key.
"""

import enum


# ── Access ───────────────────────────────────────────────────────────────────


class CompanyRole(str, enum.Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


# ── Compliance ───────────────────────────────────────────────────────────────


class RequirementStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    UPCOMING = "upcoming"
    PENDING = "pending"
    OVERDUE = "overdue"
    COMPLETED = "completed"


class ComplianceType(str, enum.Enum):
    ONE_TIME = "one-time"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class YearType(str, enum.Enum):
    FY = "FY"  # Financial year, April–March
    CY = "CY"  # Calendar year, January–December


# ── Notifications ────────────────────────────────────────────────────────────


class NotificationType(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    COMPLETION_BLOCKED = "completion_blocked"
    UPCOMING_DEADLINE = "upcoming_deadline"
    SYSTEM = "system"


class EmailType(str, enum.Enum):
    STATUS_CHANGE = "status_change"
