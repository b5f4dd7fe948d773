"""Recurrence period keys.

A period key names the recurrence bucket a date falls into and is the only
link between a requirement and the documents uploaded for it:

    monthly    YYYY-MM       2025-04
    quarterly  Q{n}-YYYY     Q1-2025
    annual     FY-{start}    FY-2025
    one-time   YYYY-MM-DD    2025-04-15

Keys are already stored on uploaded documents, so the formats here are
frozen. Financial-year Q4 (Jan–Mar) carries the calendar year of the date
itself, and calendar-year annual keys keep the literal ``FY-`` prefix.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime

from comptracker.models.enums import ComplianceType, YearType

FY_START_MONTH = 4


def _coerce_date(value: date | datetime | str) -> date:
    """Plain calendar date; no timezone conversion is ever applied."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _is_calendar_year(year_type: YearType | str | None) -> bool:
    return year_type is not None and str(getattr(year_type, "value", year_type)).upper() == YearType.CY.value


def _kind(compliance_type: ComplianceType | str | None) -> str:
    return str(getattr(compliance_type, "value", compliance_type) or "").lower()


def fiscal_start_year(reference_date: date | datetime | str) -> int:
    d = _coerce_date(reference_date)
    return d.year if d.month >= FY_START_MONTH else d.year - 1


def quarter_number(month: int, year_type: YearType | str | None) -> int:
    if _is_calendar_year(year_type):
        return (month - 1) // 3 + 1
    # Apr–Jun → 1, Jul–Sep → 2, Oct–Dec → 3, Jan–Mar → 4
    return ((month - FY_START_MONTH) % 12) // 3 + 1


def compute_period_key(
    compliance_type: ComplianceType | str | None,
    reference_date: date | datetime | str,
    year_type: YearType | str | None = YearType.FY,
) -> str:
    """Return the canonical period key for ``reference_date``.

    Pure and total: unknown recurrence kinds fall through to the one-time
    format. Callers must use the same ``year_type`` for a company on both
    the upload side and the completeness check, otherwise keys drift apart.
    """
    d = _coerce_date(reference_date)
    kind = _kind(compliance_type)

    if kind == ComplianceType.MONTHLY.value:
        return f"{d.year}-{d.month:02d}"

    if kind == ComplianceType.QUARTERLY.value:
        return f"Q{quarter_number(d.month, year_type)}-{d.year}"

    if kind == ComplianceType.ANNUAL.value:
        if _is_calendar_year(year_type):
            return f"FY-{d.year}"
        return f"FY-{fiscal_start_year(d)}"

    return d.isoformat()


def period_bounds(
    compliance_type: ComplianceType | str | None,
    reference_date: date | datetime | str,
    year_type: YearType | str | None = YearType.FY,
) -> tuple[date, date]:
    """First and last day of the period containing ``reference_date``."""
    d = _coerce_date(reference_date)
    kind = _kind(compliance_type)

    if kind == ComplianceType.MONTHLY.value:
        return date(d.year, d.month, 1), date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])

    if kind == ComplianceType.QUARTERLY.value:
        # FY and CY quarters cover the same three-month blocks; only the numbering differs
        first_month = d.month - (d.month - 1) % 3
        last_month = first_month + 2
        return (
            date(d.year, first_month, 1),
            date(d.year, last_month, calendar.monthrange(d.year, last_month)[1]),
        )

    if kind == ComplianceType.ANNUAL.value:
        if _is_calendar_year(year_type):
            return date(d.year, 1, 1), date(d.year, 12, 31)
        start = fiscal_start_year(d)
        return date(start, FY_START_MONTH, 1), date(start + 1, FY_START_MONTH - 1, 31)

    return d, d


def financial_year_label(reference_date: date | datetime | str) -> str:
    """Display label of the Indian financial year, e.g. ``FY 2024-25``."""
    start = fiscal_start_year(reference_date)
    return f"FY {start}-{(start + 1) % 100:02d}"
