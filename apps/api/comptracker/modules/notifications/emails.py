"""Status-change digest rendering (one email per recipient per flush)."""

from __future__ import annotations

import os
from dataclasses import dataclass

from jinja2 import Environment, FileSystemLoader

from comptracker.core.config import settings
from comptracker.modules.notifications.unsubscribe import (
    UnsubscribeType,
    get_preferences_url,
    get_unsubscribe_url,
)

MAX_ROWS_PER_SECTION = 15

_TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "templates", "email")
_env = Environment(loader=FileSystemLoader(_TEMPLATES_DIR), autoescape=True)

# (title, accent colour, statuses); the last section takes everything else.
_SECTIONS = (
    ("Completed", "#059669", {"completed"}),
    ("Pending", "#D97706", {"pending"}),
    ("Overdue", "#DC2626", {"overdue"}),
)
_OTHER_SECTION = ("Updated", "#6B7280")

_BADGES = {
    "completed": ("#D1FAE5", "#059669"),
    "pending": ("#FEF3C7", "#D97706"),
    "overdue": ("#FEE2E2", "#DC2626"),
    "not_started": ("#F3F4F6", "#6B7280"),
    "upcoming": ("#DBEAFE", "#2563EB"),
}


@dataclass
class StatusChangeItem:
    requirement_id: str
    requirement_name: str
    company_name: str
    due_date: str | None
    old_status: str
    new_status: str

    @classmethod
    def from_payload(cls, payload: dict, company_name: str) -> "StatusChangeItem":
        return cls(
            requirement_id=str(payload.get("requirement_id", "")),
            requirement_name=payload.get("requirement_name") or "Compliance item",
            company_name=company_name,
            due_date=payload.get("due_date"),
            old_status=payload.get("old_status") or "",
            new_status=payload.get("new_status") or "",
        )


def status_label(status: str) -> str:
    return status.replace("_", " ").title()


def build_subject(items: list[StatusChangeItem]) -> str:
    if len(items) == 1:
        return f"Status updated: {items[0].requirement_name}"
    return f"{len(items)} compliance items updated"


def group_sections(items: list[StatusChangeItem]) -> list[dict]:
    """Split items into the non-empty digest sections, capped at MAX_ROWS_PER_SECTION rows."""
    grouped: list[tuple[str, str, list[StatusChangeItem]]] = []
    claimed: set[str] = set()
    for title, accent, statuses in _SECTIONS:
        grouped.append((title, accent, [i for i in items if i.new_status in statuses]))
        claimed |= statuses
    grouped.append((*_OTHER_SECTION, [i for i in items if i.new_status not in claimed]))

    sections = []
    for title, accent, section_items in grouped:
        if not section_items:
            continue
        sections.append({
            "title": title,
            "accent": accent,
            "count": len(section_items),
            "rows": section_items[:MAX_ROWS_PER_SECTION],
            "more": max(0, len(section_items) - MAX_ROWS_PER_SECTION),
        })
    return sections


def render_status_digest(
    recipient_user_id: str,
    recipient_name: str | None,
    items: list[StatusChangeItem],
) -> tuple[str, str]:
    """Return (subject, html) for a batch of status changes."""
    subject = build_subject(items)
    template = _env.get_template("status_digest.html")
    html = template.render(
        title="Status Update" if len(items) == 1 else "Status Updates",
        preheader=subject,
        recipient_name=recipient_name,
        count=len(items),
        sections=group_sections(items),
        badges=_BADGES,
        status_label=status_label,
        dashboard_url=f"{settings.FRONTEND_URL.rstrip('/')}/data-room",
        preferences_url=get_preferences_url(),
        unsubscribe_url=get_unsubscribe_url(recipient_user_id, UnsubscribeType.STATUS_CHANGES),
    )
    return subject, html
