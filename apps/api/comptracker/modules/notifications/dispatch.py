"""Best-effort notification and email fan-out after a requirement status write.

Nothing here may fail a status update: each store call runs through
``run_best_effort``, which logs and swallows the error. Emails are queued,
not sent; the flush task batches them per recipient.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any

import structlog

from comptracker.core.errors import ComplianceError, EmailQueueFailed, NotificationFailed
from comptracker.models.enums import EmailType, NotificationType
from comptracker.modules.compliance.store import AdminRecipient, RecordStore

logger = structlog.get_logger()


async def run_best_effort(
    operation: Callable[[], Awaitable[Any]],
    error_cls: type[ComplianceError],
    event: str,
    **context: Any,
) -> bool:
    """Await ``operation``; log failures as ``error_cls`` instead of raising."""
    try:
        await operation()
        return True
    except Exception as exc:  # noqa: BLE001
        failure = error_cls(str(exc), details=context)
        logger.warning(event, error=failure.error_code, message=failure.message, **context)
        return False


def _status_label(status: str) -> str:
    return status.replace("_", " ").title()


class NotificationDispatcher:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def _admins(self, company_id: uuid.UUID) -> list[AdminRecipient]:
        admins: list[AdminRecipient] = []

        async def _load() -> None:
            admins.extend(await self.store.list_company_admins(company_id))

        await run_best_effort(
            _load, NotificationFailed, "notifications.admin_lookup_failed", company_id=str(company_id)
        )
        return admins

    async def completion_blocked(
        self,
        *,
        company_id: uuid.UUID,
        requirement_id: uuid.UUID,
        requirement_name: str,
        missing_documents: list[str],
    ) -> int:
        """Tell every company admin why a completion was downgraded. Returns notifications written."""
        missing = ", ".join(missing_documents)
        sent = 0
        for admin in await self._admins(company_id):
            ok = await run_best_effort(
                lambda admin=admin: self.store.write_notification(
                    company_id,
                    admin.user_id,
                    NotificationType.COMPLETION_BLOCKED.value,
                    "Compliance completion blocked",
                    f'"{requirement_name}" cannot be completed. Missing documents: {missing}',
                    {
                        "requirement_id": str(requirement_id),
                        "missing_documents": list(missing_documents),
                    },
                ),
                NotificationFailed,
                "notifications.dispatch_failed",
                requirement_id=str(requirement_id),
                user_id=str(admin.user_id),
            )
            sent += int(ok)
        logger.info(
            "notifications.completion_blocked_sent",
            requirement_id=str(requirement_id),
            recipients=sent,
        )
        return sent

    async def status_changed(
        self,
        *,
        company_id: uuid.UUID,
        requirement_id: uuid.UUID,
        requirement_name: str,
        due_date: date | None,
        old_status: str,
        new_status: str,
    ) -> tuple[int, int]:
        """Notify admins of ``old -> new`` and queue one email per distinct address.

        Returns (notifications written, emails queued). No-op when the status
        did not actually change.
        """
        if old_status == new_status:
            return 0, 0

        admins = await self._admins(company_id)
        notified = 0
        for admin in admins:
            ok = await run_best_effort(
                lambda admin=admin: self.store.write_notification(
                    company_id,
                    admin.user_id,
                    NotificationType.STATUS_CHANGE.value,
                    "Compliance status updated",
                    f'"{requirement_name}" changed from {_status_label(old_status)} '
                    f"to {_status_label(new_status)}",
                    {
                        "requirement_id": str(requirement_id),
                        "old_status": old_status,
                        "new_status": new_status,
                    },
                ),
                NotificationFailed,
                "notifications.dispatch_failed",
                requirement_id=str(requirement_id),
                user_id=str(admin.user_id),
            )
            notified += int(ok)

        queued = 0
        seen: set[str] = set()
        for admin in admins:
            key = (admin.email or "").strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)
            payload = {
                "requirement_id": str(requirement_id),
                "requirement_name": requirement_name,
                "due_date": due_date.isoformat() if due_date else None,
                "old_status": old_status,
                "new_status": new_status,
                "recipient_name": admin.full_name,
            }
            ok = await run_best_effort(
                lambda admin=admin, payload=payload: self.store.enqueue_email(
                    admin.user_id, admin.email, company_id, payload, EmailType.STATUS_CHANGE.value
                ),
                EmailQueueFailed,
                "notifications.email_queue_failed",
                requirement_id=str(requirement_id),
                user_id=str(admin.user_id),
            )
            queued += int(ok)

        logger.info(
            "notifications.status_change_sent",
            requirement_id=str(requirement_id),
            old_status=old_status,
            new_status=new_status,
            notified=notified,
            emails_queued=queued,
        )
        return notified, queued
