"""Email batch-queue flush Celery task, runs every 5 minutes.

Status changes are queued one row per (recipient, change); this task turns
everything queued since the last run into one digest per recipient and
email type. Rows are marked processed once sent or suppressed by the
recipient's preferences; a failed send leaves them for the next run.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog
from celery import shared_task
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.core.config import settings
from comptracker.models.base import utcnow
from comptracker.models.core import Company, EmailBatchQueueItem, EmailPreference
from comptracker.models.enums import EmailType
from comptracker.modules.notifications.emails import StatusChangeItem, render_status_digest

logger = structlog.get_logger()


class EmailSender(Protocol):
    async def send(self, to: list[str], subject: str, html: str) -> None: ...


class ResendEmailSender:
    """Sends through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
        api_url: str | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.sender = sender if sender is not None else settings.RESEND_FROM
        self.api_url = api_url or settings.RESEND_API_URL
        self.timeout = timeout

    async def send(self, to: list[str], subject: str, html: str) -> None:
        if not self.api_key:
            raise RuntimeError("Missing RESEND_API_KEY")
        if not self.sender:
            raise RuntimeError("Missing RESEND_FROM")
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.sender, "to": to, "subject": subject, "html": html},
            )
            resp.raise_for_status()


@dataclass
class FlushResult:
    queued: int = 0
    batches: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    processed: int = 0

    def as_dict(self) -> dict:
        return {
            "status": "ok",
            "queued": self.queued,
            "batches": self.batches,
            "sent": self.sent,
            "skipped": self.skipped,
            "failed": self.failed,
            "processed": self.processed,
        }


def _is_suppressed(prefs: EmailPreference | None, email_type: str) -> bool:
    if prefs is None:
        return False
    if prefs.unsubscribe_all:
        return True
    return email_type == EmailType.STATUS_CHANGE.value and prefs.unsubscribe_status_changes


async def flush_email_queue_once(
    db: AsyncSession,
    sender: EmailSender,
    limit: int | None = None,
) -> FlushResult:
    """Send one digest per (user, email_type) for the oldest unprocessed rows."""
    limit = limit or settings.EMAIL_QUEUE_BATCH_LIMIT
    result = await db.execute(
        select(EmailBatchQueueItem)
        .where(EmailBatchQueueItem.processed_at.is_(None))
        .order_by(EmailBatchQueueItem.created_at.asc())
        .limit(limit)
    )
    rows = list(result.scalars().all())
    outcome = FlushResult(queued=len(rows))
    if not rows:
        logger.debug("email_queue.empty")
        return outcome

    groups: dict[tuple[uuid.UUID, str], list[EmailBatchQueueItem]] = defaultdict(list)
    for row in rows:
        groups[(row.user_id, row.email_type)].append(row)
    outcome.batches = len(groups)

    user_ids = {row.user_id for row in rows}
    prefs_result = await db.execute(select(EmailPreference).where(EmailPreference.user_id.in_(user_ids)))
    prefs_by_user = {p.user_id: p for p in prefs_result.scalars().all()}

    company_ids = {row.company_id for row in rows}
    names_result = await db.execute(select(Company.id, Company.name).where(Company.id.in_(company_ids)))
    company_names = {cid: name for cid, name in names_result.all()}

    processed_ids: list[uuid.UUID] = []
    for (user_id, email_type), items in groups.items():
        if _is_suppressed(prefs_by_user.get(user_id), email_type):
            processed_ids.extend(i.id for i in items)
            outcome.skipped += len(items)
            continue

        recipient = items[0].user_email
        digest_items = [
            StatusChangeItem.from_payload(i.payload or {}, company_names.get(i.company_id, ""))
            for i in items
        ]
        try:
            subject, html = render_status_digest(
                str(user_id), (items[0].payload or {}).get("recipient_name"), digest_items
            )
            await sender.send([recipient], subject, html)
        except Exception as exc:
            logger.warning(
                "email_queue.send_failed",
                user_id=str(user_id),
                email_type=email_type,
                items=len(items),
                error=str(exc),
            )
            outcome.failed += 1
            continue

        processed_ids.extend(i.id for i in items)
        outcome.sent += 1

    if processed_ids:
        await db.execute(
            update(EmailBatchQueueItem)
            .where(EmailBatchQueueItem.id.in_(processed_ids))
            .values(processed_at=utcnow())
        )
        await db.commit()
    outcome.processed = len(processed_ids)

    logger.info("email_queue.flushed", **outcome.as_dict())
    return outcome


@shared_task(name="tasks.flush_email_queue", bind=True, max_retries=3, default_retry_delay=60)
def flush_email_queue(self) -> dict:
    """Batch queued status-change emails into per-recipient digests."""
    from comptracker.core.database import async_session_factory, engine

    async def _run() -> dict:
        try:
            async with async_session_factory() as db:
                outcome = await flush_email_queue_once(db, ResendEmailSender())
            return outcome.as_dict()
        finally:
            await engine.dispose()

    try:
        return asyncio.run(_run())
    except Exception as exc:
        raise self.retry(exc=exc)
