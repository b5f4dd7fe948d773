"""Notification service: list, mark-read, unread count, email preferences."""

import uuid

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.models.core import EmailPreference, Notification
from comptracker.modules.notifications.unsubscribe import UnsubscribeType

logger = structlog.get_logger()


async def list_notifications(
    db: AsyncSession,
    user_id: uuid.UUID,
    is_read: bool | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Notification], int]:
    """List notifications for a user, newest first."""
    base = select(Notification).where(Notification.user_id == user_id)
    if is_read is not None:
        base = base.where(Notification.is_read.is_(is_read))

    count_stmt = select(func.count()).select_from(base.subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    stmt = base.order_by(Notification.created_at.desc())
    stmt = stmt.offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(stmt)
    notifications = list(result.scalars().all())

    return notifications, total


async def mark_read(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """Mark a single notification as read. Returns True if found."""
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True)
    )
    return result.rowcount > 0


async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Mark all unread notifications as read. Returns count updated."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount


async def get_unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    stmt = select(func.count()).where(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    result = await db.execute(stmt)
    return result.scalar() or 0


async def apply_unsubscribe(
    db: AsyncSession, user_id: uuid.UUID, type: UnsubscribeType
) -> EmailPreference:
    """Record an unsubscribe in the user's email preferences (created on first use)."""
    result = await db.execute(select(EmailPreference).where(EmailPreference.user_id == user_id))
    prefs = result.scalar_one_or_none()
    if prefs is None:
        prefs = EmailPreference(user_id=user_id)
        db.add(prefs)

    if type == UnsubscribeType.ALL:
        prefs.unsubscribe_all = True
    elif type == UnsubscribeType.STATUS_CHANGES:
        prefs.unsubscribe_status_changes = True
    elif type == UnsubscribeType.REMINDERS:
        prefs.unsubscribe_reminders = True

    await db.flush()
    logger.info("notifications.unsubscribed", user_id=str(user_id), type=type.value)
    return prefs
