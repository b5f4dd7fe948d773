"""Notifications API router: list, read, unread count, unsubscribe."""

import math
import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from comptracker.auth.dependencies import get_current_user
from comptracker.core.database import get_db
from comptracker.modules.notifications import service
from comptracker.modules.notifications.schemas import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
    UnsubscribeResponse,
)
from comptracker.modules.notifications.unsubscribe import verify_unsubscribe_token
from comptracker.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/notifications", tags=["notifications"])


# ── Helper ───────────────────────────────────────────────────────────────────


def _notification_to_response(n) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        company_id=n.company_id,
        type=n.type,
        title=n.title,
        message=n.message,
        metadata=n.metadata_ or {},
        is_read=n.is_read,
        created_at=n.created_at,
    )


# ── Fixed-path routes (before /{id}) ─────────────────────────────────────────


@router.get(
    "",
    response_model=NotificationListResponse,
)
async def list_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    is_read: bool | None = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List notifications for the current user."""
    notifications, total = await service.list_notifications(
        db, current_user.user_id, is_read=is_read, page=page, page_size=page_size,
    )
    return NotificationListResponse(
        items=[_notification_to_response(n) for n in notifications],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=max(1, math.ceil(total / page_size)),
    )


@router.put(
    "/read-all",
    response_model=dict,
)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark all notifications as read."""
    count = await service.mark_all_read(db, current_user.user_id)
    await db.commit()
    return {"marked_read": count}


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
)
async def get_unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get unread notification count."""
    count = await service.get_unread_count(db, current_user.user_id)
    return UnreadCountResponse(count=count)


def _verify_or_400(token: str):
    decoded = verify_unsubscribe_token(token)
    if decoded is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This unsubscribe link is invalid or expired.",
        )
    return decoded


@router.get(
    "/unsubscribe",
    response_model=UnsubscribeResponse,
)
async def check_unsubscribe(token: str = Query(..., min_length=1)):
    """Validate an email footer link for the confirmation page. Changes nothing."""
    user_id, type_ = _verify_or_400(token)
    return UnsubscribeResponse(user_id=user_id, type=type_.value, unsubscribed=False)


@router.post(
    "/unsubscribe",
    response_model=UnsubscribeResponse,
)
async def unsubscribe(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """Apply an unsubscribe (confirmation form or RFC 8058 one-click). The signed token is the credential."""
    user_id, type_ = _verify_or_400(token)
    await service.apply_unsubscribe(db, user_id, type_)
    await db.commit()
    logger.info("notifications.unsubscribed", user_id=str(user_id), type=type_.value)
    return UnsubscribeResponse(user_id=user_id, type=type_.value, unsubscribed=True)

# ── Parameterized routes (after fixed paths) ─────────────────────────────────


@router.put(
    "/{notification_id}/read",
    response_model=dict,
)
async def mark_read(
    notification_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a single notification as read."""
    success = await service.mark_read(db, notification_id, current_user.user_id)
    if not success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    await db.commit()
    return {"success": True}
