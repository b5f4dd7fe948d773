"""Notification Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID | None
    type: str
    title: str
    message: str
    metadata: dict[str, Any]
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class UnreadCountResponse(BaseModel):
    count: int


class UnsubscribeResponse(BaseModel):
    user_id: uuid.UUID
    type: str
    unsubscribed: bool
