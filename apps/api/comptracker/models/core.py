"""Core models: Company, User, UserRoleAssignment, Notification, email queue and preferences."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, false, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from comptracker.models.base import BaseModel, JSONType, TimestampedModel
from comptracker.models.enums import YearType


class Company(BaseModel):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    year_type: Mapped[str] = mapped_column(
        String(2), nullable=False, default=YearType.FY.value, server_default=YearType.FY.value
    )
    entity_type: Mapped[str | None] = mapped_column(String(100))
    industry: Mapped[str | None] = mapped_column(String(100))

    roles: Mapped[list["UserRoleAssignment"]] = relationship(back_populates="company")

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name={self.name!r})>"


class User(BaseModel):
    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_email", "email", unique=True),
    )

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(default=True, server_default=true(), nullable=False)

    roles: Mapped[list["UserRoleAssignment"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"


class UserRoleAssignment(BaseModel):
    """Company-scoped role. A superadmin row with company_id NULL is platform-wide."""

    __tablename__ = "user_roles"
    __table_args__ = (
        Index("ix_user_roles_user_company", "user_id", "company_id"),
        Index("ix_user_roles_company_role", "company_id", "role"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # superadmin, admin, editor, viewer

    user: Mapped["User"] = relationship(back_populates="roles")
    company: Mapped["Company | None"] = relationship(back_populates="roles")


class Notification(TimestampedModel):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_company_id", "company_id"),
        Index("ix_notifications_user_id_is_read", "user_id", "is_read"),
    )

    company_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )
    is_read: Mapped[bool] = mapped_column(default=False, server_default=false(), nullable=False)


class EmailBatchQueueItem(TimestampedModel):
    """One queued email; the flush task batches rows per recipient into a digest."""

    __tablename__ = "email_batch_queue"
    __table_args__ = (
        Index("ix_email_batch_queue_pending", "processed_at", "created_at"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    user_email: Mapped[str] = mapped_column(String(320), nullable=False)
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    email_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class EmailPreference(BaseModel):
    __tablename__ = "email_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    unsubscribe_status_changes: Mapped[bool] = mapped_column(
        default=False, server_default=false(), nullable=False
    )
    unsubscribe_reminders: Mapped[bool] = mapped_column(
        default=False, server_default=false(), nullable=False
    )
    unsubscribe_all: Mapped[bool] = mapped_column(default=False, server_default=false(), nullable=False)
