"""Signed one-click unsubscribe tokens.

Token = urlsafe-base64(``user_id:type:sig``) without padding, where ``sig`` is
the first 16 hex chars of HMAC-SHA256(secret, ``user_id:type``).
"""

import base64
import binascii
import hashlib
import hmac
import uuid
from enum import Enum

from comptracker.core.config import settings


class UnsubscribeType(str, Enum):
    STATUS_CHANGES = "status_changes"
    REMINDERS = "reminders"
    ALL = "all"


def _signature(payload: str, secret: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()[:16]


def _secret() -> str:
    return settings.UNSUBSCRIBE_SECRET or settings.SECRET_KEY


def generate_unsubscribe_token(
    user_id: uuid.UUID | str, type: UnsubscribeType | str, secret: str | None = None
) -> str:
    payload = f"{user_id}:{UnsubscribeType(type).value}"
    raw = f"{payload}:{_signature(payload, secret or _secret())}"
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def verify_unsubscribe_token(
    token: str, secret: str | None = None
) -> tuple[uuid.UUID, UnsubscribeType] | None:
    """Return (user_id, type) for a valid token, else None."""
    try:
        padded = token + "=" * (-len(token) % 4)
        decoded = base64.urlsafe_b64decode(padded.encode()).decode()
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    parts = decoded.split(":")
    if len(parts) != 3:
        return None
    user_id, type_, signature = parts
    expected = _signature(f"{user_id}:{type_}", secret or _secret())
    if not hmac.compare_digest(signature.encode(), expected.encode()):
        return None
    try:
        return uuid.UUID(user_id), UnsubscribeType(type_)
    except ValueError:
        return None


def get_unsubscribe_url(user_id: uuid.UUID | str, type: UnsubscribeType | str) -> str:
    """Footer link to the confirmation page, which checks the token with
    GET /v1/notifications/unsubscribe and applies it with POST."""
    token = generate_unsubscribe_token(user_id, type)
    return f"{settings.FRONTEND_URL.rstrip('/')}/unsubscribe?token={token}"


def get_preferences_url() -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/settings/email-preferences"
