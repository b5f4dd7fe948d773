"""Access-token verification.

The hosted auth provider signs HS256 tokens with a shared secret; ``sub`` is
the user's UUID.
"""

import structlog
from jose import JWTError, jwt

from comptracker.core.config import settings

logger = structlog.get_logger()


def verify_access_token(token: str) -> dict:
    """Decode and verify a bearer token. Raises JWTError when invalid."""
    if not settings.AUTH_JWT_SECRET:
        raise JWTError("AUTH_JWT_SECRET is not configured")

    options = {"verify_aud": settings.AUTH_JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        settings.AUTH_JWT_SECRET,
        algorithms=[settings.AUTH_JWT_ALGORITHM],
        audience=settings.AUTH_JWT_AUDIENCE,
        options=options,
    )
