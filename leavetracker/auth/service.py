"""Access tokens for admins.

Admin sign-up and sign-in live outside this service; it only needs to
issue tokens for tooling and tests, and to verify the ones it is sent.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import jwt

from leavetracker.config import settings


def create_access_token(
    admin_id: uuid.UUID,
    *,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Sign an access token whose subject is ``admin_id``."""
    if expires_in is None:
        expires_in = timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(admin_id),
        "type": "access",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify ``token``; raises ``jose.JWTError`` subclasses on failure."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
