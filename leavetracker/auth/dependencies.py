"""Auth dependencies — JWT validation for the calling admin."""

from __future__ import annotations

import uuid

from fastapi import Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError

from leavetracker.auth.service import decode_access_token


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


async def get_current_admin(request: Request) -> uuid.UUID:
    """Validate the bearer JWT and return the admin id it was issued to."""
    token = _extract_bearer(request)

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    try:
        admin_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token subject.")

    request.state.admin_id = admin_id
    return admin_id
