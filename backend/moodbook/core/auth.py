"""
Authentication helpers for verifying Supabase access tokens.

The rest of the app only ever sees the resolved identity dict; credentials stop here.
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt

from moodbook.core.config import settings
from moodbook.core.errors import AuthenticationError

logger = logging.getLogger(__name__)


def _extract_bearer_token(request: Request) -> str:
    """
    Extract 'Bearer <token>' from Authorization header.
    """
    auth = request.headers.get("Authorization")
    if not auth:
        raise AuthenticationError("Missing Authorization header")

    parts = auth.split()
    if len(parts) != 2:
        raise AuthenticationError("Invalid Authorization header format. Expected 'Bearer <token>'")

    scheme, token = parts
    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid auth scheme. Expected 'Bearer'")

    return token


def _decode_supabase_jwt(token: str) -> Dict[str, Any]:
    """
    Decode and validate a Supabase access token.

    Assumes HS256 using SUPABASE_JWT_SECRET. Validates issuer and audience.
    """
    try:
        settings.require_supabase()
    except RuntimeError as e:
        logger.error("Supabase configuration missing: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase environment variables not configured. Authentication is not available.",
        )

    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.SUPABASE_JWT_AUD,
            issuer=settings.SUPABASE_JWT_ISS,
        )
    except JWTError as e:
        logger.warning("JWT validation failed: %s", e)
        raise AuthenticationError("Token validation failed")


def get_current_user(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency: returns the authenticated Supabase identity.

    - Reads Authorization: Bearer <token>
    - Verifies JWT
    - Extracts sub (Supabase user id) and email
    """
    token = _extract_bearer_token(request)
    payload = _decode_supabase_jwt(token)

    auth_user_id = payload.get("sub")
    if not auth_user_id:
        raise AuthenticationError("Token missing subject (sub)")

    return {
        "id": str(auth_user_id),
        "email": payload.get("email") or "",
        "auth_user_id": str(auth_user_id),
        "claims": payload,
    }
