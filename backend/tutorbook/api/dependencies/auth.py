# backend/tutorbook/api/dependencies/auth.py
"""
Caller identity.

Authentication happens at the gateway in front of this service, which
forwards the authenticated user's id in ``X-User-Id``.
"""

import logging

from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)


def get_current_user_id(x_user_id: str = Header(default="", alias="X-User-Id")) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        logger.debug("Request rejected: missing X-User-Id header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user_id
