# backend/tutorbook/routes/v1/health.py
"""
Health check endpoints for monitoring and load balancer probes.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import os

from fastapi import APIRouter, Response
from pydantic import BaseModel

from ...core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

SERVICE_NAME = "tutorbook-api"
API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: str
    git_sha: str


class HealthLiteResponse(BaseModel):
    status: str


def _resolve_git_sha() -> str:
    candidates = [
        os.getenv("GIT_SHA"),
        os.getenv("COMMIT_SHA"),
    ]
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return "unknown"


@router.get("", response_model=HealthResponse)
def health_check(response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Returns basic health status including service info and environment.
    """
    response.headers["X-Commit-Sha"] = _resolve_git_sha()
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        git_sha=_resolve_git_sha(),
    )


@router.get("/lite", response_model=HealthLiteResponse)
def health_check_lite() -> HealthLiteResponse:
    """Lightweight health check that doesn't hit the database."""
    return HealthLiteResponse(status="ok")
