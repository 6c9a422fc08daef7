# backend/tutorbook/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute

from .core.config import is_running_tests, settings
from .database import Base, engine
from .errors import register_error_handlers
from .routes.v1 import (
    bookings as bookings_v1,
    health as health_v1,
    prometheus as prometheus_v1,
    subject_offerings as subject_offerings_v1,
)

API_TITLE = "Tutorbook API"
API_DESCRIPTION = "Tutor availability, pricing and booking eligibility"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")

    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    # Local SQLite databases are created on first start; other engines are migrated out of band.
    if settings.is_sqlite:
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=engine)

    yield

    logger.info(f"{API_TITLE} shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)
# Register unified error envelope handlers
register_error_handlers(app)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(subject_offerings_v1.router, prefix="/subject-offerings")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(health_v1.router, prefix="/health")

app.include_router(api_v1)

# Infrastructure routes (intentionally unversioned)
app.include_router(health_v1.router, prefix="/health", include_in_schema=False)
app.include_router(prometheus_v1.router)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": f"Welcome to the {API_TITLE}", "docs": "/docs", "version": API_VERSION}
