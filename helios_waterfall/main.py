"""
Helios Waterfall - Main Application Entry Point

A lending-risk service that scores small-business bank statements with
the internal Helios Engine and, only when the score and the daily budget
justify it, enriches the score with paid external verification.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from helios_waterfall import __version__
from helios_waterfall.core.config import settings
from helios_waterfall.core.logging import setup_logging
from helios_waterfall.core.metrics import get_metrics, get_metrics_content_type
from helios_waterfall.infrastructure.database import db_manager
from helios_waterfall.presentation.api import api_router
from helios_waterfall.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and, for the database backend, open the spend ledger."""
    setup_logging()
    if settings.budget_backend == "database":
        db_manager.init()
        if settings.db_create_tables:
            await db_manager.create_tables()

    logger = structlog.get_logger(__name__)
    logger.info(
        "application_started",
        version=__version__,
        provider_mode=settings.provider_mode,
        budget_backend=settings.budget_backend,
    )

    yield

    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="Helios Waterfall",
    description="Cost-gated lending-risk analysis of bank statements",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus scrape target; 404 when metrics are disabled."""
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )


@app.get("/", include_in_schema=False)
async def root():
    """Send browsers to the interactive docs."""
    return RedirectResponse(url="/docs")
