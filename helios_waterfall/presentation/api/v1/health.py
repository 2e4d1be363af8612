"""Liveness endpoint reporting the active provider and ledger backends."""

from fastapi import APIRouter
from pydantic import BaseModel

from helios_waterfall import __version__
from helios_waterfall.core.config import settings

health_router = APIRouter()


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    provider_mode: str
    budget_backend: str


@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Liveness plus the configured provider mode and budget backend.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        provider_mode=settings.provider_mode,
        budget_backend=settings.budget_backend,
    )
