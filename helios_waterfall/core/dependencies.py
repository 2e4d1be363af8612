"""Dependency injection for FastAPI."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from helios_waterfall.application.services import WaterfallAnalysisService
from helios_waterfall.core.config import settings
from helios_waterfall.domain.interfaces import BudgetAccountant, VerificationProviders
from helios_waterfall.infrastructure.accounting import (
    InMemoryBudgetAccountant,
    SqlBudgetAccountant,
)
from helios_waterfall.infrastructure.clients import (
    HttpISoftpullClient,
    HttpMiddeskClient,
    HttpSosClient,
    sandbox_providers,
)
from helios_waterfall.service.settings import EngineSettings, engine_settings


# Engine settings
def get_engine_settings() -> EngineSettings:
    """Get the engine thresholds, weights and costs."""
    return engine_settings


# Budget accountant dependencies
@lru_cache
def get_budget_accountant() -> BudgetAccountant:
    """
    Get the process-wide BudgetAccountant.

    Cached so every request reserves against the same ledger.
    """
    if settings.budget_backend == "database":
        return SqlBudgetAccountant()
    return InMemoryBudgetAccountant()


# External client dependencies
@lru_cache
def get_verification_providers() -> VerificationProviders:
    """Get provider clients for the configured provider mode."""
    if settings.provider_mode == "live":
        return VerificationProviders(
            middesk=HttpMiddeskClient(),
            isoftpull=HttpISoftpullClient(),
            sos=HttpSosClient(),
        )
    return sandbox_providers()


# Service dependencies
async def get_waterfall_service(
    providers: Annotated[VerificationProviders, Depends(get_verification_providers)],
    budget_accountant: Annotated[BudgetAccountant, Depends(get_budget_accountant)],
    engine: Annotated[EngineSettings, Depends(get_engine_settings)],
) -> WaterfallAnalysisService:
    """Get a WaterfallAnalysisService instance with all dependencies."""
    return WaterfallAnalysisService(
        providers=providers,
        budget_accountant=budget_accountant,
        settings=engine,
    )
