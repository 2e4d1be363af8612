"""
Fixtures for integration tests.

Provides:
- Test client for the FastAPI app with provider doubles and a fresh
  in-memory budget ledger
- Throwaway SQLite database for the SQL budget ledger
- Request bodies for the analysis endpoint
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from helios_waterfall.core.dependencies import (
    get_budget_accountant,
    get_verification_providers,
)
from helios_waterfall.domain.interfaces import VerificationProviders
from helios_waterfall.infrastructure.accounting import InMemoryBudgetAccountant
from helios_waterfall.infrastructure.database import DatabaseSessionManager
from helios_waterfall.main import app

from tests.fakes import (
    FakeCreditCheckClient,
    fake_providers,
    healthy_statement,
    statement_body,
    thin_statement,
    unreachable,
)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def session_manager(tmp_path) -> AsyncGenerator[DatabaseSessionManager, None]:
    """DatabaseSessionManager bound to a throwaway SQLite database file."""
    manager = DatabaseSessionManager()
    manager.init(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")

    await manager.create_tables()

    yield manager

    await manager.close()


# =============================================================================
# Provider Fixtures
# =============================================================================

@pytest.fixture
def providers() -> VerificationProviders:
    """Providers that all succeed."""
    return fake_providers()


@pytest.fixture
def failing_credit_providers() -> VerificationProviders:
    """Providers where the credit pull is unreachable."""
    return fake_providers(isoftpull=FakeCreditCheckClient(error=unreachable("isoftpull")))


@pytest.fixture
def accountant() -> InMemoryBudgetAccountant:
    return InMemoryBudgetAccountant()


# =============================================================================
# App Client Fixtures
# =============================================================================

async def _client_for(providers, accountant) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_verification_providers] = lambda: providers
    app.dependency_overrides[get_budget_accountant] = lambda: accountant

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(providers, accountant) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses provider doubles that all succeed
    - Uses a fresh in-memory budget ledger
    """
    async for ac in _client_for(providers, accountant):
        yield ac


@pytest_asyncio.fixture
async def client_with_failing_credit(
    failing_credit_providers, accountant
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client where the credit provider is unreachable."""
    async for ac in _client_for(failing_credit_providers, accountant):
        yield ac


# =============================================================================
# Helper Fixtures
# =============================================================================

@pytest.fixture
def healthy_request() -> dict:
    """Request body for a healthy statement (all providers called)."""
    return statement_body(*healthy_statement())


@pytest.fixture
def thin_request() -> dict:
    """Request body for a thin statement (gate does not proceed)."""
    return statement_body(*thin_statement())
