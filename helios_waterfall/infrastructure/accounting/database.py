"""SQL implementation of BudgetAccountant."""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helios_waterfall.domain.interfaces import BudgetAccountant
from helios_waterfall.infrastructure.database import (
    DatabaseSessionManager,
    ProviderSpendModel,
    db_manager,
)

from .memory import utc_today

logger = structlog.get_logger(__name__)


class SqlBudgetAccountant(BudgetAccountant):
    """
    Daily spend ledger stored in the provider_spend_ledger table.

    Each reservation runs in its own transaction and locks the day's row
    (SELECT ... FOR UPDATE), so concurrent workers cannot jointly exceed
    the daily cap.
    """

    def __init__(
        self,
        session_manager: DatabaseSessionManager = db_manager,
        today: Callable[[], date] = utc_today,
    ):
        self._db = session_manager
        self._today = today

    async def _get_row(
        self,
        session: AsyncSession,
        day: date,
        for_update: bool = False,
    ) -> ProviderSpendModel | None:
        stmt = select(ProviderSpendModel).where(ProviderSpendModel.spend_date == day)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_daily_usage(self) -> Decimal:
        async with self._db.session() as session:
            row = await self._get_row(session, self._today())
            return Decimal(row.reserved_dollars) if row else Decimal("0")

    async def check_and_reserve(self, amount: Decimal, daily_cap: Decimal) -> Optional[date]:
        day = self._today()
        async with self._db.session() as session:
            row = await self._get_row(session, day, for_update=True)
            if row is None:
                row = ProviderSpendModel(
                    spend_date=day,
                    reserved_dollars=Decimal("0"),
                    reservation_count=0,
                )
                session.add(row)

            used = Decimal(row.reserved_dollars or 0)
            if used + amount > daily_cap:
                logger.info(
                    "budget_reservation_refused",
                    amount=str(amount),
                    daily_usage=str(used),
                    daily_cap=str(daily_cap),
                )
                return None

            row.reserved_dollars = used + amount
            row.reservation_count = (row.reservation_count or 0) + 1
            await session.flush()
            return day

    async def release(self, amount: Decimal, day: Optional[date] = None) -> None:
        if amount <= 0:
            return
        async with self._db.session() as session:
            row = await self._get_row(session, day or self._today(), for_update=True)
            if row is None:
                return
            row.reserved_dollars = max(Decimal("0"), Decimal(row.reserved_dollars) - amount)
            await session.flush()
