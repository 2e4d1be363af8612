"""In-process implementation of BudgetAccountant."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, Optional

import structlog

from helios_waterfall.domain.interfaces import BudgetAccountant

logger = structlog.get_logger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class InMemoryBudgetAccountant(BudgetAccountant):
    """
    Daily spend ledger held in process memory.

    Suitable for a single worker. An asyncio lock makes check-and-reserve
    atomic across concurrent analyses in the same event loop.
    """

    def __init__(
        self,
        initial_usage: Decimal = Decimal("0"),
        today: Callable[[], date] = utc_today,
    ):
        self._today = today
        self._usage: Dict[date, Decimal] = {}
        self._lock = asyncio.Lock()
        if initial_usage:
            self._usage[today()] = Decimal(initial_usage)

    async def get_daily_usage(self) -> Decimal:
        return self._usage.get(self._today(), Decimal("0"))

    async def check_and_reserve(self, amount: Decimal, daily_cap: Decimal) -> Optional[date]:
        async with self._lock:
            day = self._today()
            self._prune(day)
            used = self._usage.get(day, Decimal("0"))
            if used + amount > daily_cap:
                logger.info(
                    "budget_reservation_refused",
                    amount=str(amount),
                    daily_usage=str(used),
                    daily_cap=str(daily_cap),
                )
                return None
            self._usage[day] = used + amount
            return day

    async def release(self, amount: Decimal, day: Optional[date] = None) -> None:
        if amount <= 0:
            return
        async with self._lock:
            day = day or self._today()
            if day not in self._usage:
                return
            self._usage[day] = max(Decimal("0"), self._usage[day] - amount)

    def _prune(self, today: date) -> None:
        # Yesterday stays so reservations spanning midnight can still be released
        cutoff = today - timedelta(days=1)
        for day in [d for d in self._usage if d < cutoff]:
            del self._usage[day]
