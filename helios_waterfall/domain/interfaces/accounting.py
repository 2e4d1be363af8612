"""Budget accounting interface for paid provider spend."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional


class BudgetAccountant(ABC):
    """
    Abstract ledger of external verification spend per calendar day.

    Implementations may use process memory or the database. Reservations
    must be atomic so concurrent analyses cannot jointly overspend the
    daily cap.
    """

    @abstractmethod
    async def get_daily_usage(self) -> Decimal:
        """
        Return dollars already reserved for today.

        Returns:
            Today's reserved spend
        """
        ...

    @abstractmethod
    async def check_and_reserve(self, amount: Decimal, daily_cap: Decimal) -> Optional[date]:
        """
        Reserve `amount` against today's spend if the cap allows it.

        Args:
            amount: Dollars to reserve
            daily_cap: Maximum spend allowed for the day

        Returns:
            The day the reservation was booked against, or None if it would
            exceed the cap
        """
        ...

    @abstractmethod
    async def release(self, amount: Decimal, day: Optional[date] = None) -> None:
        """
        Return unused reserved dollars to a day's budget.

        Args:
            amount: Dollars to release; non-positive amounts are ignored
            day: Day the reservation was booked against; defaults to today
        """
        ...
