"""Read-only context objects that accompany a transaction set."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class StatementContext:
    """
    Statement metadata supplied by the extraction collaborator.

    Used both for balance math (opening balance, period) and for
    building external verification requests (business identity fields).
    """

    opening_balance: Decimal = Decimal("0")
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    account_id: Optional[str] = None
    business_name: Optional[str] = None
    tax_id: Optional[str] = None
    ssn: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None

    @property
    def period_days(self) -> Optional[int]:
        """Inclusive number of days in the statement period, if known."""
        if self.period_start is None or self.period_end is None:
            return None
        return (self.period_end - self.period_start).days + 1


@dataclass(frozen=True)
class UserContext:
    """The requesting user/business on whose behalf the analysis runs."""

    user_id: str
    statement_id: Optional[str] = None
    owner_name: Optional[str] = None
