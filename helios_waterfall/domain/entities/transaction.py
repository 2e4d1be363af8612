"""Transaction entity representing a parsed bank-statement line."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Transaction:
    """
    Immutable representation of a bank-statement transaction.

    Attributes:
        date: Posting date of the transaction. A datetime is truncated to
            its calendar day.
        description: Statement description as extracted
        amount: Signed amount in dollars (positive = credit, negative = debit).
            None when the extracted amount was not numeric; such rows are
            skipped by monetary calculations.
        balance: Running balance printed on the statement, if any
        category: Category assigned upstream, if any
    """

    date: date
    description: str = ""
    amount: Optional[Decimal] = None
    balance: Optional[Decimal] = None
    category: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.date, datetime):
            object.__setattr__(self, "date", self.date.date())

    @property
    def is_credit(self) -> bool:
        """Check if this is a credit (money in)."""
        return self.amount is not None and self.amount > 0

    @property
    def is_debit(self) -> bool:
        """Check if this is a debit (money out)."""
        return self.amount is not None and self.amount < 0
