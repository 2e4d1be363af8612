"""
Transaction Metrics for the Helios Engine.

Pure functions over a transaction set:
- Deposit / withdrawal totals
- NSF (non-sufficient funds) detection
- Average daily balance with lowest / highest end-of-day balance
- Payment-processor business activity

Rows whose amount was not numeric at extraction time carry amount=None and
are skipped by every monetary calculation.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Sequence

from helios_waterfall.domain.entities import Transaction
from helios_waterfall.domain.exceptions import InvalidStatementDataException

from ..settings import EngineSettings, engine_settings
from .models import BalanceMetrics, BusinessMetrics, NsfMetrics, TransactionTotals, money

ZERO = Decimal("0")


def _valued(transactions: Iterable[Transaction]) -> List[Transaction]:
    return [t for t in transactions if t.amount is not None]


def coerce_opening_balance(opening_balance) -> Decimal:
    """
    Convert a caller-supplied opening balance to Decimal.

    None means "not supplied" and defaults to 0. Anything else that is not
    a finite number is rejected.

    Raises:
        InvalidStatementDataException: If the value is not numeric
    """
    if opening_balance is None:
        return ZERO
    if isinstance(opening_balance, bool):
        raise InvalidStatementDataException("Opening balance must be a number")
    if isinstance(opening_balance, Decimal):
        value = opening_balance
    elif isinstance(opening_balance, (int, float, str)):
        try:
            value = Decimal(str(opening_balance).strip())
        except InvalidOperation:
            raise InvalidStatementDataException(
                f"Opening balance must be a number, got {opening_balance!r}"
            )
    else:
        raise InvalidStatementDataException(
            f"Opening balance must be a number, got {opening_balance!r}"
        )
    if not value.is_finite():
        raise InvalidStatementDataException("Opening balance must be a finite number")
    return value


def calculate_totals(transactions: Sequence[Transaction]) -> TransactionTotals:
    """
    Sum deposits and withdrawals.

    Positive amounts are deposits; the absolute value of every other
    amount is a withdrawal. Both totals are therefore non-negative and
    deposits - withdrawals equals the net of all valued amounts.

    Args:
        transactions: Transactions to total

    Returns:
        Totals rounded to 2 places, plus counts
    """
    deposits = ZERO
    withdrawals = ZERO
    deposit_count = 0
    withdrawal_count = 0

    for txn in _valued(transactions):
        if txn.is_credit:
            deposits += txn.amount
            deposit_count += 1
        else:
            withdrawals += abs(txn.amount)
            withdrawal_count += 1

    return TransactionTotals(
        total_deposits=money(deposits),
        total_withdrawals=money(withdrawals),
        deposit_count=deposit_count,
        withdrawal_count=withdrawal_count,
    )


def is_nsf_transaction(
    transaction: Transaction,
    settings: EngineSettings = engine_settings,
) -> bool:
    """Check whether a description mentions any NSF keyword."""
    description = (transaction.description or "").lower()
    return any(keyword in description for keyword in settings.nsf_keywords)


def count_nsf(
    transactions: Sequence[Transaction],
    settings: EngineSettings = engine_settings,
) -> int:
    """
    Count NSF events.

    A transaction matching several keywords ("NSF RETURNED ITEM") still
    counts once.
    """
    return sum(1 for t in transactions if is_nsf_transaction(t, settings))


def calculate_nsf_metrics(
    transactions: Sequence[Transaction],
    settings: EngineSettings = engine_settings,
) -> NsfMetrics:
    """Count NSF events and total the money they involved."""
    matched = tuple(t for t in transactions if is_nsf_transaction(t, settings))
    total = sum((abs(t.amount) for t in matched if t.amount is not None), ZERO)
    return NsfMetrics(
        nsf_count=len(matched),
        nsf_total=money(total),
        nsf_transactions=matched,
    )


def calculate_average_daily_balance(
    transactions: Sequence[Transaction],
    opening_balance=None,
) -> BalanceMetrics:
    """
    Calculate the average daily balance over the statement's active days.

    Algorithm:
        1. Bucket transaction amounts by calendar day
        2. Walk every day from the first to the last transaction date
           (inclusive), applying that day's net to a running balance
           that starts at the opening balance
        3. Days without transactions carry the prior balance forward
        4. Average the end-of-day balances over the day count

    Args:
        transactions: Statement transactions, in any order
        opening_balance: Balance before the first transaction; None means 0

    Returns:
        BalanceMetrics. With no transactions the average is the opening
        balance and period_days is 0.

    Raises:
        InvalidStatementDataException: If opening_balance is not numeric
    """
    opening = coerce_opening_balance(opening_balance)
    valued = _valued(transactions)

    if not valued:
        return BalanceMetrics(
            average_daily_balance=money(opening),
            lowest_balance=money(opening),
            highest_balance=money(opening),
            period_days=0,
        )

    daily_net: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for txn in sorted(valued, key=lambda t: t.date):
        daily_net[txn.date] += txn.amount

    start_date = min(daily_net)
    end_date = max(daily_net)

    running = opening
    lowest = opening
    highest = opening
    total = ZERO
    current = start_date

    while current <= end_date:
        running += daily_net.get(current, ZERO)
        total += running
        lowest = min(lowest, running)
        highest = max(highest, running)
        current += timedelta(days=1)

    num_days = (end_date - start_date).days + 1

    return BalanceMetrics(
        average_daily_balance=money(total / num_days),
        lowest_balance=money(lowest),
        highest_balance=money(highest),
        period_days=num_days,
    )


def calculate_business_metrics(
    transactions: Sequence[Transaction],
    settings: EngineSettings = engine_settings,
) -> BusinessMetrics:
    """
    Measure payment-processor activity (PayPal, Square, Stripe, ...).

    Business deposits are positive matching amounts; business expenses are
    the absolute value of negative ones.
    """
    keywords = [k.upper() for k in settings.business_keywords]
    matched = [
        t for t in transactions
        if any(k in (t.description or "").upper() for k in keywords)
    ]
    deposits = sum((t.amount for t in matched if t.is_credit), ZERO)
    expenses = sum((-t.amount for t in matched if t.is_debit), ZERO)

    return BusinessMetrics(
        total_business_deposits=money(deposits),
        total_business_expenses=money(expenses),
        business_transaction_count=len(matched),
    )
