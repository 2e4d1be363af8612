"""
Helios Engine orchestration.

Runs the internal (free) analysis stage for one statement:
1. Validate the transaction list
2. Totals, NSF, balance and business metrics
3. Risk analysis and income stability (independent of each other)
4. Veritas score

The result is an immutable HeliosAnalysis snapshot.
"""

from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Sequence

import structlog

from helios_waterfall.domain.entities import StatementContext, Transaction
from helios_waterfall.domain.exceptions import InvalidTransactionDataException

from ..settings import EngineSettings, engine_settings
from .income_stability import analyze_income_stability
from .models import HeliosAnalysis
from .risk_analysis import analyze_risk
from .transaction_metrics import (
    calculate_average_daily_balance,
    calculate_business_metrics,
    calculate_nsf_metrics,
    calculate_totals,
    coerce_opening_balance,
)
from .veritas import calculate_veritas_score

logger = structlog.get_logger(__name__)


def validate_transactions(transactions: Any) -> List[Transaction]:
    """
    Reject malformed transaction lists before any scoring.

    Raises:
        InvalidTransactionDataException: If the input is not a sequence of
            Transaction objects with real dates and decimal amounts
    """
    if transactions is None or isinstance(transactions, (str, bytes, dict)):
        raise InvalidTransactionDataException("Transactions must be a list")
    try:
        items = list(transactions)
    except TypeError:
        raise InvalidTransactionDataException("Transactions must be a list")

    for index, txn in enumerate(items):
        if not isinstance(txn, Transaction):
            raise InvalidTransactionDataException("not a transaction", index=index)
        if not isinstance(txn.date, date):
            raise InvalidTransactionDataException("date is missing or invalid", index=index)
        if txn.amount is not None and not isinstance(txn.amount, Decimal):
            raise InvalidTransactionDataException("amount must be a decimal", index=index)
    return items


def statement_duration_days(
    context: StatementContext,
    balance_period_days: int,
) -> int:
    """Statement length: the declared period when known, else the transaction span."""
    declared = context.period_days
    if declared is not None and declared > 0:
        return declared
    return balance_period_days


def run_helios_engine(
    transactions: Sequence[Transaction],
    statement_context: Optional[StatementContext] = None,
    settings: EngineSettings = engine_settings,
) -> HeliosAnalysis:
    """
    Run the full internal analysis for a statement.

    Args:
        transactions: Normalized statement transactions
        statement_context: Opening balance and period; defaults to an empty context
        settings: Engine settings (uses defaults if not provided)

    Returns:
        The HeliosAnalysis snapshot

    Raises:
        InvalidTransactionDataException: If the transaction list is malformed
        InvalidStatementDataException: If the opening balance is not numeric
    """
    context = statement_context or StatementContext()
    items = validate_transactions(transactions)
    opening_balance = coerce_opening_balance(context.opening_balance)

    totals = calculate_totals(items)
    nsf = calculate_nsf_metrics(items, settings)
    balance = calculate_average_daily_balance(items, opening_balance)
    business = calculate_business_metrics(items, settings)

    risk = analyze_risk(
        items,
        opening_balance,
        settings=settings,
        totals=totals,
        balance=balance,
    )
    income = analyze_income_stability(items, settings)
    veritas = calculate_veritas_score(risk, income, items, business, settings)

    analysis = HeliosAnalysis(
        totals=totals,
        nsf=nsf,
        balance=balance,
        risk=risk,
        income_stability=income,
        business=business,
        veritas=veritas,
        transaction_count=len(items),
        statement_days=statement_duration_days(context, balance.period_days),
        opening_balance=opening_balance,
        period_start=context.period_start,
        period_end=context.period_end,
    )

    logger.info(
        "helios_analysis_completed",
        transaction_count=analysis.transaction_count,
        veritas_score=veritas.score,
        grade=veritas.grade,
        risk_score=risk.risk_score,
        risk_level=risk.risk_level.value,
        nsf_count=risk.nsf_count,
        stability_score=income.stability_score,
    )

    return analysis
