"""
Risk Analysis for the Helios Engine.

Combines transaction metrics into a bounded 0-100 risk score (higher is
riskier) and a categorical risk level. The weights are fixed business
constants exposed through EngineSettings; the defaults are:

    +30 per NSF event
    +20 if the average daily balance is below $1,000
    +25 if withdrawals exceed 80% of deposits
    +40 if the average daily balance is negative

Each rule only ever adds points, so the score never decreases as the NSF
count or the withdrawal ratio grows.
"""

from decimal import Decimal
from typing import Optional, Sequence

from helios_waterfall.domain.entities import Transaction

from ..settings import EngineSettings, engine_settings
from .models import BalanceMetrics, RiskLevel, RiskResult, TransactionTotals
from .transaction_metrics import (
    calculate_average_daily_balance,
    calculate_totals,
    count_nsf,
)


def calculate_withdrawal_ratio(totals: TransactionTotals) -> Decimal:
    """
    Withdrawals as a fraction of deposits.

    A statement with no deposits is treated as maximally risky (ratio 1),
    whether or not it has withdrawals.
    """
    if totals.total_deposits <= 0:
        return Decimal("1")
    return totals.total_withdrawals / totals.total_deposits


def risk_level_for_score(
    risk_score: int,
    settings: EngineSettings = engine_settings,
) -> RiskLevel:
    """Map a 0-100 risk score to a risk level."""
    if risk_score >= settings.risk_level_high:
        return RiskLevel.HIGH
    elif risk_score >= settings.risk_level_medium:
        return RiskLevel.MEDIUM
    elif risk_score >= settings.risk_level_low:
        return RiskLevel.LOW
    return RiskLevel.VERY_LOW


def score_risk(
    nsf_count: int,
    average_daily_balance: Decimal,
    withdrawal_ratio: Decimal,
    settings: EngineSettings = engine_settings,
) -> int:
    """
    Apply the additive risk rules and clamp to [0, 100].

    Args:
        nsf_count: Number of NSF events
        average_daily_balance: Average daily balance in dollars
        withdrawal_ratio: Withdrawals / deposits

    Returns:
        Risk score from 0-100
    """
    score = settings.risk_nsf_points * max(0, nsf_count)

    if average_daily_balance < settings.risk_low_balance_threshold:
        score += settings.risk_low_balance_points

    if withdrawal_ratio > settings.risk_withdrawal_ratio_threshold:
        score += settings.risk_withdrawal_ratio_points

    if average_daily_balance < 0:
        score += settings.risk_negative_balance_points

    return max(0, min(100, score))


def analyze_risk(
    transactions: Sequence[Transaction],
    opening_balance=None,
    settings: EngineSettings = engine_settings,
    totals: Optional[TransactionTotals] = None,
    balance: Optional[BalanceMetrics] = None,
) -> RiskResult:
    """
    Produce the internal risk assessment for a statement.

    Precomputed totals / balance metrics may be passed in to avoid
    recomputation; otherwise they are derived from the transactions.

    Raises:
        InvalidStatementDataException: If opening_balance is not numeric
    """
    if totals is None:
        totals = calculate_totals(transactions)
    if balance is None:
        balance = calculate_average_daily_balance(transactions, opening_balance)

    nsf_count = count_nsf(transactions, settings)
    withdrawal_ratio = calculate_withdrawal_ratio(totals)

    risk_score = score_risk(
        nsf_count=nsf_count,
        average_daily_balance=balance.average_daily_balance,
        withdrawal_ratio=withdrawal_ratio,
        settings=settings,
    )

    return RiskResult(
        risk_score=risk_score,
        risk_level=risk_level_for_score(risk_score, settings),
        nsf_count=nsf_count,
        average_daily_balance=balance.average_daily_balance,
        lowest_balance=balance.lowest_balance,
        highest_balance=balance.highest_balance,
        period_days=balance.period_days,
        withdrawal_ratio=withdrawal_ratio,
        total_deposits=totals.total_deposits,
        total_withdrawals=totals.total_withdrawals,
    )
