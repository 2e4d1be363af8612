"""
Income Stability Analysis for the Helios Engine.

Scores how regular the cadence of income-like deposits is. A W-2 employee
paid every other Friday scores near 100; sporadic transfers score low.

Income-like deposits are credits of at least the materiality threshold
($50 by default) whose description mentions an income keyword (payroll,
direct dep, ach credit, ...).

Score composition:
    base         max(0, 100 - CV * 100)  where CV = stddev / mean interval
    interval     up to +10 for a mean close to weekly / bi-weekly / monthly
    consistency  up to +10 for a small interval standard deviation
    data         up to +5 for the number of observed intervals
capped at 100. The analysis reads no clock and has no side effects.
"""

import math
from decimal import Decimal
from typing import List, Sequence

from helios_waterfall.domain.entities import Transaction

from ..settings import EngineSettings, engine_settings
from .models import IncomeStabilityResult, IntervalStatistics, StabilityLevel, money

STABILITY_DESCRIPTIONS = {
    StabilityLevel.VERY_STABLE: "Highly regular income pattern with minimal variation",
    StabilityLevel.STABLE: "Generally consistent income pattern with some variation",
    StabilityLevel.MODERATE: "Moderately stable income with noticeable variation",
    StabilityLevel.UNSTABLE: "Irregular income pattern with significant variation",
    StabilityLevel.VERY_UNSTABLE: "Highly irregular income pattern",
}


def filter_income_transactions(
    transactions: Sequence[Transaction],
    settings: EngineSettings = engine_settings,
) -> List[Transaction]:
    """Select material credits whose description looks like income."""
    income = []
    for txn in transactions:
        if not txn.is_credit:
            continue
        if txn.amount < settings.income_min_amount:
            continue
        description = (txn.description or "").lower()
        if any(keyword in description for keyword in settings.income_keywords):
            income.append(txn)
    return income


def calculate_intervals(
    income_transactions: Sequence[Transaction],
    settings: EngineSettings = engine_settings,
) -> List[int]:
    """
    Day gaps between consecutive income deposits.

    Same-day deposits and gaps longer than the maximum interval are not
    intervals of a regular cadence and are dropped.
    """
    ordered = sorted(income_transactions, key=lambda t: t.date)
    intervals = []
    for previous, current in zip(ordered, ordered[1:]):
        days = (current.date - previous.date).days
        if 0 < days <= settings.income_max_interval_days:
            intervals.append(days)
    return intervals


def calculate_interval_statistics(intervals: Sequence[int]) -> IntervalStatistics:
    """Mean, sample standard deviation, median and range of the intervals."""
    if not intervals:
        return IntervalStatistics()

    count = len(intervals)
    mean = sum(intervals) / count
    variance = (
        sum((i - mean) ** 2 for i in intervals) / (count - 1) if count > 1 else 0.0
    )
    ordered = sorted(intervals)
    middle = count // 2
    median = ordered[middle] if count % 2 else (ordered[middle - 1] + ordered[middle]) / 2

    return IntervalStatistics(
        mean=round(mean, 2),
        standard_deviation=round(math.sqrt(variance), 2),
        median=float(median),
        variance=round(variance, 2),
        minimum=min(intervals),
        maximum=max(intervals),
        count=count,
    )


def score_stability(
    stats: IntervalStatistics,
    settings: EngineSettings = engine_settings,
) -> int:
    """Turn interval statistics into a 0-100 stability score."""
    if stats.count == 0 or stats.mean == 0:
        return 0

    cv = stats.standard_deviation / stats.mean
    base_score = max(0.0, 100 - cv * 100)

    closest_ideal = min(
        settings.income_ideal_intervals,
        key=lambda ideal: abs(ideal - stats.mean),
    )
    interval_bonus = max(0.0, 10 - abs(stats.mean - closest_ideal))
    consistency_bonus = max(0.0, 10 - stats.standard_deviation)
    data_bonus = min(5, stats.count - 1)

    final = min(100.0, base_score + interval_bonus + consistency_bonus + data_bonus)
    # half-up, not banker's rounding
    return int(math.floor(final + 0.5))


def stability_level_for_score(stability_score: int) -> StabilityLevel:
    if stability_score >= 80:
        return StabilityLevel.VERY_STABLE
    elif stability_score >= 60:
        return StabilityLevel.STABLE
    elif stability_score >= 40:
        return StabilityLevel.MODERATE
    elif stability_score >= 20:
        return StabilityLevel.UNSTABLE
    return StabilityLevel.VERY_UNSTABLE


def _recommendations(stability_score: int, stats: IntervalStatistics) -> List[str]:
    recommendations = []

    if stability_score < 40:
        recommendations.append("Consider requesting additional income documentation")
        recommendations.append("Review for alternative income sources")

    if stats.standard_deviation > 10:
        recommendations.append("High variability in income timing detected")

    if stats.count < 3:
        recommendations.append("Limited transaction history - consider longer analysis period")

    if stats.mean > 35:
        recommendations.append("Income frequency appears to be monthly or less frequent")
    elif stats.mean < 10:
        recommendations.append(
            "Very frequent income deposits detected - may include non-salary income"
        )

    if not recommendations:
        recommendations.append("Income stability analysis shows positive results")

    return recommendations


def _insufficient(reason: str, income: Sequence[Transaction] = ()) -> IncomeStabilityResult:
    total = sum((t.amount for t in income), Decimal("0"))
    return IncomeStabilityResult(
        stability_score=0,
        stability_level=StabilityLevel.INSUFFICIENT_DATA,
        income_transaction_count=len(income),
        total_income=money(total),
        average_income=money(total / len(income)) if income else Decimal("0.00"),
        description=reason,
        recommendations=("Provide more transaction data for accurate analysis",),
    )


def analyze_income_stability(
    transactions: Sequence[Transaction],
    settings: EngineSettings = engine_settings,
) -> IncomeStabilityResult:
    """
    Score the regularity of income-like deposits.

    Fewer than two income deposits, or fewer than two usable intervals
    between them, yields a score of 0 with level INSUFFICIENT_DATA.

    Args:
        transactions: Statement transactions
        settings: Engine settings (uses defaults if not provided)

    Returns:
        IncomeStabilityResult with score, level and interval statistics
    """
    if not transactions:
        return _insufficient("No transactions provided")

    income = sorted(filter_income_transactions(transactions, settings), key=lambda t: t.date)
    if len(income) < 2:
        return _insufficient("Insufficient income transactions for analysis", income)

    intervals = calculate_intervals(income, settings)
    if len(intervals) < 2:
        return _insufficient("Insufficient intervals for stability calculation", income)

    stats = calculate_interval_statistics(intervals)
    stability_score = score_stability(stats, settings)
    level = stability_level_for_score(stability_score)
    total = sum((t.amount for t in income), Decimal("0"))

    return IncomeStabilityResult(
        stability_score=stability_score,
        stability_level=level,
        income_transaction_count=len(income),
        total_income=money(total),
        average_income=money(total / len(income)),
        first_income_date=income[0].date,
        last_income_date=income[-1].date,
        intervals=tuple(intervals),
        statistics=stats,
        description=STABILITY_DESCRIPTIONS[level],
        recommendations=tuple(_recommendations(stability_score, stats)),
    )
