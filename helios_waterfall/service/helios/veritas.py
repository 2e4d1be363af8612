"""
Veritas Score for the Helios Engine.

The Veritas score is a composite creditworthiness score on the same
300-850 range as a consumer credit score, so humans and downstream
consumers can reason about it with familiar tiers.

    score = 700
          - min(50 * nsf_count, 150)           NSF impact
          + balance impact                     -100 .. +100
          + floor(stability_score - 50)        income stability, -100 with no deposits
          + min(50, transaction_count // 2)    volume, 0 below 5 transactions
          + floor(min(50, profit_ratio * 100)) business activity, if any

The sum is clamped to [300, 850] and graded:
    >=800 A+, >=750 A, >=700 B+, >=650 B, >=600 C+, >=550 C, >=500 D+, else D
"""

import math
from typing import Optional, Sequence

from helios_waterfall.domain.entities import Transaction

from ..settings import EngineSettings, engine_settings
from .models import (
    BusinessMetrics,
    IncomeStabilityResult,
    RiskResult,
    VeritasFactors,
    VeritasScore,
)


def clamp_score(score: int, settings: EngineSettings = engine_settings) -> int:
    """Clamp a score into the Veritas range."""
    return max(settings.veritas_min_score, min(settings.veritas_max_score, int(score)))


def grade_for_score(score: int, settings: EngineSettings = engine_settings) -> str:
    """
    Letter grade for a Veritas score.

    The score is clamped first, so the grade is a pure step function of
    the clamped score.
    """
    score = clamp_score(score, settings)
    for min_score, grade in settings.grade_tiers:
        if score >= min_score:
            return grade
    return settings.lowest_grade


def nsf_impact(nsf_count: int, settings: EngineSettings = engine_settings) -> int:
    return -min(settings.veritas_nsf_penalty * nsf_count, settings.veritas_nsf_penalty_cap)


def balance_impact(risk: RiskResult, settings: EngineSettings = engine_settings) -> int:
    """
    Reward a healthy cushion, penalize overdraft.

    An average at or below zero costs 100 points; any negative end-of-day
    balance costs 50. Otherwise the average earns up to +100, reaching the
    cap at the reference balance ($5,000).
    """
    if risk.average_daily_balance <= 0:
        return -100
    if risk.lowest_balance < 0:
        return -50
    ratio = risk.average_daily_balance / settings.veritas_balance_reference
    return math.floor(min(100, ratio * 100))


def stability_impact(risk: RiskResult, income: IncomeStabilityResult) -> int:
    if risk.total_deposits <= 0:
        return -100
    return math.floor(income.stability_score - 50)


def transaction_impact(
    transaction_count: int,
    settings: EngineSettings = engine_settings,
) -> int:
    if transaction_count < settings.veritas_min_transactions:
        return 0
    return min(settings.veritas_transaction_impact_cap, transaction_count // 2)


def business_impact(
    business: Optional[BusinessMetrics],
    settings: EngineSettings = engine_settings,
) -> int:
    if business is None or not business.has_business_activity:
        return 0
    profit_ratio = business.profit_ratio
    if profit_ratio is None:
        return 0
    return math.floor(min(settings.veritas_business_impact_cap, profit_ratio * 100))


def calculate_veritas_score(
    risk: RiskResult,
    income: IncomeStabilityResult,
    transactions: Sequence[Transaction],
    business: Optional[BusinessMetrics] = None,
    settings: EngineSettings = engine_settings,
) -> VeritasScore:
    """
    Combine the Helios signals into a graded 300-850 score.

    Args:
        risk: Risk analysis (NSF count, balances, deposits)
        income: Income stability analysis
        transactions: Statement transactions (for volume)
        business: Payment-processor activity, if measured
        settings: Engine settings (uses defaults if not provided)

    Returns:
        VeritasScore with the per-factor breakdown
    """
    factors = VeritasFactors(
        nsf_impact=nsf_impact(risk.nsf_count, settings),
        balance_impact=balance_impact(risk, settings),
        stability_impact=stability_impact(risk, income),
        transaction_impact=transaction_impact(len(transactions), settings),
        business_impact=business_impact(business, settings),
    )

    raw = (
        settings.veritas_base_score
        + factors.nsf_impact
        + factors.balance_impact
        + factors.stability_impact
        + factors.transaction_impact
        + factors.business_impact
    )
    score = clamp_score(raw, settings)

    return VeritasScore(
        score=score,
        grade=grade_for_score(score, settings),
        factors=factors,
    )
