"""
Waterfall Criteria Gate.

Decides whether paying for external verification is justified by the
internal analysis, which providers to call, and whether the spend fits
the budget.

Six weighted checks (defaults):

    veritas_score       score >= 600            0.30
    transaction_count   count >= 10             0.15
    statement_duration  days >= 30              0.10
    average_balance     ADB >= $1,000           0.20
    risk_level          level <= HIGH           0.15
    nsf_count           count <= 3              0.10

criteria_score = 100 * passed weight / total weight. The gate proceeds
when criteria_score >= 70 and the budget check passes.

The provider plan is score-tiered on the Veritas score normalized to a
0-10 scale: middesk >= 6.5, isoftpull >= 7.5, sos >= 6.0. Each provider
has its own threshold, so a middling score can still buy the cheap
registration check while skipping the credit pull.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Tuple

import structlog

from ..helios.models import HeliosAnalysis, RiskLevel
from ..settings import PROVIDER_ORDER, EngineSettings, engine_settings
from .models import ApiPlan, BudgetCheck, CriteriaCheck, CriteriaEvaluation

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


def build_criteria_checks(
    helios: HeliosAnalysis,
    settings: EngineSettings = engine_settings,
) -> List[CriteriaCheck]:
    """Evaluate each weighted check against the Helios snapshot."""
    max_level = RiskLevel(settings.criteria_max_risk_level)
    risk_level = helios.risk.risk_level
    adb = helios.balance.average_daily_balance

    return [
        CriteriaCheck(
            name="veritas_score",
            actual=helios.veritas.score,
            threshold=settings.criteria_min_veritas_score,
            comparison=">=",
            weight=settings.weight_veritas_score,
            passed=helios.veritas.score >= settings.criteria_min_veritas_score,
        ),
        CriteriaCheck(
            name="transaction_count",
            actual=helios.transaction_count,
            threshold=settings.criteria_min_transactions,
            comparison=">=",
            weight=settings.weight_transaction_count,
            passed=helios.transaction_count >= settings.criteria_min_transactions,
        ),
        CriteriaCheck(
            name="statement_duration",
            actual=helios.statement_days,
            threshold=settings.criteria_min_statement_days,
            comparison=">=",
            weight=settings.weight_statement_duration,
            passed=helios.statement_days >= settings.criteria_min_statement_days,
        ),
        CriteriaCheck(
            name="average_balance",
            actual=adb,
            threshold=settings.criteria_min_average_balance,
            comparison=">=",
            weight=settings.weight_average_balance,
            passed=adb >= settings.criteria_min_average_balance,
        ),
        CriteriaCheck(
            name="risk_level",
            actual=risk_level.value,
            threshold=max_level.value,
            comparison="<=",
            weight=settings.weight_risk_level,
            passed=risk_level.ordinal <= max_level.ordinal,
        ),
        CriteriaCheck(
            name="nsf_count",
            actual=helios.risk.nsf_count,
            threshold=settings.criteria_max_nsf_count,
            comparison="<=",
            weight=settings.weight_nsf_count,
            passed=helios.risk.nsf_count <= settings.criteria_max_nsf_count,
        ),
    ]


def calculate_criteria_score(checks: List[CriteriaCheck]) -> int:
    """Share of total weight carried by passing checks, as a 0-100 integer."""
    total = sum((Decimal(str(c.weight)) for c in checks), ZERO)
    if total <= 0:
        return 0
    passed = sum((Decimal(str(c.weight)) for c in checks if c.passed), ZERO)
    score = (passed * 100 / total).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(score)


def select_api_plan(
    veritas_score: int,
    settings: EngineSettings = engine_settings,
) -> ApiPlan:
    """Enable each provider whose own threshold the normalized score meets."""
    normalized = veritas_score / settings.score_normalization_divisor
    thresholds = settings.provider_thresholds
    return ApiPlan(**{s: normalized >= thresholds[s] for s in PROVIDER_ORDER})


def estimate_cost(plan: ApiPlan, settings: EngineSettings = engine_settings) -> Decimal:
    costs = settings.provider_costs
    return sum((costs[s] for s in plan.enabled), ZERO)


def check_budget(
    estimated_cost: Decimal,
    daily_usage: Decimal = ZERO,
    settings: EngineSettings = engine_settings,
) -> BudgetCheck:
    """
    Check an estimate against the per-analysis and daily caps.

    This is read-then-decide; the actual reservation is made afterwards
    through the budget accountant, which may still refuse it.
    """
    daily_usage = Decimal(str(daily_usage))
    remaining = max(ZERO, settings.daily_budget_cap - daily_usage)

    if estimated_cost > settings.per_analysis_budget_cap:
        return BudgetCheck(
            passed=False,
            estimated_cost=estimated_cost,
            daily_usage=daily_usage,
            remaining_budget=remaining,
            reason=(
                f"Estimated cost ${estimated_cost:.2f} exceeds per-analysis cap "
                f"${settings.per_analysis_budget_cap:.2f}"
            ),
        )

    if daily_usage + estimated_cost > settings.daily_budget_cap:
        return BudgetCheck(
            passed=False,
            estimated_cost=estimated_cost,
            daily_usage=daily_usage,
            remaining_budget=remaining,
            reason=(
                f"Daily budget exceeded: ${daily_usage:.2f} used + ${estimated_cost:.2f} "
                f"estimated > ${settings.daily_budget_cap:.2f} cap"
            ),
        )

    return BudgetCheck(
        passed=True,
        estimated_cost=estimated_cost,
        daily_usage=daily_usage,
        remaining_budget=remaining,
        reason="Within budget",
    )


def _decision_reason(
    criteria_score: int,
    budget: BudgetCheck,
    plan: ApiPlan,
    settings: EngineSettings,
) -> Tuple[bool, str]:
    if criteria_score < settings.criteria_proceed_threshold:
        return False, (
            f"Criteria score {criteria_score} below threshold "
            f"{settings.criteria_proceed_threshold}; external verification skipped"
        )
    if not budget.passed:
        return False, f"{budget.reason}; external verification skipped"
    if not plan.any_enabled:
        return True, (
            f"Criteria score {criteria_score} met but the Veritas score qualifies "
            "for no external provider"
        )
    return True, (
        f"Criteria score {criteria_score} met; calling {', '.join(plan.enabled)}"
    )


def evaluate_waterfall_criteria(
    helios: HeliosAnalysis,
    daily_usage: Decimal = ZERO,
    settings: EngineSettings = engine_settings,
) -> CriteriaEvaluation:
    """
    Decide whether to spend money on external verification.

    Budget exhaustion is a normal outcome (should_proceed=False with a
    reason), never an exception. When the gate does not proceed every
    provider is disabled and the whole provider catalogue counts as saved.

    Args:
        helios: Helios Engine snapshot
        daily_usage: Dollars already spent/reserved today
        settings: Engine settings (uses defaults if not provided)

    Returns:
        An immutable CriteriaEvaluation
    """
    checks = build_criteria_checks(helios, settings)
    criteria_score = calculate_criteria_score(checks)
    passed_checks = sum(1 for c in checks if c.passed)

    plan = select_api_plan(helios.veritas.score, settings)
    budget = check_budget(estimate_cost(plan, settings), daily_usage, settings)
    should_proceed, reason = _decision_reason(criteria_score, budget, plan, settings)

    if not should_proceed:
        plan = ApiPlan.none()
        cost_saved = settings.full_provider_cost
    else:
        cost_saved = settings.full_provider_cost - budget.estimated_cost

    evaluation = CriteriaEvaluation(
        should_proceed=should_proceed,
        criteria_score=criteria_score,
        passed_checks=passed_checks,
        total_checks=len(checks),
        checks=tuple(checks),
        api_plan=plan,
        budget_check=budget,
        cost_saved=cost_saved,
        reason=reason,
    )

    logger.info(
        "criteria_evaluated",
        criteria_score=criteria_score,
        passed_checks=passed_checks,
        total_checks=len(checks),
        should_proceed=should_proceed,
        api_plan=plan.enabled,
        estimated_cost=str(budget.estimated_cost),
        budget_passed=budget.passed,
        cost_saved=str(cost_saved),
    )

    return evaluation


def deny_for_budget(evaluation: CriteriaEvaluation, reason: str) -> CriteriaEvaluation:
    """
    New evaluation for a gate decision overturned by a refused reservation.

    The original snapshot is left untouched.
    """
    budget = evaluation.budget_check
    return CriteriaEvaluation(
        should_proceed=False,
        criteria_score=evaluation.criteria_score,
        passed_checks=evaluation.passed_checks,
        total_checks=evaluation.total_checks,
        checks=evaluation.checks,
        api_plan=ApiPlan.none(),
        budget_check=BudgetCheck(
            passed=False,
            estimated_cost=budget.estimated_cost,
            daily_usage=budget.daily_usage,
            remaining_budget=budget.remaining_budget,
            reason=reason,
        ),
        cost_saved=evaluation.cost_saved + budget.estimated_cost,
        reason=f"{reason}; external verification skipped",
    )
