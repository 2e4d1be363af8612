"""
Data models for the waterfall stages.

The criteria gate produces a CriteriaEvaluation decision snapshot, the
executor an ExternalVerificationResult, and the consolidator the final
ConsolidatedAnalysis. Provider calls are described by explicit outcome
variants (Success / Skipped / Failed) rather than by exceptions.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from ..helios.models import HeliosAnalysis, money_out
from ..settings import PROVIDER_ORDER


class Recommendation(str, Enum):
    APPROVE = "APPROVE"
    APPROVE_WITH_CONDITIONS = "APPROVE_WITH_CONDITIONS"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    DECLINE = "DECLINE"


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# =============================================================================
# Criteria Gate
# =============================================================================

@dataclass(frozen=True)
class CriteriaCheck:
    """One weighted pass/fail comparison of an actual value against a threshold."""

    name: str
    actual: Any
    threshold: Any
    comparison: str
    weight: float
    passed: bool

    def to_dict(self) -> dict:
        actual = float(self.actual) if isinstance(self.actual, Decimal) else self.actual
        threshold = float(self.threshold) if isinstance(self.threshold, Decimal) else self.threshold
        return {
            "name": self.name,
            "actual": actual,
            "threshold": threshold,
            "comparison": self.comparison,
            "weight": self.weight,
            "passed": self.passed,
        }


@dataclass(frozen=True)
class ApiPlan:
    """Which external providers the gate decided to pay for."""

    middesk: bool = False
    isoftpull: bool = False
    sos: bool = False

    @classmethod
    def none(cls) -> "ApiPlan":
        return cls()

    def is_enabled(self, service: str) -> bool:
        return bool(getattr(self, service))

    @property
    def enabled(self) -> Tuple[str, ...]:
        """Enabled providers in execution order."""
        return tuple(s for s in PROVIDER_ORDER if self.is_enabled(s))

    @property
    def any_enabled(self) -> bool:
        return bool(self.enabled)

    def to_dict(self) -> dict:
        return {"middesk": self.middesk, "isoftpull": self.isoftpull, "sos": self.sos}


@dataclass(frozen=True)
class BudgetCheck:
    """Read-then-decide check of an estimate against the daily and per-analysis caps."""

    passed: bool
    estimated_cost: Decimal
    daily_usage: Decimal
    remaining_budget: Decimal
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "estimated_cost": money_out(self.estimated_cost),
            "daily_usage": money_out(self.daily_usage),
            "remaining_budget": money_out(self.remaining_budget),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class CriteriaEvaluation:
    """
    Decision snapshot of the criteria gate.

    Never mutated after creation; if a later stage changes the decision
    (e.g. the budget reservation is refused) it builds a new evaluation.
    """

    should_proceed: bool
    criteria_score: int
    passed_checks: int
    total_checks: int
    checks: Tuple[CriteriaCheck, ...]
    api_plan: ApiPlan
    budget_check: BudgetCheck
    cost_saved: Decimal
    reason: str

    def to_dict(self) -> dict:
        return {
            "should_proceed": self.should_proceed,
            "criteria_score": self.criteria_score,
            "passed_checks": self.passed_checks,
            "total_checks": self.total_checks,
            "checks": [c.to_dict() for c in self.checks],
            "api_plan": self.api_plan.to_dict(),
            "budget_check": self.budget_check.to_dict(),
            "cost_saved": money_out(self.cost_saved),
            "reason": self.reason,
        }


# =============================================================================
# Provider Outcomes
# =============================================================================

@dataclass(frozen=True)
class Success:
    """The provider was called and returned a result."""

    data: Any
    cost: Decimal
    duration_ms: float

    status = "success"


@dataclass(frozen=True)
class Skipped:
    """The provider was not called (disabled by the plan or not configured)."""

    reason: str

    status = "skipped"


@dataclass(frozen=True)
class Failed:
    """The provider was called and raised."""

    error: str
    impact: str
    duration_ms: float
    error_code: Optional[str] = None

    status = "failed"


ProviderOutcome = Union[Success, Skipped, Failed]


@dataclass(frozen=True)
class ProviderError:
    """Error entry for a provider that was attempted and failed."""

    service: str
    error: str
    impact: str

    def to_dict(self) -> dict:
        return {"service": self.service, "error": self.error, "impact": self.impact}


@dataclass(frozen=True)
class ExternalVerificationResult:
    """
    Results of the paid verification stage.

    A provider result of None means "not attempted"; a provider that was
    attempted and failed appears only in `errors`.
    """

    middesk: Any = None
    isoftpull: Any = None
    sos: Any = None
    errors: Tuple[ProviderError, ...] = field(default_factory=tuple)
    total_cost: Decimal = Decimal("0")
    execution_order: Tuple[str, ...] = field(default_factory=tuple)
    timings: Dict[str, float] = field(default_factory=dict)
    outcomes: Dict[str, ProviderOutcome] = field(default_factory=dict)

    @classmethod
    def not_executed(cls, reason: str = "Waterfall criteria not met") -> "ExternalVerificationResult":
        return cls(outcomes={s: Skipped(reason) for s in PROVIDER_ORDER})

    @property
    def executed(self) -> bool:
        """True if at least one provider returned a result."""
        return bool(self.execution_order)

    def result_for(self, service: str) -> Any:
        return getattr(self, service)

    def to_dict(self) -> dict:
        def _provider(service: str) -> Optional[dict]:
            result = self.result_for(service)
            if result is None:
                return None
            return result.to_dict() if hasattr(result, "to_dict") else result

        return {
            "executed": self.executed,
            "middesk": _provider("middesk"),
            "isoftpull": _provider("isoftpull"),
            "sos": _provider("sos"),
            "errors": [e.to_dict() for e in self.errors],
            "total_cost": money_out(self.total_cost),
            "execution_order": list(self.execution_order),
            "provider_status": {s: o.status for s, o in self.outcomes.items()},
        }


# =============================================================================
# Consolidation
# =============================================================================

@dataclass(frozen=True)
class ScoreAdjustment:
    """Points applied to the internal score because of an external result."""

    source: str
    points: int
    reason: str

    def to_dict(self) -> dict:
        return {"source": self.source, "points": self.points, "reason": self.reason}


@dataclass(frozen=True)
class EnhancedRiskAssessment:
    """Final score after external adjustments, with its derived labels."""

    base_score: int
    adjustments: Tuple[ScoreAdjustment, ...]
    final_score: int
    final_grade: str
    final_risk_level: str
    confidence: Confidence
    recommendation: Recommendation
    fallback_applied: bool = False
    fallback_reason: Optional[str] = None

    @property
    def total_adjustment(self) -> int:
        return sum(a.points for a in self.adjustments)

    def to_dict(self) -> dict:
        return {
            "base_score": self.base_score,
            "adjustments": [a.to_dict() for a in self.adjustments],
            "total_adjustment": self.total_adjustment,
            "final_score": self.final_score,
            "final_grade": self.final_grade,
            "final_risk_level": self.final_risk_level,
            "confidence": self.confidence.value,
            "recommendation": self.recommendation.value,
            "fallback_applied": self.fallback_applied,
            "fallback_reason": self.fallback_reason,
        }


@dataclass(frozen=True)
class StageTimings:
    """Wall-clock milliseconds spent in each pipeline stage."""

    helios_ms: float = 0.0
    criteria_ms: float = 0.0
    external_ms: float = 0.0
    consolidation_ms: float = 0.0
    providers: Dict[str, float] = field(default_factory=dict)

    @property
    def total_ms(self) -> float:
        return self.helios_ms + self.criteria_ms + self.external_ms + self.consolidation_ms

    def to_dict(self) -> dict:
        return {
            "helios_ms": round(self.helios_ms, 2),
            "criteria_ms": round(self.criteria_ms, 2),
            "external_ms": round(self.external_ms, 2),
            "consolidation_ms": round(self.consolidation_ms, 2),
            "total_ms": round(self.total_ms, 2),
            "providers": {k: round(v, 2) for k, v in self.providers.items()},
        }


@dataclass(frozen=True)
class ConsolidatedAnalysis:
    """
    The sole artifact returned to callers.

    JSON-serializable through to_dict(); collaborators persist, display
    or forward it. Nothing here is retained by the engine.
    """

    helios: HeliosAnalysis
    external_verification: ExternalVerificationResult
    assessment: EnhancedRiskAssessment
    criteria_evaluation: CriteriaEvaluation
    timings: StageTimings = field(default_factory=StageTimings)

    @property
    def final_score(self) -> int:
        return self.assessment.final_score

    @property
    def recommendation(self) -> Recommendation:
        return self.assessment.recommendation

    @property
    def confidence(self) -> Confidence:
        return self.assessment.confidence

    def executive_summary(self) -> dict:
        return {
            "final_score": self.assessment.final_score,
            "final_grade": self.assessment.final_grade,
            "risk_level": self.assessment.final_risk_level,
            "recommendation": self.assessment.recommendation.value,
            "confidence": self.assessment.confidence.value,
            "internal_score": self.assessment.base_score,
            "external_verification_performed": self.external_verification.executed,
            "fallback_applied": self.assessment.fallback_applied,
        }

    def costs(self) -> dict:
        return {
            "helios_cost": 0.0,
            "estimated_cost": money_out(self.criteria_evaluation.budget_check.estimated_cost),
            "external_cost": money_out(self.external_verification.total_cost),
            "cost_saved": money_out(self.criteria_evaluation.cost_saved),
            "total_cost": money_out(self.external_verification.total_cost),
        }

    def to_dict(self) -> dict:
        return {
            "executive_summary": self.executive_summary(),
            "helios_engine": self.helios.to_dict(),
            "external_verification": self.external_verification.to_dict(),
            "enhanced_risk_assessment": self.assessment.to_dict(),
            "waterfall_analysis": {
                "criteria_evaluation": self.criteria_evaluation.to_dict(),
                "costs": self.costs(),
                "timings": self.timings.to_dict(),
            },
        }
