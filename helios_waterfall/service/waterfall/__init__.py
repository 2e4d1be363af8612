"""
Waterfall - criteria gate, external verification and consolidation
"""

from .models import (
    ApiPlan,
    BudgetCheck,
    ConsolidatedAnalysis,
    Confidence,
    CriteriaCheck,
    CriteriaEvaluation,
    EnhancedRiskAssessment,
    ExternalVerificationResult,
    Failed,
    ProviderError,
    ProviderOutcome,
    Recommendation,
    ScoreAdjustment,
    Skipped,
    StageTimings,
    Success,
)
from .criteria import (
    check_budget,
    deny_for_budget,
    evaluate_waterfall_criteria,
    select_api_plan,
)
from .executor import ExternalVerificationExecutor
from .consolidator import consolidate, recommendation_for_score

__all__ = [
    # Models
    "ApiPlan",
    "BudgetCheck",
    "ConsolidatedAnalysis",
    "Confidence",
    "CriteriaCheck",
    "CriteriaEvaluation",
    "EnhancedRiskAssessment",
    "ExternalVerificationResult",
    "Failed",
    "ProviderError",
    "ProviderOutcome",
    "Recommendation",
    "ScoreAdjustment",
    "Skipped",
    "StageTimings",
    "Success",
    # Criteria Gate
    "check_budget",
    "deny_for_budget",
    "evaluate_waterfall_criteria",
    "select_api_plan",
    # Executor
    "ExternalVerificationExecutor",
    # Consolidation
    "consolidate",
    "recommendation_for_score",
]
