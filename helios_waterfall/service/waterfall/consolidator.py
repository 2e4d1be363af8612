"""
Result Consolidation for the waterfall.

Merges the internal Veritas score with the external verification results
into the final score, grade, risk level, confidence and recommendation.

Adjustments (defaults) apply only for providers that ran and returned:

    middesk    +25 verified, -50 explicitly not verified
    isoftpull  +40 >=750, +20 >=700, +10 >=650, -30 <600
    sos        +15 registration ACTIVE

The adjusted score is clamped to [300, 850] and regraded. Confidence is
HIGH when any provider returned, MEDIUM otherwise.

Recommendation:
    >=750 APPROVE, >=650 APPROVE_WITH_CONDITIONS, >=550 MANUAL_REVIEW, else DECLINE

If anything goes wrong while consolidating, the internal score is returned
unmodified with LOW confidence and an explicit fallback flag.
"""

from typing import List, Optional

import structlog

from helios_waterfall.domain.entities import (
    BusinessVerification,
    CreditReport,
    RegistrationRecord,
)

from ..helios.models import HeliosAnalysis
from ..helios.veritas import clamp_score, grade_for_score
from ..settings import EngineSettings, engine_settings
from .models import (
    ConsolidatedAnalysis,
    Confidence,
    CriteriaEvaluation,
    EnhancedRiskAssessment,
    ExternalVerificationResult,
    Recommendation,
    ScoreAdjustment,
    StageTimings,
)

logger = structlog.get_logger(__name__)


def recommendation_for_score(
    score: int,
    settings: EngineSettings = engine_settings,
) -> Recommendation:
    """Four-tier lending recommendation for a final score."""
    if score >= settings.approve_threshold:
        return Recommendation.APPROVE
    elif score >= settings.approve_with_conditions_threshold:
        return Recommendation.APPROVE_WITH_CONDITIONS
    elif score >= settings.manual_review_threshold:
        return Recommendation.MANUAL_REVIEW
    return Recommendation.DECLINE


def final_risk_level_for_score(
    score: int,
    settings: EngineSettings = engine_settings,
) -> str:
    for min_score, level in settings.final_risk_tiers:
        if score >= min_score:
            return level
    return "VERY_HIGH"


def business_verification_adjustment(
    verification: Optional[BusinessVerification],
    settings: EngineSettings = engine_settings,
) -> Optional[ScoreAdjustment]:
    if verification is None or verification.verified is None:
        return None
    if verification.verified:
        return ScoreAdjustment(
            source="middesk",
            points=settings.middesk_verified_adjustment,
            reason="Business identity verified",
        )
    return ScoreAdjustment(
        source="middesk",
        points=settings.middesk_unverified_adjustment,
        reason="Business identity could not be verified",
    )


def credit_check_adjustment(
    report: Optional[CreditReport],
    settings: EngineSettings = engine_settings,
) -> Optional[ScoreAdjustment]:
    if report is None or report.credit_score is None:
        return None
    credit_score = report.credit_score
    for min_score, points in settings.credit_adjustment_tiers:
        if credit_score >= min_score:
            return ScoreAdjustment(
                source="isoftpull",
                points=points,
                reason=f"Owner credit score {credit_score} (>= {min_score})",
            )
    if credit_score < settings.credit_poor_threshold:
        return ScoreAdjustment(
            source="isoftpull",
            points=settings.credit_poor_adjustment,
            reason=f"Owner credit score {credit_score} (< {settings.credit_poor_threshold})",
        )
    return None


def registration_adjustment(
    record: Optional[RegistrationRecord],
    settings: EngineSettings = engine_settings,
) -> Optional[ScoreAdjustment]:
    if record is None or not record.is_active:
        return None
    return ScoreAdjustment(
        source="sos",
        points=settings.sos_active_adjustment,
        reason="State registration is ACTIVE",
    )


def calculate_adjustments(
    external: ExternalVerificationResult,
    settings: EngineSettings = engine_settings,
) -> List[ScoreAdjustment]:
    """Score adjustments for the providers that actually returned a result."""
    candidates = [
        business_verification_adjustment(external.middesk, settings),
        credit_check_adjustment(external.isoftpull, settings),
        registration_adjustment(external.sos, settings),
    ]
    return [a for a in candidates if a is not None]


def _fallback_assessment(
    helios: HeliosAnalysis,
    reason: str,
    settings: EngineSettings,
) -> EnhancedRiskAssessment:
    base_score = clamp_score(helios.veritas.score, settings)
    return EnhancedRiskAssessment(
        base_score=base_score,
        adjustments=(),
        final_score=base_score,
        final_grade=grade_for_score(base_score, settings),
        final_risk_level=final_risk_level_for_score(base_score, settings),
        confidence=Confidence.LOW,
        recommendation=recommendation_for_score(base_score, settings),
        fallback_applied=True,
        fallback_reason=reason,
    )


def build_assessment(
    helios: HeliosAnalysis,
    external: ExternalVerificationResult,
    settings: EngineSettings = engine_settings,
) -> EnhancedRiskAssessment:
    """Apply the external adjustments to the internal score."""
    base_score = helios.veritas.score
    adjustments = calculate_adjustments(external, settings)
    final_score = clamp_score(base_score + sum(a.points for a in adjustments), settings)

    return EnhancedRiskAssessment(
        base_score=base_score,
        adjustments=tuple(adjustments),
        final_score=final_score,
        final_grade=grade_for_score(final_score, settings),
        final_risk_level=final_risk_level_for_score(final_score, settings),
        confidence=Confidence.HIGH if external.executed else Confidence.MEDIUM,
        recommendation=recommendation_for_score(final_score, settings),
    )


def consolidate(
    helios: HeliosAnalysis,
    external: ExternalVerificationResult,
    evaluation: CriteriaEvaluation,
    settings: EngineSettings = engine_settings,
    timings: Optional[StageTimings] = None,
) -> ConsolidatedAnalysis:
    """
    Merge internal and external results into the final analysis.

    Never raises: a scoring error degrades to the unmodified internal
    score with LOW confidence and fallback_applied set.

    Args:
        helios: Helios Engine snapshot
        external: External verification results (possibly empty)
        evaluation: Criteria gate decision
        settings: Engine settings (uses defaults if not provided)
        timings: Stage timings to report

    Returns:
        ConsolidatedAnalysis
    """
    try:
        assessment = build_assessment(helios, external, settings)
    except Exception as e:
        logger.exception(
            "consolidation_failed",
            error=str(e),
            error_type=type(e).__name__,
            veritas_score=helios.veritas.score,
        )
        assessment = _fallback_assessment(
            helios,
            reason=f"Consolidation error ({type(e).__name__}): {e}",
            settings=settings,
        )
    else:
        logger.info(
            "analysis_consolidated",
            base_score=assessment.base_score,
            total_adjustment=assessment.total_adjustment,
            final_score=assessment.final_score,
            final_grade=assessment.final_grade,
            confidence=assessment.confidence.value,
            recommendation=assessment.recommendation.value,
        )

    return ConsolidatedAnalysis(
        helios=helios,
        external_verification=external,
        assessment=assessment,
        criteria_evaluation=evaluation,
        timings=timings or StageTimings(),
    )
