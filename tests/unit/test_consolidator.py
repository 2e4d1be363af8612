"""
Unit Tests for result consolidation.
"""

from decimal import Decimal

import pytest

from helios_waterfall.domain.entities import (
    BusinessVerification,
    CreditReport,
    RegistrationRecord,
)
from helios_waterfall.service.helios import run_helios_engine
from helios_waterfall.service.waterfall import (
    Confidence,
    ExternalVerificationResult,
    Recommendation,
    consolidate,
    evaluate_waterfall_criteria,
    recommendation_for_score,
)
from helios_waterfall.service.waterfall.consolidator import (
    calculate_adjustments,
    credit_check_adjustment,
    final_risk_level_for_score,
)

from tests.fakes import healthy_statement, thin_statement


@pytest.fixture
def thin_helios():
    transactions, context = thin_statement()
    return run_helios_engine(transactions, context)


def executed(**results) -> ExternalVerificationResult:
    return ExternalVerificationResult(
        execution_order=tuple(results),
        total_cost=Decimal("0"),
        **results,
    )


class TestRecommendation:
    @pytest.mark.parametrize(
        "score, recommendation",
        [
            (850, Recommendation.APPROVE),
            (750, Recommendation.APPROVE),
            (749, Recommendation.APPROVE_WITH_CONDITIONS),
            (650, Recommendation.APPROVE_WITH_CONDITIONS),
            (649, Recommendation.MANUAL_REVIEW),
            (550, Recommendation.MANUAL_REVIEW),
            (549, Recommendation.DECLINE),
            (300, Recommendation.DECLINE),
        ],
    )
    def test_tiers(self, score, recommendation):
        assert recommendation_for_score(score) == recommendation

    def test_final_risk_level(self):
        assert final_risk_level_for_score(800) == "LOW"
        assert final_risk_level_for_score(700) == "MODERATE"
        assert final_risk_level_for_score(600) == "MEDIUM"
        assert final_risk_level_for_score(450) == "HIGH"
        assert final_risk_level_for_score(449) == "VERY_HIGH"


class TestAdjustments:
    @pytest.mark.parametrize(
        "credit_score, points",
        [(800, 40), (750, 40), (749, 20), (700, 20), (650, 10), (620, None), (599, -30)],
    )
    def test_credit_tiers(self, credit_score, points):
        adjustment = credit_check_adjustment(CreditReport(credit_score=credit_score))

        if points is None:
            assert adjustment is None
        else:
            assert adjustment.points == points

    def test_all_providers_positive(self):
        external = executed(
            middesk=BusinessVerification(verified=True),
            isoftpull=CreditReport(credit_score=760),
            sos=RegistrationRecord(status="ACTIVE"),
        )

        adjustments = calculate_adjustments(external)

        assert [(a.source, a.points) for a in adjustments] == [
            ("middesk", 25),
            ("isoftpull", 40),
            ("sos", 15),
        ]

    def test_unverified_business_penalized(self):
        adjustments = calculate_adjustments(
            executed(middesk=BusinessVerification(verified=False))
        )

        assert [(a.source, a.points) for a in adjustments] == [("middesk", -50)]

    def test_inconclusive_results_do_not_adjust(self):
        external = executed(
            middesk=BusinessVerification(verified=None),
            isoftpull=CreditReport(credit_score=None),
            sos=RegistrationRecord(status="DISSOLVED"),
        )

        assert calculate_adjustments(external) == []


class TestConsolidate:
    def test_without_external_verification(self, thin_helios):
        evaluation = evaluate_waterfall_criteria(thin_helios)

        analysis = consolidate(
            thin_helios, ExternalVerificationResult.not_executed(), evaluation
        )

        assert analysis.final_score == 764
        assert analysis.assessment.adjustments == ()
        assert analysis.confidence == Confidence.MEDIUM
        assert analysis.recommendation == Recommendation.APPROVE
        assert not analysis.assessment.fallback_applied

    def test_adjusted_score(self, thin_helios):
        evaluation = evaluate_waterfall_criteria(thin_helios)
        external = executed(
            middesk=BusinessVerification(verified=False),
            isoftpull=CreditReport(credit_score=590),
        )

        analysis = consolidate(thin_helios, external, evaluation)

        # 764 - 50 - 30
        assert analysis.final_score == 684
        assert analysis.assessment.total_adjustment == -80
        assert analysis.assessment.final_grade == "B"
        assert analysis.assessment.final_risk_level == "MODERATE"
        assert analysis.confidence == Confidence.HIGH
        assert analysis.recommendation == Recommendation.APPROVE_WITH_CONDITIONS

    def test_final_score_is_clamped(self):
        transactions, context = healthy_statement()
        helios = run_helios_engine(transactions, context)
        external = executed(
            middesk=BusinessVerification(verified=True),
            isoftpull=CreditReport(credit_score=760),
            sos=RegistrationRecord(status="ACTIVE"),
        )

        analysis = consolidate(helios, external, evaluate_waterfall_criteria(helios))

        assert analysis.assessment.base_score == 850
        assert analysis.assessment.total_adjustment == 80
        assert analysis.final_score == 850
        assert analysis.assessment.final_grade == "A+"

    def test_malformed_provider_result_falls_back(self, thin_helios):
        evaluation = evaluate_waterfall_criteria(thin_helios)
        external = executed(isoftpull=CreditReport(credit_score="n/a"))

        analysis = consolidate(thin_helios, external, evaluation)

        assert analysis.assessment.fallback_applied
        assert "TypeError" in analysis.assessment.fallback_reason
        assert analysis.final_score == 764
        assert analysis.confidence == Confidence.LOW
        assert analysis.recommendation == Recommendation.APPROVE

    def test_to_dict_sections(self, thin_helios):
        evaluation = evaluate_waterfall_criteria(thin_helios)

        data = consolidate(
            thin_helios, ExternalVerificationResult.not_executed(evaluation.reason), evaluation
        ).to_dict()

        assert set(data) == {
            "executive_summary",
            "helios_engine",
            "external_verification",
            "enhanced_risk_assessment",
            "waterfall_analysis",
        }
        assert data["executive_summary"]["external_verification_performed"] is False
        assert data["waterfall_analysis"]["costs"]["cost_saved"] == 45.0
        assert data["waterfall_analysis"]["costs"]["total_cost"] == 0.0
        assert data["external_verification"]["provider_status"] == {
            "middesk": "skipped",
            "isoftpull": "skipped",
            "sos": "skipped",
        }
