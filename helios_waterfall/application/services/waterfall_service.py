"""Waterfall analysis service - orchestrates the risk decision use case."""

import time
from dataclasses import asdict, replace
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Tuple

import structlog

from helios_waterfall.application.dto import AnalysisRequest, AnalysisSummary
from helios_waterfall.core.metrics import (
    record_analysis,
    record_consolidation_fallback,
    record_gate_outcome,
    record_provider_call,
    track_analysis_latency,
)
from helios_waterfall.domain.entities import StatementContext, Transaction, UserContext
from helios_waterfall.domain.exceptions import InvalidTransactionDataException
from helios_waterfall.domain.interfaces import BudgetAccountant, VerificationProviders
from helios_waterfall.service.helios import run_helios_engine
from helios_waterfall.service.settings import EngineSettings, engine_settings
from helios_waterfall.service.waterfall import (
    ConsolidatedAnalysis,
    CriteriaEvaluation,
    ExternalVerificationExecutor,
    ExternalVerificationResult,
    Failed,
    StageTimings,
    Success,
    consolidate,
    deny_for_budget,
    evaluate_waterfall_criteria,
)

logger = structlog.get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class WaterfallAnalysisService:
    """
    Application service for the waterfall risk decision.

    Each call is an independent pipeline; the only shared state, today's
    provider spend, belongs to the injected budget accountant.
    """

    def __init__(
        self,
        providers: VerificationProviders,
        budget_accountant: BudgetAccountant,
        settings: EngineSettings = engine_settings,
    ):
        self._providers = providers
        self._accountant = budget_accountant
        self._settings = settings
        self._executor = ExternalVerificationExecutor(providers, settings)

    async def analyze(self, request: AnalysisRequest) -> ConsolidatedAnalysis:
        """
        Validate a request DTO and run the waterfall for it.

        Raises:
            InvalidTransactionDataException: If request validation fails
            InvalidStatementDataException: If the opening balance is invalid
        """
        errors = request.validate()
        if errors:
            raise InvalidTransactionDataException("; ".join(errors))

        with track_analysis_latency():
            analysis = await self.run_waterfall_analysis(
                transactions=request.transactions,
                statement_context=request.statement_context,
                user_context=request.user_context,
            )

        summary = AnalysisSummary.from_analysis(request, analysis)
        logger.info("analysis_completed", **asdict(summary))
        return analysis

    async def run_waterfall_analysis(
        self,
        transactions: Sequence[Transaction],
        statement_context: Optional[StatementContext] = None,
        user_context: Optional[UserContext] = None,
    ) -> ConsolidatedAnalysis:
        """
        Run the full waterfall for one statement.

        Helios Engine -> criteria gate -> budget reservation ->
        (conditionally) external verification -> consolidation.

        Only malformed input raises; provider failures, budget exhaustion
        and consolidation errors all yield a complete analysis.

        Args:
            transactions: Normalized statement transactions
            statement_context: Opening balance, period and business identity
            user_context: The requesting user

        Returns:
            ConsolidatedAnalysis

        Raises:
            InvalidTransactionDataException: If the transaction list is malformed
            InvalidStatementDataException: If the opening balance is not numeric
        """
        statement_context = statement_context or StatementContext()
        log = logger.bind(
            user_id=user_context.user_id if user_context else None,
            statement_id=user_context.statement_id if user_context else None,
        )

        start = time.perf_counter()
        helios = run_helios_engine(transactions, statement_context, self._settings)
        helios_ms = _elapsed_ms(start)

        start = time.perf_counter()
        evaluation = await self._evaluate_criteria(helios, log)
        evaluation, reserved_on = await self._reserve_budget(evaluation, log)
        criteria_ms = _elapsed_ms(start)
        self._record_gate(evaluation)

        start = time.perf_counter()
        if evaluation.should_proceed and evaluation.api_plan.any_enabled:
            reserved = evaluation.budget_check.estimated_cost
            external = ExternalVerificationResult()
            try:
                external = await self._executor.execute(
                    helios, statement_context, user_context, evaluation.api_plan
                )
            finally:
                await self._release_unspent(reserved - external.total_cost, reserved_on, log)
        else:
            external = ExternalVerificationResult.not_executed(evaluation.reason)
        external_ms = _elapsed_ms(start)
        self._record_providers(external)

        start = time.perf_counter()
        analysis = consolidate(helios, external, evaluation, self._settings)
        analysis = replace(
            analysis,
            timings=StageTimings(
                helios_ms=helios_ms,
                criteria_ms=criteria_ms,
                external_ms=external_ms,
                consolidation_ms=_elapsed_ms(start),
                providers=dict(external.timings),
            ),
        )

        if analysis.assessment.fallback_applied:
            record_consolidation_fallback()
        record_analysis(
            analysis.recommendation.value,
            analysis.confidence.value,
            analysis.final_score,
        )

        log.info(
            "waterfall_completed",
            internal_score=helios.veritas.score,
            final_score=analysis.final_score,
            recommendation=analysis.recommendation.value,
            confidence=analysis.confidence.value,
            external_cost=str(external.total_cost),
            execution_order=list(external.execution_order),
        )
        return analysis

    async def _evaluate_criteria(self, helios, log) -> CriteriaEvaluation:
        try:
            daily_usage = await self._accountant.get_daily_usage()
        except Exception as e:
            log.error("budget_usage_unavailable", error=str(e), error_type=type(e).__name__)
            evaluation = evaluate_waterfall_criteria(helios, Decimal("0"), self._settings)
            if not evaluation.should_proceed:
                return evaluation
            return deny_for_budget(evaluation, "Budget accounting unavailable")

        return evaluate_waterfall_criteria(helios, daily_usage, self._settings)

    async def _reserve_budget(
        self, evaluation: CriteriaEvaluation, log
    ) -> Tuple[CriteriaEvaluation, Optional[date]]:
        """Reserve the estimate before spending; a refusal overturns the gate."""
        amount = evaluation.budget_check.estimated_cost
        if not evaluation.should_proceed or amount <= 0:
            return evaluation, None

        try:
            reserved_on = await self._accountant.check_and_reserve(
                amount, self._settings.daily_budget_cap
            )
        except Exception as e:
            log.error("budget_reservation_failed", error=str(e), error_type=type(e).__name__)
            return deny_for_budget(evaluation, "Budget accounting unavailable"), None

        if not reserved_on:
            log.info("budget_reservation_refused", amount=str(amount))
            return deny_for_budget(evaluation, "Daily budget reservation refused"), None

        log.info("budget_reserved", amount=str(amount), day=reserved_on.isoformat())
        return evaluation, reserved_on

    async def _release_unspent(self, amount: Decimal, day: Optional[date], log) -> None:
        if amount <= 0:
            return
        try:
            await self._accountant.release(amount, day)
        except Exception as e:
            log.error(
                "budget_release_failed",
                amount=str(amount),
                error=str(e),
                error_type=type(e).__name__,
            )

    def _record_gate(self, evaluation: CriteriaEvaluation) -> None:
        if evaluation.should_proceed:
            outcome = "proceed"
        elif evaluation.criteria_score < self._settings.criteria_proceed_threshold:
            outcome = "criteria_not_met"
        else:
            outcome = "budget_exceeded"
        record_gate_outcome(outcome, evaluation.cost_saved)

    def _record_providers(self, external: ExternalVerificationResult) -> None:
        for service, outcome in external.outcomes.items():
            if isinstance(outcome, Success):
                record_provider_call(service, outcome.status, outcome.duration_ms, outcome.cost)
            elif isinstance(outcome, Failed):
                record_provider_call(service, outcome.status, outcome.duration_ms)
            else:
                record_provider_call(service, outcome.status)
