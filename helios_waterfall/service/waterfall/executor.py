"""
External Verification Executor.

Calls each provider enabled by the API plan and isolates failures: one
provider raising never stops the others. Providers run in the fixed order
middesk -> isoftpull -> sos, or concurrently when parallel_provider_calls
is set (execution_order then follows completion order).

Every provider call resolves to an explicit outcome:
    Success  called and returned; cost charged, appended to execution_order
    Failed   called and raised; recorded in errors, no cost charged
    Skipped  disabled by the plan or no client configured; in neither list
"""

import asyncio
import time
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import structlog

from helios_waterfall.domain.entities import (
    BusinessVerificationRequest,
    CreditCheckRequest,
    RegistrationCheckRequest,
    StatementContext,
    UserContext,
)
from helios_waterfall.domain.interfaces import VerificationProviders

from ..helios.models import HeliosAnalysis
from ..settings import PROVIDER_ORDER, EngineSettings, engine_settings
from .models import (
    ApiPlan,
    ExternalVerificationResult,
    Failed,
    ProviderError,
    ProviderOutcome,
    Skipped,
    Success,
)

logger = structlog.get_logger(__name__)

FAILURE_IMPACT = {
    "middesk": "Business identity not verified externally; no business verification adjustment applied",
    "isoftpull": "Owner credit not checked; no credit score adjustment applied",
    "sos": "State registration not confirmed; no registration adjustment applied",
}


class ExternalVerificationExecutor:
    """
    Runs the paid verification stage of the waterfall.

    Provider clients are injected, so production adapters and deterministic
    test doubles are interchangeable.
    """

    def __init__(
        self,
        providers: VerificationProviders,
        settings: EngineSettings = engine_settings,
    ):
        self._providers = providers
        self._settings = settings

    async def execute(
        self,
        helios: HeliosAnalysis,
        statement_context: Optional[StatementContext],
        user_context: Optional[UserContext],
        api_plan: ApiPlan,
    ) -> ExternalVerificationResult:
        """
        Call every enabled provider and collect the outcomes.

        Never raises for provider errors; each is converted into an
        `errors` entry and the remaining providers still run.

        Args:
            helios: Helios snapshot (logged alongside provider calls)
            statement_context: Business identity used in provider requests
            user_context: Requesting user, forwarded to provider requests
            api_plan: Providers the criteria gate paid for

        Returns:
            ExternalVerificationResult
        """
        statement_context = statement_context or StatementContext()
        log = logger.bind(
            user_id=user_context.user_id if user_context else None,
            veritas_score=helios.veritas.score,
            api_plan=api_plan.enabled,
        )

        outcomes: Dict[str, ProviderOutcome] = {}
        calls: List[Tuple[str, Callable[[], Awaitable[Any]]]] = []

        for service in PROVIDER_ORDER:
            if not api_plan.is_enabled(service):
                outcomes[service] = Skipped("Disabled by API plan")
                continue
            call = self._build_call(service, statement_context, user_context)
            if call is None:
                outcomes[service] = Skipped("Provider not configured")
                log.warning("provider_not_configured", service=service)
                continue
            calls.append((service, call))

        if self._settings.parallel_provider_calls and len(calls) > 1:
            execution_order = await self._run_parallel(calls, outcomes, log)
        else:
            execution_order = []
            for service, call in calls:
                outcomes[service] = await self._invoke(service, call, log)
                if isinstance(outcomes[service], Success):
                    execution_order.append(service)

        return self._build_result(outcomes, execution_order, log)

    def _build_call(
        self,
        service: str,
        context: StatementContext,
        user: Optional[UserContext],
    ) -> Optional[Callable[[], Awaitable[Any]]]:
        owner_name = user.owner_name if user else None

        if service == "middesk" and self._providers.middesk is not None:
            request = BusinessVerificationRequest(
                business_name=context.business_name,
                tax_id=context.tax_id,
                address=context.address,
                state=context.state,
            )
            return lambda: self._providers.middesk.verify_business(request)

        if service == "isoftpull" and self._providers.isoftpull is not None:
            request = CreditCheckRequest(
                ssn=context.ssn,
                owner_name=owner_name,
                address=context.address,
            )
            return lambda: self._providers.isoftpull.check_credit(request)

        if service == "sos" and self._providers.sos is not None:
            request = RegistrationCheckRequest(
                business_name=context.business_name,
                state=context.state,
            )
            return lambda: self._providers.sos.verify_registration(request)

        return None

    async def _invoke(
        self,
        service: str,
        call: Callable[[], Awaitable[Any]],
        log,
    ) -> ProviderOutcome:
        start = time.perf_counter()
        try:
            data = await call()
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            log.warning(
                "provider_call_failed",
                service=service,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
            )
            return Failed(
                error=str(e) or type(e).__name__,
                impact=FAILURE_IMPACT[service],
                duration_ms=duration_ms,
                error_code=getattr(e, "code", None),
            )

        duration_ms = (time.perf_counter() - start) * 1000
        if data is None:
            log.warning("provider_empty_response", service=service)
            return Failed(
                error="empty provider response",
                impact=FAILURE_IMPACT[service],
                duration_ms=duration_ms,
            )

        cost = self._settings.provider_costs[service]
        log.info(
            "provider_call_succeeded",
            service=service,
            cost=str(cost),
            duration_ms=round(duration_ms, 2),
        )
        return Success(data=data, cost=cost, duration_ms=duration_ms)

    async def _run_parallel(
        self,
        calls: List[Tuple[str, Callable[[], Awaitable[Any]]]],
        outcomes: Dict[str, ProviderOutcome],
        log,
    ) -> List[str]:
        async def run(service: str, call) -> Tuple[str, ProviderOutcome]:
            return service, await self._invoke(service, call, log)

        execution_order = []
        for finished in asyncio.as_completed([run(s, c) for s, c in calls]):
            service, outcome = await finished
            outcomes[service] = outcome
            if isinstance(outcome, Success):
                execution_order.append(service)
        return execution_order

    def _build_result(
        self,
        outcomes: Dict[str, ProviderOutcome],
        execution_order: List[str],
        log,
    ) -> ExternalVerificationResult:
        results: Dict[str, Any] = {}
        errors: List[ProviderError] = []
        timings: Dict[str, float] = {}
        total_cost = Decimal("0")

        for service in PROVIDER_ORDER:
            outcome = outcomes[service]
            if isinstance(outcome, Success):
                results[service] = outcome.data
                total_cost += outcome.cost
                timings[service] = outcome.duration_ms
            elif isinstance(outcome, Failed):
                errors.append(
                    ProviderError(service=service, error=outcome.error, impact=outcome.impact)
                )
                timings[service] = outcome.duration_ms

        log.info(
            "external_verification_completed",
            execution_order=execution_order,
            error_count=len(errors),
            total_cost=str(total_cost),
        )

        return ExternalVerificationResult(
            middesk=results.get("middesk"),
            isoftpull=results.get("isoftpull"),
            sos=results.get("sos"),
            errors=tuple(errors),
            total_cost=total_cost,
            execution_order=tuple(execution_order),
            timings=timings,
            outcomes={s: outcomes[s] for s in PROVIDER_ORDER},
        )
