"""Prometheus metrics for the Helios Waterfall service.

Metrics are organized into two categories:

Business Metrics (for Risk/Finance):
- helios_analysis_total: Analyses by recommendation
- helios_waterfall_gate_total: Gate outcomes (proceed, criteria_not_met, budget_exceeded)
- helios_external_spend_dollars_total: Dollars spent on external providers
- helios_cost_saved_dollars_total: Provider dollars not spent thanks to the gate
- helios_final_score: Distribution of final scores

Technical Metrics (for Engineering/SRE):
- helios_analysis_latency_seconds: End-to-end analysis latency
- helios_provider_calls_total: Provider calls by provider and status
- helios_provider_latency_seconds: Provider call latency
- helios_consolidation_fallback_total: Consolidations that fell back to the internal score
- helios_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from decimal import Decimal
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Risk/Finance dashboards)
# =============================================================================

analysis_total = Counter(
    "helios_analysis_total",
    "Total number of waterfall analyses completed",
    ["recommendation", "confidence"],
)

gate_total = Counter(
    "helios_waterfall_gate_total",
    "Criteria gate outcomes",
    ["outcome"],  # proceed, criteria_not_met, budget_exceeded
)

external_spend = Counter(
    "helios_external_spend_dollars_total",
    "Dollars spent on external verification providers",
    ["provider"],
)

cost_saved = Counter(
    "helios_cost_saved_dollars_total",
    "Provider dollars not spent because the gate skipped them",
)

final_score = Histogram(
    "helios_final_score",
    "Final consolidated Veritas score",
    buckets=[300, 500, 550, 600, 650, 700, 750, 800, 850],
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

analysis_latency = Histogram(
    "helios_analysis_latency_seconds",
    "Waterfall analysis latency in seconds",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

provider_calls_total = Counter(
    "helios_provider_calls_total",
    "External verification provider calls",
    ["provider", "status"],  # success, failed, skipped
)

provider_latency = Histogram(
    "helios_provider_latency_seconds",
    "External verification provider latency in seconds",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0],
)

consolidation_fallbacks = Counter(
    "helios_consolidation_fallback_total",
    "Consolidations that fell back to the unmodified internal score",
)

http_requests_total = Counter(
    "helios_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "helios_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_analysis(recommendation: str, confidence: str, score: int) -> None:
    """Record a completed analysis in metrics."""
    analysis_total.labels(recommendation=recommendation, confidence=confidence).inc()
    final_score.observe(score)


def record_gate_outcome(outcome: str, saved: Decimal) -> None:
    """Record a criteria gate decision and the provider spend it avoided."""
    gate_total.labels(outcome=outcome).inc()
    if saved > 0:
        cost_saved.inc(float(saved))


def record_provider_call(
    provider: str,
    status: str,
    duration_ms: float | None = None,
    cost: Decimal | None = None,
) -> None:
    """Record one provider outcome."""
    provider_calls_total.labels(provider=provider, status=status).inc()
    if duration_ms is not None:
        provider_latency.labels(provider=provider).observe(duration_ms / 1000)
    if cost:
        external_spend.labels(provider=provider).inc(float(cost))


def record_consolidation_fallback() -> None:
    """Record a consolidation that fell back to the internal score."""
    consolidation_fallbacks.inc()


@contextmanager
def track_analysis_latency() -> Generator[None, None, None]:
    """Context manager to track analysis latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        analysis_latency.observe(duration)


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
