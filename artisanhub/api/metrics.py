"""
Prometheus metrics for the ArtisanHub API.

Request counters and latency histograms are recorded by the latency
middleware; AI call outcomes are recorded by the advisor service.
"""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUEST_COUNT = Counter(
    "artisanhub_requests_total",
    "Total HTTP requests",
    ["endpoint", "method", "status"],
)

REQUEST_DURATION = Histogram(
    "artisanhub_request_duration_ms",
    "Request latency in milliseconds",
    ["endpoint"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000),
)

LLM_DURATION = Histogram(
    "artisanhub_llm_duration_seconds",
    "Generative AI call latency in seconds",
    buckets=(0.25, 0.5, 1, 2, 5, 10, 20, 30, 60),
)

AI_EVENTS = Counter(
    "artisanhub_ai_events_total",
    "Advisory AI call outcomes",
    ["result"],  # ok, failed, disabled
)

ERROR_COUNT = Counter(
    "artisanhub_errors_total",
    "Handled API errors by type",
    ["error_type"],
)


def record_request(endpoint: str, method: str, status: int) -> None:
    """Increment the request counter."""
    REQUEST_COUNT.labels(endpoint=endpoint, method=method, status=str(status)).inc()


def observe_duration(endpoint: str, duration_ms: float) -> None:
    """Record request duration."""
    REQUEST_DURATION.labels(endpoint=endpoint).observe(duration_ms)


def observe_llm_duration(duration_seconds: float) -> None:
    """Record how long a generative AI call took."""
    LLM_DURATION.observe(duration_seconds)


def record_ai_event(result: str) -> None:
    """Record an advisory AI outcome: ``ok``, ``failed`` or ``disabled``."""
    AI_EVENTS.labels(result=result).inc()


def record_error(error_type: str) -> None:
    """Count a handled error."""
    ERROR_COUNT.labels(error_type=error_type).inc()


def metrics_response() -> tuple[bytes, str]:
    """Return (body, content_type) for the /metrics endpoint."""
    return generate_latest(), CONTENT_TYPE_LATEST
