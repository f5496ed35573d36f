"""Prometheus-compatible metrics export for the VV Education API.

This module collects metrics with the Prometheus client library:
- HTTP metrics (request count, latency, in-flight requests)
- Course tooling metrics (validations, dry runs, simulated events)
- Component health gauges

Usage:
    from vvce.observability.metrics import (
        increment_counter,
        record_histogram,
        set_gauge,
        track_duration,
    )

    increment_counter("course_validations_total", labels={"result": "valid"})

    with track_duration("dry_run_duration_seconds"):
        simulator.analyze(course)
"""

import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Union

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

_PREFIX = "vv_"

# Global registry for metrics
_registry = CollectorRegistry()

# HTTP Metrics
http_requests_total = Counter(
    "vv_http_requests_total",
    "Total HTTP requests by method, route and status code",
    ["method", "path", "status"],
    registry=_registry,
)

http_request_duration_seconds = Histogram(
    "vv_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
    registry=_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)

http_requests_in_progress = Gauge(
    "vv_http_requests_in_progress",
    "Number of HTTP requests currently being served",
    registry=_registry,
)

# Course Metrics
course_validations_total = Counter(
    "vv_course_validations_total",
    "Total course validations by result",
    ["result"],
    registry=_registry,
)

dry_runs_total = Counter(
    "vv_dry_runs_total",
    "Total dry-run analyses performed",
    registry=_registry,
)

dry_run_duration_seconds = Histogram(
    "vv_dry_run_duration_seconds",
    "Duration of dry-run analyses in seconds",
    registry=_registry,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, float("inf")),
)

simulated_events_total = Counter(
    "vv_simulated_events_total",
    "Total events replayed by the trigger simulator",
    registry=_registry,
)

# Health Metrics
health_status = Gauge(
    "vv_health_status",
    "Health status of components (1=healthy, 0=unhealthy)",
    ["component"],
    registry=_registry,
)

Metric = Union[Counter, Gauge, Histogram]

_METRICS: Dict[str, Metric] = {
    "http_requests_total": http_requests_total,
    "http_request_duration_seconds": http_request_duration_seconds,
    "http_requests_in_progress": http_requests_in_progress,
    "course_validations_total": course_validations_total,
    "dry_runs_total": dry_runs_total,
    "dry_run_duration_seconds": dry_run_duration_seconds,
    "simulated_events_total": simulated_events_total,
    "health_status": health_status,
}


def increment_counter(
    metric_name: str,
    value: float = 1.0,
    labels: Optional[Dict[str, str]] = None,
) -> None:
    """Increment a counter metric.

    Args:
        metric_name: Name of the counter (with or without the vv_ prefix)
        value: Amount to increment by (default: 1.0)
        labels: Optional labels as key-value pairs

    Example:
        >>> increment_counter("course_validations_total", labels={"result": "invalid"})
    """
    metric = _get_metric(metric_name)
    if isinstance(metric, Counter):
        _child(metric, labels).inc(value)


def record_histogram(
    metric_name: str,
    value: float,
    labels: Optional[Dict[str, str]] = None,
) -> None:
    """Record a histogram observation.

    Args:
        metric_name: Name of the histogram (with or without the vv_ prefix)
        value: Value to observe
        labels: Optional labels as key-value pairs
    """
    metric = _get_metric(metric_name)
    if isinstance(metric, Histogram):
        _child(metric, labels).observe(value)


def set_gauge(
    metric_name: str,
    value: float,
    labels: Optional[Dict[str, str]] = None,
) -> None:
    """Set a gauge metric value.

    Args:
        metric_name: Name of the gauge (with or without the vv_ prefix)
        value: Value to set
        labels: Optional labels as key-value pairs

    Example:
        >>> set_gauge("health_status", 1.0, labels={"component": "engine"})
    """
    metric = _get_metric(metric_name)
    if isinstance(metric, Gauge):
        _child(metric, labels).set(value)


def increment_gauge(metric_name: str, value: float = 1.0) -> None:
    """Increment an unlabelled gauge."""
    metric = _get_metric(metric_name)
    if isinstance(metric, Gauge):
        metric.inc(value)


def decrement_gauge(metric_name: str, value: float = 1.0) -> None:
    """Decrement an unlabelled gauge."""
    metric = _get_metric(metric_name)
    if isinstance(metric, Gauge):
        metric.dec(value)


@contextmanager
def track_duration(
    metric_name: str,
    labels: Optional[Dict[str, str]] = None,
) -> Iterator[None]:
    """Context manager to track duration of an operation.

    Args:
        metric_name: Name of the histogram metric
        labels: Optional labels as key-value pairs

    Example:
        >>> with track_duration("dry_run_duration_seconds"):
        ...     simulator.analyze(course)
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        record_histogram(metric_name, time.perf_counter() - start_time, labels)


def get_metrics_registry() -> CollectorRegistry:
    """Get the global metrics registry."""
    return _registry


def get_metrics_output() -> bytes:
    """Get Prometheus-formatted metrics output."""
    return generate_latest(_registry)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST


def _get_metric(metric_name: str) -> Optional[Metric]:
    """Look up a metric by name; unknown names return None."""
    if metric_name.startswith(_PREFIX):
        metric_name = metric_name[len(_PREFIX):]
    return _METRICS.get(metric_name)


def _child(metric: Metric, labels: Optional[Dict[str, str]]):
    return metric.labels(**labels) if labels else metric


__all__ = [
    "increment_counter",
    "record_histogram",
    "set_gauge",
    "increment_gauge",
    "decrement_gauge",
    "track_duration",
    "get_metrics_registry",
    "get_metrics_output",
    "get_metrics_content_type",
]
