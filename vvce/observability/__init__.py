"""Observability for the VV Education API.

Components:
    - logging: Structured logging with structlog
    - metrics: Prometheus metrics export
    - health: Health checks for probes and /health

Usage:
    from vvce.observability import get_logger, increment_counter, check_health

    logger = get_logger(__name__)
    logger.info("course_validated", course_id="simple-quiz")
"""

from vvce.observability.logging import configure_logging, get_logger
from vvce.observability.metrics import (
    get_metrics_registry,
    increment_counter,
    record_histogram,
    set_gauge,
)
from vvce.observability.health import HealthStatus, check_health

__all__ = [
    "get_logger",
    "configure_logging",
    "increment_counter",
    "record_histogram",
    "set_gauge",
    "get_metrics_registry",
    "check_health",
    "HealthStatus",
]
