"""Service description, runtime information and Prometheus metrics."""

import platform
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse

from app.server.api import API_VERSION, describe
from vvce.observability.logging import get_logger
from vvce.observability.metrics import get_metrics_content_type, get_metrics_output

logger = get_logger(__name__)

router = APIRouter(tags=["system"])


def uptime_seconds(request: Request) -> float:
    started_at: datetime = request.app.state.started_at
    return (datetime.now(timezone.utc) - started_at).total_seconds()


@router.get("/")
async def root(request: Request) -> Dict[str, Any]:
    """Service description with the main endpoints."""
    config = request.app.state.config
    return {
        "service": config.app_name,
        "version": config.version,
        "api_version": API_VERSION,
        "description": describe(),
        "status": "running",
        "endpoints": {
            "health": "/health",
            "liveness": "/health/liveness",
            "readiness": "/health/readiness",
            "metrics": "/metrics",
            "info": "/info",
            "docs": "/docs",
            "validate": "/api/v1/courses/validate",
            "dry_run": "/api/v1/courses/dry-run",
            "simulate": "/api/v1/courses/simulate",
        },
    }


@router.get("/info")
async def info(request: Request) -> Dict[str, Any]:
    """Version, uptime, interpreter and effective configuration."""
    config = request.app.state.config
    started_at: datetime = request.app.state.started_at
    return {
        "service": config.app_name,
        "version": config.version,
        "uptime_seconds": uptime_seconds(request),
        "startup_time": started_at.isoformat(),
        "python_version": platform.python_version(),
        "config": config.public_dict(),
    }


@router.get("/metrics", response_class=PlainTextResponse)
async def metrics(request: Request) -> Response:
    """Prometheus metrics in exposition format.

    Metrics include:
    - vv_http_requests_total: Requests by method, route and status
    - vv_http_request_duration_seconds: Request latency
    - vv_course_validations_total: Validations by result
    - vv_dry_runs_total: Dry runs performed
    - vv_simulated_events_total: Events replayed by /simulate
    - vv_health_status: Component health (1=healthy, 0=unhealthy)
    """
    if not request.app.state.config.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics are disabled")

    return Response(content=get_metrics_output(), media_type=get_metrics_content_type())
