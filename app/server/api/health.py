"""Health endpoints for load balancers, container probes and Docker.

Example `/health` response:

    {
        "status": "healthy",
        "timestamp": "2025-11-20T12:00:00+00:00",
        "uptime_seconds": 3600.0,
        "components": [
            {
                "name": "engine",
                "status": "healthy",
                "message": "Course engine operational",
                "latency_ms": 5.2,
                "metadata": {"sample_paths": 1}
            }
        ]
    }
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from app.server.api.system import uptime_seconds
from vvce.observability.health import check_health, check_liveness, check_readiness
from vvce.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", response_class=JSONResponse)
async def health(request: Request) -> JSONResponse:
    """Comprehensive health check.

    Response Codes:
        200: All components healthy
        503: One or more components unhealthy
    """
    config = request.app.state.config
    if not config.health_checks_enabled:
        return JSONResponse(
            content={
                "status": "healthy",
                "message": "Component health checks disabled",
                "timestamp": _timestamp(),
                "uptime_seconds": uptime_seconds(request),
                "components": [],
            }
        )

    try:
        health_status = check_health(workspace_dir=config.workspace_dir, config=config)
        health_status.uptime_seconds = uptime_seconds(request)
        return JSONResponse(
            content=health_status.to_dict(),
            status_code=200 if health_status.is_healthy else 503,
        )

    except Exception as e:
        logger.error("health_check_error", error=str(e), exc_info=True)
        return JSONResponse(
            content={
                "status": "unhealthy",
                "error": "An internal error has occurred.",
                "timestamp": _timestamp(),
            },
            status_code=503,
        )


@router.get("/health/liveness", response_class=JSONResponse)
async def liveness(request: Request) -> JSONResponse:
    """Liveness probe: only checks that the workspace is writable."""
    try:
        is_alive = check_liveness(request.app.state.config.workspace_dir)
    except Exception as e:
        logger.error("liveness_check_error", error=str(e), exc_info=True)
        is_alive = False

    return JSONResponse(
        content={"status": "alive" if is_alive else "dead", "timestamp": _timestamp()},
        status_code=200 if is_alive else 503,
    )


@router.get("/health/readiness", response_class=JSONResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe: configuration and course engine must be healthy."""
    try:
        config = request.app.state.config
        is_ready = check_readiness(config.workspace_dir, config)
    except Exception as e:
        logger.error("readiness_check_error", error=str(e), exc_info=True)
        is_ready = False

    return JSONResponse(
        content={"status": "ready" if is_ready else "not_ready", "timestamp": _timestamp()},
        status_code=200 if is_ready else 503,
    )


# Health check for Docker HEALTHCHECK instruction
@router.get("/healthz", response_class=PlainTextResponse)
async def healthz(request: Request) -> PlainTextResponse:
    """Plain-text health check returning OK."""
    try:
        is_alive = check_liveness(request.app.state.config.workspace_dir)
    except Exception as e:
        logger.error("healthz_check_error", error=str(e), exc_info=True)
        is_alive = False

    if is_alive:
        return PlainTextResponse("OK")
    return PlainTextResponse("UNHEALTHY", status_code=503)
