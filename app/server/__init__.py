"""
Application factory for the VV Education API server.

`create_app()` is where the application auto-configures itself:

* `app/server/api/` - every module exposing a module-level `router` is
  mounted, under its `PREFIX` when it declares one.
* request middleware binds a correlation id, records request metrics and
  writes one access log line per request.
* engine exceptions are mapped to HTTP responses in one place.

The entry point in `app.server.main` only resolves configuration and hands
the result to this factory, so tests can build fully wired apps without
binding a socket.
"""

from __future__ import annotations

import importlib
import pkgutil
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from vvce.config import ServerConfig, load_config
from vvce.exceptions import CourseValidationError, SimulationError, VVCEError
from vvce.observability.logging import (
    clear_correlation_id,
    get_logger,
    set_correlation_id,
)
from vvce.observability.metrics import (
    decrement_gauge,
    increment_counter,
    increment_gauge,
    record_histogram,
)

logger = get_logger(__name__)

API_PACKAGE = "app.server.api"
REQUEST_ID_HEADER = "X-Request-ID"
UNMATCHED_ROUTE = "<unmatched>"


@dataclass
class RouteDefinition:
    """
    Metadata for one discovered HTTP route.

    Kept alongside the FastAPI router so `/` and the tests can list the
    endpoints the factory wired up without walking Starlette internals.
    """

    path: str
    method: str = "GET"
    description: str = ""

    @property
    def key(self) -> str:
        return f"{self.method.upper()} {self.path}"


def discover_routers(package_name: str = API_PACKAGE) -> List[object]:
    """Import every module of `package_name` that exposes a `router`."""

    package = importlib.import_module(package_name)
    modules = []
    for module_info in sorted(pkgutil.iter_modules(package.__path__), key=lambda m: m.name):
        if module_info.name.startswith("_"):
            continue
        module = importlib.import_module(f"{package_name}.{module_info.name}")
        if getattr(module, "router", None) is None:
            logger.debug("api_module_skipped", module=module.__name__)
            continue
        modules.append(module)
    return modules


def available_routes(app: FastAPI) -> Dict[str, RouteDefinition]:
    """Return a copy of the routes registered by auto-configuration."""
    return dict(app.state.routes)


def _collect_routes(router: APIRouter, prefix: str = "") -> Dict[str, RouteDefinition]:
    routes: Dict[str, RouteDefinition] = {}
    for route in router.routes:
        if not isinstance(route, APIRoute) or not route.include_in_schema:
            continue
        description = (route.description or route.summary or "").strip().splitlines()
        for method in sorted(route.methods):
            definition = RouteDefinition(
                path=f"{prefix}{route.path}",
                method=method,
                description=description[0] if description else "",
            )
            routes[definition.key] = definition
    return routes


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    config: ServerConfig = app.state.config
    logger.info(
        "server_started",
        app_name=config.app_name,
        host=config.host,
        port=config.port,
        routes=len(app.state.routes),
    )
    yield
    logger.info("server_shutdown", host=config.host, port=config.port)


def _install_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def request_context(request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get(REQUEST_ID_HEADER))
        start_time = time.perf_counter()
        increment_gauge("http_requests_in_progress")
        try:
            response = _reject_oversized(request)
            if response is None:
                try:
                    response = await call_next(request)
                except Exception:
                    logger.error(
                        "unhandled_exception",
                        method=request.method,
                        path=request.url.path,
                        exc_info=True,
                    )
                    response = JSONResponse(
                        status_code=500,
                        content={"detail": "An internal error has occurred."},
                    )

            duration = time.perf_counter() - start_time
            # label by route template so path parameters and 404 scans stay bounded
            route = request.scope.get("route")
            path = getattr(route, "path", None) or UNMATCHED_ROUTE
            increment_counter(
                "http_requests_total",
                labels={
                    "method": request.method,
                    "path": path,
                    "status": str(response.status_code),
                },
            )
            record_histogram(
                "http_request_duration_seconds",
                duration,
                labels={"method": request.method, "path": path},
            )
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            response.headers[REQUEST_ID_HEADER] = correlation_id
            return response
        finally:
            decrement_gauge("http_requests_in_progress")
            clear_correlation_id()


def _reject_oversized(request: Request) -> JSONResponse | None:
    limit = request.app.state.config.max_course_bytes
    content_length = request.headers.get("content-length")
    if content_length is None or not content_length.isdigit():
        return None
    if int(content_length) <= limit:
        return None

    logger.warning(
        "request_body_too_large",
        path=request.url.path,
        content_length=int(content_length),
        limit=limit,
    )
    return JSONResponse(
        status_code=413,
        content={"detail": f"Request body exceeds {limit} bytes"},
    )


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CourseValidationError)
    async def course_validation_error(request: Request, exc: CourseValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "result": exc.result.to_dict()},
        )

    @app.exception_handler(SimulationError)
    async def simulation_error(request: Request, exc: SimulationError):
        logger.warning("simulation_failed", error=str(exc), scene_id=exc.scene_id)
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "scene_id": exc.scene_id},
        )

    @app.exception_handler(VVCEError)
    async def engine_error(request: Request, exc: VVCEError):
        logger.warning("engine_error", error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app(config: ServerConfig | None = None) -> FastAPI:
    """
    Build the FastAPI application and wire every discovered router.

    Args:
        config: Resolved server configuration. When omitted it is loaded
            from the environment, `vveducation.toml` and defaults.

    Returns:
        Configured FastAPI instance with `config`, `started_at` and
        `routes` stored on `app.state`.
    """

    config = config or load_config()

    app = FastAPI(
        title=config.app_name,
        description="Course tooling, health checks and metrics for VV Education",
        version=config.version,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.started_at = datetime.now(timezone.utc)

    _install_middleware(app)
    _install_exception_handlers(app)

    routes: Dict[str, RouteDefinition] = {}
    for module in discover_routers():
        prefix = getattr(module, "PREFIX", "")
        app.include_router(module.router, prefix=prefix)
        routes.update(_collect_routes(module.router, prefix))
        logger.debug("router_registered", module=module.__name__, prefix=prefix or "/")

    app.state.routes = routes
    return app


__all__ = ["RouteDefinition", "available_routes", "create_app", "discover_routers"]
