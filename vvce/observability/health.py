"""Health checks for the VV Education API server.

This module provides health check capabilities for:
- File system (workspace directory writable, free disk space)
- Configuration (settings resolve and validate)
- Course engine (validator, dry run and simulator run on the sample course)
- Overall system health

Supports both liveness and readiness probes for container deployments.

Usage:
    from vvce.observability.health import check_health

    status = check_health(workspace_dir=Path(".vveducation"))
    print(status.is_healthy)

    # Use in HTTP endpoint
    return status.to_dict()
"""

import os
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from vvce.observability.logging import get_logger
from vvce.observability.metrics import set_gauge

if TYPE_CHECKING:
    from vvce.config import ServerConfig

logger = get_logger(__name__)

DEFAULT_WORKSPACE_DIR = Path(".vveducation")


@dataclass
class ComponentHealth:
    """Health status of a single component.

    Attributes:
        name: Component name
        status: Health status ("healthy" or "unhealthy")
        message: Human-readable status message
        latency_ms: Health check latency in milliseconds
        metadata: Additional component-specific metadata
    """

    name: str
    status: str  # "healthy" or "unhealthy"
    message: str
    latency_ms: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        """Check if component is healthy."""
        return self.status == "healthy"


@dataclass
class HealthStatus:
    """Overall system health status.

    Attributes:
        status: Overall status ("healthy" or "unhealthy")
        components: List of component health statuses
        timestamp: ISO8601 timestamp of health check
        uptime_seconds: Server uptime in seconds (filled in by the API layer)
    """

    status: str
    components: List[ComponentHealth]
    timestamp: str
    uptime_seconds: Optional[float] = None

    @property
    def is_healthy(self) -> bool:
        """Check if overall system is healthy."""
        return self.status == "healthy"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "uptime_seconds": self.uptime_seconds,
            "components": [
                {
                    "name": c.name,
                    "status": c.status,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                    "metadata": c.metadata,
                }
                for c in self.components
            ],
        }


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000


def check_filesystem_health(workspace_dir: Optional[Path] = None) -> ComponentHealth:
    """Check file system health.

    Args:
        workspace_dir: Path to workspace directory (defaults to .vveducation)

    Returns:
        ComponentHealth with file system status

    Checks:
        - Workspace directory exists (created if missing) and is writable
        - At least 1GB or 10% of the disk is free
    """
    start_time = time.perf_counter()
    workspace_dir = workspace_dir or DEFAULT_WORKSPACE_DIR

    try:
        workspace_dir.mkdir(parents=True, exist_ok=True)

        if not os.access(workspace_dir, os.W_OK):
            return ComponentHealth(
                name="filesystem",
                status="unhealthy",
                message=f"Workspace directory not writable: {workspace_dir}",
                latency_ms=_elapsed_ms(start_time),
                metadata={"workspace_dir": str(workspace_dir)},
            )

        disk_usage = shutil.disk_usage(workspace_dir)
        free_gb = disk_usage.free / (1024**3)
        total_gb = disk_usage.total / (1024**3)
        free_percent = (disk_usage.free / disk_usage.total) * 100 if disk_usage.total else 0.0

        is_healthy = free_gb >= 1.0 or free_percent >= 10.0

        return ComponentHealth(
            name="filesystem",
            status="healthy" if is_healthy else "unhealthy",
            message="File system operational"
            if is_healthy
            else f"Low disk space: {free_gb:.2f}GB ({free_percent:.1f}%) free",
            latency_ms=_elapsed_ms(start_time),
            metadata={
                "workspace_dir": str(workspace_dir),
                "free_gb": round(free_gb, 2),
                "total_gb": round(total_gb, 2),
                "free_percent": round(free_percent, 1),
            },
        )

    except OSError as e:
        logger.error("filesystem_health_check_failed", error=str(e))
        return ComponentHealth(
            name="filesystem",
            status="unhealthy",
            message=f"File system error: {e}",
            latency_ms=_elapsed_ms(start_time),
            metadata={"workspace_dir": str(workspace_dir), "error": str(e)},
        )


def check_config_health(config: Optional["ServerConfig"] = None) -> ComponentHealth:
    """Check the running configuration, or resolve it from the environment.

    Args:
        config: Configuration the server is running with. When omitted the
            configuration is loaded from the current environment instead.
    """
    from pydantic import ValidationError

    from vvce.config import ServerConfig, load_config
    from vvce.exceptions import ConfigError

    start_time = time.perf_counter()
    try:
        if config is None:
            config = load_config(load_env_file=False)
        else:
            config = ServerConfig.model_validate(config.model_dump())
    except (ConfigError, ValidationError) as e:
        logger.error("config_health_check_failed", error=str(e))
        return ComponentHealth(
            name="config",
            status="unhealthy",
            message=str(e),
            latency_ms=_elapsed_ms(start_time),
        )

    return ComponentHealth(
        name="config",
        status="healthy",
        message="Configuration valid",
        latency_ms=_elapsed_ms(start_time),
        metadata={"port": config.port, "log_level": config.log_level},
    )


def check_engine_health() -> ComponentHealth:
    """Run the validator, dry run and simulator over the built-in sample course."""
    from vvce.analysis import DryRunSimulator
    from vvce.exceptions import VVCEError
    from vvce.runtime import RuntimeEvent, simulate
    from vvce.samples import sample_course
    from vvce.schema import parse_course

    start_time = time.perf_counter()
    try:
        course = parse_course(sample_course())
        dry_run = DryRunSimulator().analyze(course)
        result = simulate(course, [RuntimeEvent(type="click", target="startBtn")])
        if result.final_scene != "question1":
            raise VVCEError(f"unexpected scene after simulation: {result.final_scene}")
    except VVCEError as e:
        logger.error("engine_health_check_failed", error=str(e))
        return ComponentHealth(
            name="engine",
            status="unhealthy",
            message=f"Course engine error: {e}",
            latency_ms=_elapsed_ms(start_time),
        )

    return ComponentHealth(
        name="engine",
        status="healthy",
        message="Course engine operational",
        latency_ms=_elapsed_ms(start_time),
        metadata={"sample_paths": len(dry_run.paths)},
    )


def check_health(
    workspace_dir: Optional[Path] = None, config: Optional["ServerConfig"] = None
) -> HealthStatus:
    """Check overall system health.

    Args:
        workspace_dir: Optional workspace directory (defaults to .vveducation)
        config: Running configuration to check instead of reloading it

    Returns:
        HealthStatus with overall and component-level health
    """
    components = [
        check_filesystem_health(workspace_dir),
        check_config_health(config),
        check_engine_health(),
    ]

    all_healthy = all(c.is_healthy for c in components)
    overall_status = "healthy" if all_healthy else "unhealthy"

    for component in components:
        set_gauge(
            "health_status",
            1.0 if component.is_healthy else 0.0,
            labels={"component": component.name},
        )

    logger.debug(
        "health_check_completed",
        status=overall_status,
        components_count=len(components),
        healthy_count=sum(1 for c in components if c.is_healthy),
    )

    return HealthStatus(
        status=overall_status,
        components=components,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def check_readiness(
    workspace_dir: Optional[Path] = None, config: Optional["ServerConfig"] = None
) -> bool:
    """Readiness probe: configuration and course engine must be healthy."""
    health = check_health(workspace_dir, config)

    critical_components = {"config", "engine"}
    for component in health.components:
        if component.name in critical_components and not component.is_healthy:
            logger.warning(
                "readiness_check_failed",
                component=component.name,
                message=component.message,
            )
            return False

    return True


def check_liveness(workspace_dir: Optional[Path] = None) -> bool:
    """Liveness probe: can we still write to the workspace?"""
    workspace_dir = workspace_dir or DEFAULT_WORKSPACE_DIR
    try:
        workspace_dir.mkdir(parents=True, exist_ok=True)
        test_file = workspace_dir / ".liveness_check"
        test_file.write_text("alive")
        test_file.unlink()
        return True

    except OSError as e:
        logger.error("liveness_check_failed", error=str(e))
        return False


__all__ = [
    "ComponentHealth",
    "HealthStatus",
    "check_health",
    "check_filesystem_health",
    "check_config_health",
    "check_engine_health",
    "check_readiness",
    "check_liveness",
]
