"""
Configuration loading for the VV Education API server.

Configuration values are resolved using the following precedence:

1. Explicit overrides passed to `load_config`
2. Environment variables (e.g., VV_PORT), including a local `.env` file
3. The `[server]` table of `vveducation.toml` if present in the project root
4. Built-in defaults
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import tomllib
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vvce.exceptions import ConfigError

__all__ = [
    "ServerConfig",
    "ConfigError",
    "load_config",
]


DEFAULT_CONFIG_FILE = Path("vveducation.toml")
DEFAULT_WORKSPACE_DIR = Path(".vveducation")

# Environment variable -> ServerConfig field
_ENV_FIELDS: Dict[str, str] = {
    "VV_APP_NAME": "app_name",
    "VV_HOST": "host",
    "VV_PORT": "port",
    "VV_LOG_LEVEL": "log_level",
    "VV_LOG_FORMAT": "log_format",
    "VV_LOG_FILE": "log_file",
    "VV_WORKSPACE_DIR": "workspace_dir",
    "VV_METRICS_ENABLED": "metrics_enabled",
    "VV_HEALTH_CHECKS_ENABLED": "health_checks_enabled",
    "VV_MAX_COURSE_BYTES": "max_course_bytes",
    "VV_MAX_SIMULATION_EVENTS": "max_simulation_events",
}

_BOOL_FIELDS = {"metrics_enabled", "health_checks_enabled"}


class ServerConfig(BaseModel):
    """Top-level configuration shared by the entry point and the app factory."""

    app_name: str = Field("VV Education API", description="Service name", min_length=1)
    version: str = Field("1.0.0", description="Service version reported by /info")
    host: str = Field("0.0.0.0", description="Interface the HTTP listener binds to")
    port: int = Field(8080, description="HTTP listener port", ge=1, le=65535)
    log_level: str = Field("INFO", description="Root log level")
    log_format: Literal["console", "json"] = Field(
        "console", description="Log renderer"
    )
    log_file: Optional[Path] = Field(None, description="Optional rotating log file")
    workspace_dir: Path = Field(
        DEFAULT_WORKSPACE_DIR, description="Scratch directory used by health probes"
    )
    metrics_enabled: bool = Field(True, description="Expose /metrics")
    health_checks_enabled: bool = Field(True, description="Run component health checks")
    max_course_bytes: int = Field(
        1024 * 1024, description="Largest accepted request body in bytes", gt=0
    )
    max_simulation_events: int = Field(
        500, description="Largest event list accepted by /simulate", gt=0
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> str:
        level = str(value).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("log_format", mode="before")
    @classmethod
    def _normalize_format(cls, value: Any) -> str:
        return str(value).strip().lower()

    @field_validator("workspace_dir", "log_file", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Optional[Path]:
        if value is None or value == "":
            return None
        return Path(value) if not isinstance(value, Path) else value

    def public_dict(self) -> Dict[str, Any]:
        """Return configuration values safe to expose over HTTP."""

        data = self.model_dump(mode="json")
        data.pop("log_file", None)
        return data


def load_config(
    config_path: Optional[Path | str] = None,
    *,
    load_env_file: bool = True,
    **overrides: Any,
) -> ServerConfig:
    """
    Load server configuration from overrides/environment/file/defaults.

    Args:
        config_path: Optional explicit path to a `vveducation.toml` file.
        load_env_file: Whether to read a `.env` file into the environment first.
        **overrides: Field values that win over every other source. `None`
            values are ignored so CLI flags can be passed through unchanged.

    Returns:
        ServerConfig populated with the resolved values.

    Raises:
        ConfigError: if the config path does not exist, cannot be parsed, or
            the resolved values fail validation.
    """

    if load_env_file:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    values: Dict[str, Any] = dict(_load_toml_data(config_path).get("server", {}))

    for env_var, field_name in _ENV_FIELDS.items():
        env_value = os.getenv(env_var)
        if env_value is None:
            continue
        if field_name in _BOOL_FIELDS:
            values[field_name] = _parse_bool(env_var, env_value)
        else:
            values[field_name] = env_value

    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ServerConfig(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc


def _load_toml_data(config_path: Optional[Path | str]) -> Dict[str, Any]:
    """Load data from a TOML file if one can be resolved."""

    resolved = _resolve_config_path(config_path)
    if resolved is None:
        return {}

    if not resolved.exists():
        raise ConfigError(f"Configuration file not found: {resolved}")

    try:
        with resolved.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Could not parse {resolved}: {exc}") from exc


def _resolve_config_path(config_path: Optional[Path | str]) -> Optional[Path]:
    """Resolve configuration path with environment fallback."""

    if config_path:
        return Path(config_path)

    env_path = os.getenv("VV_CONFIG_FILE")
    if env_path:
        return Path(env_path)

    return DEFAULT_CONFIG_FILE if DEFAULT_CONFIG_FILE.exists() else None


def _parse_bool(env_var: str, value: str) -> bool:
    """Resolve boolean from an environment value."""

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid boolean for {env_var}: {value}")
