"""
HTTP routers for the VV Education API server.

Each module in this package that defines a module-level FastAPI
`APIRouter` named `router` is mounted by `app.server.create_app()`. An
optional `PREFIX` string sets the mount point. Adding an endpoint group
means adding a module here; nothing else needs to import it.
"""

from __future__ import annotations

API_VERSION = "v1"


def describe() -> str:
    """Return a short string describing the API surface."""
    return f"VV Education API {API_VERSION} (courses, health, system)"


__all__ = ["API_VERSION", "describe"]
