"""Resolution of ``{"ref": path}`` values and ``{{path}}`` text placeholders."""

from __future__ import annotations

import re
from typing import Any

from vvce.runtime.store import Store

_PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")
_MISSING = object()


class ReferenceResolver:
    """Reads references against a Store."""

    def __init__(self, store: Store):
        self.store = store

    @staticmethod
    def is_ref(value: Any) -> bool:
        return isinstance(value, dict) and "ref" in value and isinstance(value["ref"], str)

    def resolve(self, value: Any) -> Any:
        """Return the referenced value, or the value itself if it is not a reference."""
        if self.is_ref(value):
            return self.store.get(value["ref"])
        return value

    def interpolate(self, text: Any) -> Any:
        """
        Replace ``{{path}}`` placeholders with state values.

        Placeholders whose path is not set are left untouched.
        """
        if not isinstance(text, str):
            return text

        def replace(match: re.Match) -> str:
            value = self.store.get(match.group(1).strip(), _MISSING)
            if value is _MISSING or value is None:
                return match.group(0)
            return _to_text(value)

        return _PLACEHOLDER.sub(replace, text)

    def resolve_object(self, obj: Any) -> Any:
        """Recursively resolve references and interpolate strings in a structure."""
        if self.is_ref(obj):
            return self.resolve(obj)
        if isinstance(obj, str):
            return self.interpolate(obj)
        if isinstance(obj, list):
            return [self.resolve_object(item) for item in obj]
        if isinstance(obj, dict):
            return {key: self.resolve_object(value) for key, value in obj.items()}
        return obj


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


__all__ = ["ReferenceResolver"]
