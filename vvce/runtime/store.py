"""
Layered runtime state for course playback.

State is split into three layers addressed by dotted paths:

- ``globals.vars.<name>``: survives scene changes
- ``scene.vars.<name>``: cleared on every scene change
- ``nodes.<nodeId>.<key>``: per-node state, cleared on scene change

``<nodeId>.state.<key>`` is accepted as an alias for the node layer, which
is the form course authors write in conditions.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from vvce.observability.logging import get_logger

logger = get_logger(__name__)

LAYERS = ("globals", "scene", "nodes")
_MISSING = object()


def _empty_state() -> Dict[str, Any]:
    return {"globals": {"vars": {}}, "scene": {"vars": {}}, "nodes": {}}


class Store:
    """Mutable runtime state container."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._state = _empty_state()
        if initial:
            for layer, value in copy.deepcopy(initial).items():
                self._state[layer] = value

    @staticmethod
    def normalize_path(path: str) -> list[str]:
        """Split a path, rewriting ``node.state.key`` to ``nodes.node.key``."""
        parts = path.strip().split(".")
        if len(parts) >= 3 and parts[1] == "state" and parts[0] not in LAYERS:
            return ["nodes", parts[0], *parts[2:]]
        return parts

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at a path, or ``default`` when any segment is missing."""
        current: Any = self._state
        for part in self.normalize_path(path):
            if not isinstance(current, dict):
                return default
            current = current.get(part, _MISSING)
            if current is _MISSING:
                return default
        return current

    def has(self, path: str) -> bool:
        return self.get(path, _MISSING) is not _MISSING

    def set(self, path: str, value: Any) -> bool:
        """
        Set a value, creating intermediate mappings as needed.

        Writes that would replace a layer or its container
        (``nodes``, ``nodes.<id>``, ``globals.vars``) are ignored and
        logged. Returns whether the value was written.
        """
        parts = self.normalize_path(path)
        if parts[0] in LAYERS and len(parts) < 3:
            logger.warning("layer_write_ignored", path=path)
            return False

        *parents, last = parts
        current = self._state
        for part in parents:
            child = current.get(part)
            if not isinstance(child, dict):
                child = {}
                current[part] = child
            current = child
        current[last] = value
        return True

    @property
    def global_vars(self) -> Dict[str, Any]:
        return self._state["globals"]["vars"]

    @property
    def scene_vars(self) -> Dict[str, Any]:
        return self._state["scene"]["vars"]

    def node_state(self, node_id: str) -> Dict[str, Any]:
        return self._state["nodes"].get(node_id, {})

    def set_node_state(self, node_id: str, state: Dict[str, Any]) -> None:
        self._state["nodes"][node_id] = dict(state)

    def update_node_state(self, node_id: str, updates: Dict[str, Any]) -> None:
        self._state["nodes"].setdefault(node_id, {}).update(updates)

    def reset_node(self, node_id: str) -> None:
        self._state["nodes"].pop(node_id, None)

    def reset_scene_state(self, scene_vars: Optional[Dict[str, Any]] = None) -> None:
        """Clear scene variables and node state, optionally seeding scene vars."""
        self._state["scene"] = {"vars": copy.deepcopy(scene_vars or {})}
        self._state["nodes"] = {}

    def reset(self) -> None:
        self._state = _empty_state()

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the full state."""
        return copy.deepcopy(self._state)

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._state = copy.deepcopy(snapshot)


__all__ = ["Store"]
