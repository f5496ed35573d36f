"""
Structural checks on a raw course document.

This pass runs on the decoded JSON before any model parsing so that the
most common authoring mistakes (missing ids, duplicate ids, empty scene
list) are reported with precise paths and readable messages.
"""

from __future__ import annotations

from typing import Any

from vvce.schema.issues import IssueCode, ValidationResult
from vvce.schema.models import SCHEMA_VERSION


def check_structure(document: Any) -> ValidationResult:
    """
    Check the skeleton of a course document.

    Args:
        document: Decoded JSON value

    Returns:
        ValidationResult holding structural errors only
    """
    result = ValidationResult()

    if not isinstance(document, dict):
        result.error("", "course document must be a JSON object", IssueCode.STRUCTURE_ERROR)
        return result

    if document.get("schema") != SCHEMA_VERSION:
        result.error(
            "schema", f'schema must be "{SCHEMA_VERSION}"', IssueCode.STRUCTURE_ERROR
        )

    meta = document.get("meta")
    if not isinstance(meta, dict):
        result.error("meta", "meta is required", IssueCode.STRUCTURE_ERROR)
    else:
        for key in ("id", "version"):
            if not meta.get(key):
                result.error(f"meta.{key}", f"meta.{key} is required", IssueCode.STRUCTURE_ERROR)

    if not document.get("startSceneId"):
        result.error("startSceneId", "startSceneId is required", IssueCode.STRUCTURE_ERROR)

    scenes = document.get("scenes")
    if not isinstance(scenes, list):
        result.error("scenes", "scenes must be an array", IssueCode.STRUCTURE_ERROR)
        return result

    if not scenes:
        result.error("scenes", "scenes must not be empty", IssueCode.STRUCTURE_ERROR)

    seen_scenes: set[str] = set()
    for index, scene in enumerate(scenes):
        path = f"scenes[{index}]"
        if not isinstance(scene, dict):
            result.error(path, "scene must be an object", IssueCode.STRUCTURE_ERROR)
            continue

        scene_id = scene.get("id")
        if not scene_id:
            result.error(f"{path}.id", "scene.id is required", IssueCode.STRUCTURE_ERROR)
        elif not isinstance(scene_id, str):
            result.error(f"{path}.id", "scene.id must be a string", IssueCode.STRUCTURE_ERROR)
        elif scene_id in seen_scenes:
            result.error(
                f"{path}.id", f'duplicate scene id "{scene_id}"', IssueCode.DUPLICATE_ID
            )
        else:
            seen_scenes.add(scene_id)

        nodes = scene.get("nodes")
        if isinstance(nodes, list):
            _check_nodes(nodes, path, scene_id, result)

    return result


def _check_nodes(nodes: list, scene_path: str, scene_id: Any, result: ValidationResult) -> None:
    seen_nodes: set[str] = set()
    for index, node in enumerate(nodes):
        path = f"{scene_path}.nodes[{index}]"
        if not isinstance(node, dict):
            result.error(path, "node must be an object", IssueCode.STRUCTURE_ERROR)
            continue

        node_id = node.get("id")
        if not node_id:
            result.error(f"{path}.id", "node.id is required", IssueCode.STRUCTURE_ERROR)
        elif not isinstance(node_id, str):
            result.error(f"{path}.id", "node.id must be a string", IssueCode.STRUCTURE_ERROR)
        elif node_id in seen_nodes:
            result.error(
                f"{path}.id",
                f'duplicate node id "{node_id}" in scene "{scene_id}"',
                IssueCode.DUPLICATE_ID,
            )
        else:
            seen_nodes.add(node_id)

        if not node.get("type"):
            result.error(f"{path}.type", "node.type is required", IssueCode.STRUCTURE_ERROR)


__all__ = ["check_structure"]
