"""
Semantic validation for parsed course documents.

Runs after the structural and model passes succeed and checks the things a
JSON schema cannot express:

- scene, node, style, animation and theme references resolve
- variable reference paths use a recognised namespace
- action parameters make sense (addScore, delay, toast, containers)
- parallel/sequence nesting stays within MAX_ACTION_DEPTH
- scene flow: unreachable scenes, self-loops and longer cycles

Usage:
    from vvce.schema.semantic import SemanticValidator

    result = SemanticValidator().validate(course)
    for issue in result.warnings:
        print(issue.code, issue.message)
"""

from __future__ import annotations

import re
from collections import deque
from typing import Any, Dict, Iterator, List, Set, Tuple

from vvce.schema.issues import IssueCode, ValidationResult
from vvce.schema.models import (
    BUILTIN_ANIMATIONS,
    BUILTIN_THEMES,
    CONTAINER_ACTIONS,
    M0_COMPONENTS,
    NODE_TARGET_ACTIONS,
    SCENE_ENTER_EVENT,
    ComparisonCondition,
    CourseDSL,
    LogicalCondition,
    SceneDSL,
    ThemeConfig,
    action_target,
    walk_actions,
)

# Maximum nesting depth for parallel/sequence actions
MAX_ACTION_DEPTH = 10

VALID_REF_PATTERNS = (
    re.compile(r"^globals\.vars\.[a-zA-Z_][a-zA-Z0-9_]*$"),
    re.compile(r"^scene\.vars\.[a-zA-Z_][a-zA-Z0-9_]*$"),
    re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*\.state\.[a-zA-Z_][a-zA-Z0-9_]*$"),
)


def is_valid_ref_path(path: str) -> bool:
    """Return True if a reference path uses a recognised namespace."""
    return any(pattern.match(path) for pattern in VALID_REF_PATTERNS)


def iter_trigger_actions(
    scene_index: int, scene: SceneDSL
) -> Iterator[Tuple[int, str, List[Any]]]:
    """Yield (trigger index, branch path, actions) for both trigger branches."""
    for trigger_index, trigger in enumerate(scene.triggers):
        base = f"scenes[{scene_index}].triggers[{trigger_index}]"
        yield trigger_index, f"{base}.then", trigger.then
        if trigger.else_:
            yield trigger_index, f"{base}.else", trigger.else_


def iter_actions_with_path(
    actions: List[Any], base_path: str, depth: int = 0
) -> Iterator[Tuple[str, Any, int]]:
    """Yield (path, action, depth) for every action, descending into containers."""
    for index, action in enumerate(actions):
        path = f"{base_path}[{index}]"
        yield path, action, depth
        if action.action in CONTAINER_ACTIONS:
            yield from iter_actions_with_path(action.actions, f"{path}.actions", depth + 1)


def goto_targets(scene: SceneDSL) -> Set[str]:
    """Scene ids reachable from a scene through gotoScene actions."""
    targets: Set[str] = set()
    for trigger in scene.triggers:
        for action in walk_actions(trigger.all_actions()):
            if action.action == "gotoScene":
                targets.add(action.scene_id)
    return targets


class SemanticValidator:
    """Cross-reference and flow checks over a parsed course."""

    def __init__(self) -> None:
        self._result = ValidationResult()
        self._scene_ids: Set[str] = set()
        self._animations: Set[str] = set()
        self._themes: Set[str] = set()
        self._styles: Set[str] = set()

    def validate(self, course: CourseDSL) -> ValidationResult:
        """
        Run every semantic pass over a course.

        Args:
            course: Parsed course document

        Returns:
            ValidationResult with errors, warnings and info notes
        """
        self._reset(course)

        self._check_scene_refs(course)
        self._check_node_refs(course)
        self._check_var_paths(course)
        self._check_animation_refs(course)
        self._check_theme_refs(course)
        self._check_style_refs(course)
        self._check_component_types(course)
        self._check_action_params(course)
        self._check_action_nesting(course)
        self._check_cycles(course)
        self._check_reachability(course)

        return self._result

    def _reset(self, course: CourseDSL) -> None:
        self._result = ValidationResult()
        self._scene_ids = course.scene_ids()
        self._animations = set(BUILTIN_ANIMATIONS) | set(course.resources.animations)
        self._styles = set(course.resources.styles)
        self._themes = set(BUILTIN_THEMES)
        if isinstance(course.theme, ThemeConfig) and course.theme.name:
            self._themes.add(course.theme.name)

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def _check_scene_refs(self, course: CourseDSL) -> None:
        if course.start_scene_id not in self._scene_ids:
            self._result.error(
                "startSceneId",
                f'start scene "{course.start_scene_id}" does not exist',
                IssueCode.INVALID_SCENE_REF,
            )

        for scene_index, scene in enumerate(course.scenes):
            for _, branch, actions in iter_trigger_actions(scene_index, scene):
                for path, action, _ in iter_actions_with_path(actions, branch):
                    if action.action == "gotoScene" and action.scene_id not in self._scene_ids:
                        self._result.error(
                            path,
                            f'target scene "{action.scene_id}" does not exist',
                            IssueCode.INVALID_SCENE_REF,
                        )
                    elif action.action == "modal":
                        self._check_modal_scene_refs(action, path)

    def _check_modal_scene_refs(self, modal: Any, path: str) -> None:
        for button_index, button in enumerate(modal.buttons):
            button_path = f"{path}.buttons[{button_index}].actions"
            for action_path, action, _ in iter_actions_with_path(button.actions, button_path):
                if action.action == "gotoScene" and action.scene_id not in self._scene_ids:
                    self._result.error(
                        action_path,
                        f'target scene "{action.scene_id}" does not exist',
                        IssueCode.INVALID_SCENE_REF,
                    )

    def _check_node_refs(self, course: CourseDSL) -> None:
        for scene_index, scene in enumerate(course.scenes):
            node_ids = scene.node_ids()

            for trigger_index, trigger in enumerate(scene.triggers):
                path = f"scenes[{scene_index}].triggers[{trigger_index}].on.target"
                if trigger.on.event == SCENE_ENTER_EVENT:
                    if trigger.on.target and trigger.on.target != scene.id:
                        self._result.warning(
                            path,
                            f'sceneEnter target "{trigger.on.target}" never matches scene "{scene.id}"',
                            IssueCode.INVALID_SCENE_REF,
                        )
                    continue

                target = trigger.node_target
                if target and target not in node_ids:
                    self._result.error(
                        path,
                        f'target node "{target}" does not exist in scene "{scene.id}"',
                        IssueCode.INVALID_NODE_REF,
                    )

            for _, branch, actions in iter_trigger_actions(scene_index, scene):
                for path, action, _ in iter_actions_with_path(actions, branch):
                    if action.action not in NODE_TARGET_ACTIONS:
                        continue
                    node_id = action_target(action)
                    if node_id and node_id not in node_ids:
                        self._result.warning(
                            path,
                            f'action target node "{node_id}" does not exist in scene "{scene.id}"',
                            IssueCode.INVALID_NODE_REF,
                        )

    def _check_var_paths(self, course: CourseDSL) -> None:
        for scene_index, scene in enumerate(course.scenes):
            for trigger_index, trigger in enumerate(scene.triggers):
                base = f"scenes[{scene_index}].triggers[{trigger_index}]"
                for cond_index, condition in enumerate(trigger.if_):
                    self._check_condition_refs(condition, f"{base}.if[{cond_index}]")

            for _, branch, actions in iter_trigger_actions(scene_index, scene):
                for path, action, _ in iter_actions_with_path(actions, branch):
                    if action.action in ("setVar", "incVar"):
                        self._check_ref_path(action.path, f"{path}.path")

            for node_index, node in enumerate(scene.nodes):
                if isinstance(node.visible, (ComparisonCondition, LogicalCondition)):
                    self._check_condition_refs(
                        node.visible, f"scenes[{scene_index}].nodes[{node_index}].visible"
                    )

    def _check_condition_refs(self, condition: Any, path: str) -> None:
        if isinstance(condition, LogicalCondition):
            for index, child in enumerate(condition.conditions):
                self._check_condition_refs(child, f"{path}.conditions[{index}]")
            return

        for side in ("left", "right"):
            value = getattr(condition, side)
            if isinstance(value, dict) and isinstance(value.get("ref"), str):
                self._check_ref_path(value["ref"], f"{path}.{side}")

    def _check_ref_path(self, ref_path: str, location: str) -> None:
        if not is_valid_ref_path(ref_path):
            self._result.warning(
                location,
                f'reference path "{ref_path}" should be globals.vars.*, scene.vars.* or <nodeId>.state.*',
                IssueCode.INVALID_VAR_PATH,
            )

    def _check_animation_refs(self, course: CourseDSL) -> None:
        for scene_index, scene in enumerate(course.scenes):
            for node_index, node in enumerate(scene.nodes):
                node_path = f"scenes[{scene_index}].nodes[{node_index}]"
                for field_name, animation in (
                    ("enterAnimation", node.enter_animation),
                    ("exitAnimation", node.exit_animation),
                ):
                    if animation and animation.type not in self._animations:
                        self._result.warning(
                            f"{node_path}.{field_name}",
                            f'animation "{animation.type}" is not defined',
                            IssueCode.INVALID_ANIMATION_REF,
                        )

            for _, branch, actions in iter_trigger_actions(scene_index, scene):
                for path, action, _ in iter_actions_with_path(actions, branch):
                    if action.action == "playAnimation" and action.animation not in self._animations:
                        self._result.warning(
                            path,
                            f'animation "{action.animation}" is not defined',
                            IssueCode.INVALID_ANIMATION_REF,
                        )

    def _check_theme_refs(self, course: CourseDSL) -> None:
        if isinstance(course.theme, str) and course.theme not in self._themes:
            self._result.warning(
                "theme", f'theme "{course.theme}" is not defined', IssueCode.INVALID_THEME_REF
            )

        for scene_index, scene in enumerate(course.scenes):
            for _, branch, actions in iter_trigger_actions(scene_index, scene):
                for path, action, _ in iter_actions_with_path(actions, branch):
                    if action.action == "setTheme" and action.theme not in self._themes:
                        self._result.warning(
                            path,
                            f'theme "{action.theme}" is not defined',
                            IssueCode.INVALID_THEME_REF,
                        )

    def _check_style_refs(self, course: CourseDSL) -> None:
        for scene_index, scene in enumerate(course.scenes):
            for node_index, node in enumerate(scene.nodes):
                for class_name in node.style_classes:
                    if class_name not in self._styles:
                        self._result.warning(
                            f"scenes[{scene_index}].nodes[{node_index}].styleClass",
                            f'style class "{class_name}" is not defined in resources.styles',
                            IssueCode.INVALID_STYLE_REF,
                        )

    def _check_component_types(self, course: CourseDSL) -> None:
        for scene_index, scene in enumerate(course.scenes):
            for node_index, node in enumerate(scene.nodes):
                if node.type not in M0_COMPONENTS:
                    self._result.note(
                        f"scenes[{scene_index}].nodes[{node_index}].type",
                        f'component type "{node.type}" is not in the component registry '
                        f"({', '.join(sorted(M0_COMPONENTS))})",
                        IssueCode.UNKNOWN_COMPONENT_TYPE,
                    )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _check_action_params(self, course: CourseDSL) -> None:
        for scene_index, scene in enumerate(course.scenes):
            for _, branch, actions in iter_trigger_actions(scene_index, scene):
                for path, action, _ in iter_actions_with_path(actions, branch):
                    self._check_params(action, path)

    def _check_params(self, action: Any, path: str) -> None:
        kind = action.action
        if kind == "addScore":
            if not _is_number(action.value):
                self._result.error(
                    path, "addScore.value must be a number", IssueCode.INVALID_ACTION_PARAMS
                )
        elif kind == "delay":
            if not _is_number(action.duration) or action.duration < 0:
                self._result.error(
                    path,
                    "delay.duration must be a non-negative number",
                    IssueCode.INVALID_ACTION_PARAMS,
                )
        elif kind == "toast":
            if not isinstance(action.text, str) or not action.text:
                self._result.error(
                    path, "toast.text must be a non-empty string", IssueCode.INVALID_ACTION_PARAMS
                )
        elif kind in CONTAINER_ACTIONS and not action.actions:
            self._result.error(
                path, f"{kind}.actions must not be empty", IssueCode.EMPTY_ACTIONS
            )

    def _check_action_nesting(self, course: CourseDSL) -> None:
        for scene_index, scene in enumerate(course.scenes):
            for _, branch, actions in iter_trigger_actions(scene_index, scene):
                for path, _, depth in iter_actions_with_path(actions, branch):
                    if depth > MAX_ACTION_DEPTH:
                        self._result.error(
                            branch,
                            f"action nesting exceeds the maximum depth of {MAX_ACTION_DEPTH}",
                            IssueCode.NESTED_DEPTH_EXCEEDED,
                        )
                        break

    # ------------------------------------------------------------------
    # Scene flow
    # ------------------------------------------------------------------

    def _check_cycles(self, course: CourseDSL) -> None:
        graph: Dict[str, Set[str]] = {scene.id: goto_targets(scene) for scene in course.scenes}

        for scene_id, targets in graph.items():
            if targets == {scene_id}:
                self._result.warning(
                    "scenes",
                    f'scene "{scene_id}" only links to itself and may loop forever',
                    IssueCode.CIRCULAR_SCENE_REF,
                )

        for cycle in find_cycles(graph):
            self._result.note(
                "scenes",
                f"scene cycle detected: {' -> '.join(cycle)} -> {cycle[0]}",
                IssueCode.CIRCULAR_SCENE_REF,
            )

    def _check_reachability(self, course: CourseDSL) -> None:
        reachable = reachable_scenes(course)
        for scene in course.scenes:
            if scene.id not in reachable:
                self._result.warning(
                    "scenes",
                    f'scene "{scene.id}" may be unreachable',
                    IssueCode.UNREACHABLE_SCENE,
                )


def reachable_scenes(course: CourseDSL) -> Set[str]:
    """Breadth-first walk of gotoScene edges from the start scene."""
    if course.scene(course.start_scene_id) is None:
        return set()

    reachable = {course.start_scene_id}
    queue = deque([course.start_scene_id])
    while queue:
        scene = course.scene(queue.popleft())
        if scene is None:
            continue
        for target in goto_targets(scene):
            if target not in reachable:
                reachable.add(target)
                queue.append(target)
    return reachable


def find_cycles(graph: Dict[str, Set[str]]) -> List[List[str]]:
    """
    Find scene cycles of two or more scenes with a depth-first search.

    Each cycle is reported once, starting at the scene where the search
    first closed it.
    """
    visited: Set[str] = set()
    on_stack: Set[str] = set()
    cycles: List[List[str]] = []
    seen: Set[frozenset] = set()
    path: List[str] = []
    stack: List[Tuple[str, Iterator[str]]] = []

    def enter(node: str) -> None:
        visited.add(node)
        on_stack.add(node)
        path.append(node)
        stack.append((node, iter(sorted(graph.get(node, ())))))

    for root in graph:
        if root in visited:
            continue
        enter(root)
        while stack:
            node, neighbors = stack[-1]
            for neighbor in neighbors:
                if neighbor not in graph:
                    continue
                if neighbor not in visited:
                    enter(neighbor)
                    break
                if neighbor in on_stack:
                    cycle = path[path.index(neighbor):]
                    key = frozenset(cycle)
                    if len(cycle) > 1 and key not in seen:
                        seen.add(key)
                        cycles.append(list(cycle))
            else:
                stack.pop()
                path.pop()
                on_stack.discard(node)

    return cycles


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_semantics(course: CourseDSL) -> ValidationResult:
    """Convenience function for semantic validation."""
    return SemanticValidator().validate(course)


__all__ = [
    "MAX_ACTION_DEPTH",
    "SemanticValidator",
    "validate_semantics",
    "is_valid_ref_path",
    "reachable_scenes",
    "find_cycles",
    "goto_targets",
    "iter_actions_with_path",
    "iter_trigger_actions",
]
