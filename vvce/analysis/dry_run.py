"""
Static dry-run analysis of a course.

Walks the course without executing it and reports:
- execution paths from the start scene (complete or looping)
- state mutations and the event -> action map
- coverage and dead code (unreachable scenes, unused nodes, dead triggers)
- complexity metrics

Usage:
    from vvce.analysis import DryRunSimulator

    simulator = DryRunSimulator()
    result = simulator.analyze(course)
    print(simulator.generate_report(result))
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from vvce.observability.logging import get_logger
from vvce.observability.metrics import increment_counter, track_duration
from vvce.schema.models import CONTAINER_ACTIONS, CourseDSL, SceneDSL, walk_actions
from vvce.schema.semantic import goto_targets

logger = get_logger(__name__)

DEFAULT_MAX_PATHS = 1000


@dataclass
class ExecutionStep:
    type: str
    scene_id: str
    details: Dict[str, Any] = field(default_factory=dict)
    possible_next_steps: List[str] = field(default_factory=list)


@dataclass
class ExecutionPath:
    id: str
    steps: List[ExecutionStep]
    start_scene: str
    end_scene: Optional[str]
    is_complete: bool
    loop_detected: bool


@dataclass
class StateMutation:
    path: str
    action: str
    scene_id: str
    trigger_index: int


@dataclass
class EventActionMapping:
    event: str
    target: Optional[str]
    scene_id: str
    actions: List[str]
    conditions: int


@dataclass
class DeadTrigger:
    scene_id: str
    trigger_index: int


@dataclass
class DeadCode:
    unreachable_scenes: List[str] = field(default_factory=list)
    unused_nodes: List[str] = field(default_factory=list)
    dead_triggers: List[DeadTrigger] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.unreachable_scenes or self.unused_nodes or self.dead_triggers)


@dataclass
class CoverageReport:
    scenes_total: int
    scenes_reachable: int
    scene_coverage: float
    nodes_total: int
    nodes_referenced: int
    node_coverage: float
    triggers_total: int
    triggers_with_conditions: int
    triggers_with_else: int
    actions_total: int
    actions_by_type: Dict[str, int]


@dataclass
class Complexity:
    total_scenes: int
    total_nodes: int
    total_triggers: int
    total_actions: int
    max_path_length: int
    average_path_length: float
    branching_factor: float


@dataclass
class DryRunResult:
    paths: List[ExecutionPath]
    mutations: List[StateMutation]
    event_action_map: List[EventActionMapping]
    coverage: CoverageReport
    dead_code: DeadCode
    complexity: Complexity
    truncated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DryRunSimulator:
    """Performs static analysis of course execution."""

    def __init__(self, max_paths: int = DEFAULT_MAX_PATHS):
        self.max_paths = max_paths
        self._course: Optional[CourseDSL] = None
        self._scenes: Dict[str, SceneDSL] = {}
        self._visited: Set[str] = set()
        self._referenced_nodes: Set[str] = set()
        self._paths: List[ExecutionPath] = []
        self._truncated = False

    def analyze(self, course: CourseDSL) -> DryRunResult:
        """
        Run dry-run analysis on a parsed course.

        Args:
            course: Parsed course document

        Returns:
            DryRunResult with paths, coverage, dead code and complexity
        """
        with track_duration("dry_run_duration_seconds"):
            self._reset(course)

            event_action_map = self._collect_event_actions()
            mutations = self._collect_mutations()
            self._simulate(course.start_scene_id)

            result = DryRunResult(
                paths=self._paths,
                mutations=mutations,
                event_action_map=event_action_map,
                coverage=self._coverage(),
                dead_code=self._dead_code(),
                complexity=self._complexity(),
                truncated=self._truncated,
            )

        increment_counter("dry_runs_total")
        logger.info(
            "dry_run_completed",
            course_id=course.meta.id,
            paths=len(result.paths),
            truncated=result.truncated,
        )
        return result

    def _reset(self, course: CourseDSL) -> None:
        self._course = course
        self._scenes = {scene.id: scene for scene in course.scenes}
        self._visited = set()
        self._referenced_nodes = set()
        self._paths = []
        self._truncated = False

    def _collect_event_actions(self) -> List[EventActionMapping]:
        mappings: List[EventActionMapping] = []
        for scene in self._course.scenes:
            for trigger in scene.triggers:
                # dict keeps first-seen order while deduplicating
                kinds = list(dict.fromkeys(a.action for a in walk_actions(trigger.all_actions())))
                mappings.append(
                    EventActionMapping(
                        event=trigger.on.event,
                        target=trigger.on.target,
                        scene_id=scene.id,
                        actions=kinds,
                        conditions=len(trigger.if_),
                    )
                )
                if trigger.node_target:
                    self._referenced_nodes.add(f"{scene.id}:{trigger.node_target}")
        return mappings

    def _collect_mutations(self) -> List[StateMutation]:
        mutations: List[StateMutation] = []
        for scene in self._course.scenes:
            for trigger_index, trigger in enumerate(scene.triggers):
                for action in walk_actions(trigger.all_actions()):
                    if action.action in ("setVar", "incVar"):
                        path = action.path
                    elif action.action == "addScore":
                        path = "globals.vars.score"
                    else:
                        continue
                    mutations.append(StateMutation(path, action.action, scene.id, trigger_index))
        return mutations

    def _simulate(self, start_scene: str) -> None:
        # explicit stack so long scene chains do not hit the recursion limit;
        # children are pushed in reverse to keep depth-first, sorted order
        stack: List[Tuple[str, List[ExecutionStep], FrozenSet[str]]] = [
            (start_scene, [], frozenset())
        ]
        while stack:
            scene_id, steps, on_path = stack.pop()
            if len(self._paths) >= self.max_paths:
                self._truncated = True
                return

            scene = self._scenes.get(scene_id)
            if scene is None:
                continue

            self._visited.add(scene_id)

            if scene_id in on_path:
                self._record_path(steps, scene_id, complete=False, loop=True)
                continue

            next_scenes = sorted(goto_targets(scene))
            step = ExecutionStep(
                type="scene_enter",
                scene_id=scene_id,
                details={"node_count": len(scene.nodes)},
                possible_next_steps=next_scenes,
            )
            steps = [*steps, step]

            if not next_scenes:
                self._record_path(steps, scene_id, complete=True, loop=False)
                continue

            on_path = on_path | {scene_id}
            for next_scene in reversed(next_scenes):
                stack.append((next_scene, steps, on_path))

    def _record_path(
        self, steps: List[ExecutionStep], end_scene: str, complete: bool, loop: bool
    ) -> None:
        self._paths.append(
            ExecutionPath(
                id=f"path-{len(self._paths) + 1}",
                steps=list(steps),
                start_scene=self._course.start_scene_id,
                end_scene=end_scene,
                is_complete=complete,
                loop_detected=loop,
            )
        )

    def _coverage(self) -> CoverageReport:
        scenes = self._course.scenes
        total_nodes = sum(len(s.nodes) for s in scenes)
        triggers = [t for s in scenes for t in s.triggers]
        action_counts = Counter(
            a.action for t in triggers for a in walk_actions(t.all_actions())
        )

        return CoverageReport(
            scenes_total=len(scenes),
            scenes_reachable=len(self._visited),
            scene_coverage=_percent(len(self._visited), len(scenes)),
            nodes_total=total_nodes,
            nodes_referenced=len(self._referenced_nodes),
            node_coverage=_percent(len(self._referenced_nodes), total_nodes),
            triggers_total=len(triggers),
            triggers_with_conditions=sum(1 for t in triggers if t.if_),
            triggers_with_else=sum(1 for t in triggers if t.else_),
            actions_total=sum(action_counts.values()),
            actions_by_type=dict(action_counts),
        )

    def _dead_code(self) -> DeadCode:
        dead = DeadCode()
        for scene in self._course.scenes:
            if scene.id not in self._visited:
                dead.unreachable_scenes.append(scene.id)
            for node in scene.nodes:
                key = f"{scene.id}:{node.id}"
                if key not in self._referenced_nodes:
                    dead.unused_nodes.append(key)
            for index, trigger in enumerate(scene.triggers):
                if not (_has_effect(trigger.then) or _has_effect(trigger.else_)):
                    dead.dead_triggers.append(DeadTrigger(scene.id, index))
        return dead

    def _complexity(self) -> Complexity:
        scenes = self._course.scenes
        triggers = [t for s in scenes for t in s.triggers]
        branches = sum(1 for t in triggers if t.else_) + sum(1 for t in triggers if t.if_)
        lengths = [len(p.steps) for p in self._paths]

        return Complexity(
            total_scenes=len(scenes),
            total_nodes=sum(len(s.nodes) for s in scenes),
            total_triggers=len(triggers),
            total_actions=sum(len(t.then) + len(t.else_) for t in triggers),
            max_path_length=max(lengths, default=0),
            average_path_length=round(sum(lengths) / len(lengths), 2) if lengths else 0.0,
            branching_factor=round(branches / len(triggers), 2) if triggers else 0.0,
        )

    def generate_report(self, result: DryRunResult) -> str:
        """Render a dry-run result as a human-readable text report."""
        c = result.complexity
        cov = result.coverage
        lines = [
            "=== VVCE Dry Run Report ===",
            "",
            "## Complexity",
            f"- Scenes: {c.total_scenes}",
            f"- Nodes: {c.total_nodes}",
            f"- Triggers: {c.total_triggers}",
            f"- Actions: {c.total_actions}",
            f"- Max Path Length: {c.max_path_length}",
            f"- Avg Path Length: {c.average_path_length}",
            f"- Branching Factor: {c.branching_factor}",
            "",
            "## Coverage",
            f"- Scene Coverage: {cov.scene_coverage:.1f}% ({cov.scenes_reachable}/{cov.scenes_total})",
            f"- Node References: {cov.nodes_referenced}/{cov.nodes_total}",
            f"- Triggers with Conditions: {cov.triggers_with_conditions}/{cov.triggers_total}",
            f"- Triggers with Else: {cov.triggers_with_else}/{cov.triggers_total}",
            "",
            "## Action Distribution",
        ]
        for kind, count in sorted(cov.actions_by_type.items(), key=lambda kv: -kv[1]):
            lines.append(f"- {kind}: {count}")
        lines.append("")

        dead = result.dead_code
        if dead.found:
            lines.append("## Dead Code Detected")
            if dead.unreachable_scenes:
                lines.append(f"- Unreachable Scenes: {', '.join(dead.unreachable_scenes)}")
            if dead.unused_nodes:
                shown = ", ".join(dead.unused_nodes[:10])
                more = "..." if len(dead.unused_nodes) > 10 else ""
                lines.append(f"- Unused Nodes: {shown}{more}")
            if dead.dead_triggers:
                triggers = ", ".join(f"{t.scene_id}[{t.trigger_index}]" for t in dead.dead_triggers)
                lines.append(f"- Dead Triggers: {triggers}")
            lines.append("")

        if result.mutations:
            lines.append("## State Mutations")
            for path, count in Counter(m.path for m in result.mutations).items():
                lines.append(f"- {path}: {count} mutations")
            lines.append("")

        lines.append(f"## Execution Paths: {len(result.paths)}")
        lines.append(f"- Complete: {sum(1 for p in result.paths if p.is_complete)}")
        lines.append(f"- With Loops: {sum(1 for p in result.paths if p.loop_detected)}")
        if result.truncated:
            lines.append(f"- Truncated at {self.max_paths} paths")

        return "\n".join(lines)


def _has_effect(actions: List[Any]) -> bool:
    """True if any action does more than wait."""
    for action in actions:
        if action.action == "delay":
            continue
        if action.action in CONTAINER_ACTIONS:
            if _has_effect(action.actions):
                return True
            continue
        return True
    return False


def _percent(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole else 0.0


def dry_run(course: CourseDSL, max_paths: int = DEFAULT_MAX_PATHS) -> DryRunResult:
    """Convenience function for dry-run analysis."""
    return DryRunSimulator(max_paths=max_paths).analyze(course)


def dry_run_report(course: CourseDSL, max_paths: int = DEFAULT_MAX_PATHS) -> str:
    """Convenience function for a dry-run text report."""
    simulator = DryRunSimulator(max_paths=max_paths)
    return simulator.generate_report(simulator.analyze(course))


__all__ = [
    "DryRunSimulator",
    "DryRunResult",
    "ExecutionPath",
    "ExecutionStep",
    "StateMutation",
    "EventActionMapping",
    "CoverageReport",
    "DeadCode",
    "Complexity",
    "dry_run",
    "dry_run_report",
]
