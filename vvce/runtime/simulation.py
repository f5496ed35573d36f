"""
Replay a list of events against a course.

The simulation mirrors what the player runtime does: entering a scene
resets scene and node state, seeds the scene's variables and raises a
``sceneEnter`` event; each queued event is dispatched to the current
scene's triggers; a scene change takes effect before the next event.
"""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from vvce.exceptions import SimulationError
from vvce.observability.logging import get_logger
from vvce.observability.metrics import increment_counter
from vvce.runtime.interpreter import Effect, RuntimeEvent, TriggerInterpreter
from vvce.runtime.store import Store
from vvce.schema.models import SCENE_ENTER_EVENT, CourseDSL

logger = get_logger(__name__)

DEFAULT_MAX_EVENTS = 500


@dataclass
class EventRecord:
    """How one dispatched event was handled."""

    event: RuntimeEvent
    scene_id: str
    matched_triggers: int
    effects: List[Effect] = field(default_factory=list)
    next_scene: Optional[str] = None


@dataclass
class SimulationResult:
    start_scene: str
    final_scene: str
    scene_history: List[str]
    events: List[EventRecord]
    state: Dict[str, Any]
    truncated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CourseSimulator:
    """Drives a Store and TriggerInterpreter through a course."""

    def __init__(self, course: CourseDSL, max_events: int = DEFAULT_MAX_EVENTS):
        self.course = course
        self.max_events = max_events
        self.store = Store()
        self.interpreter = TriggerInterpreter.for_store(self.store)
        self.current_scene: Optional[str] = None

    def run(
        self,
        events: Iterable[RuntimeEvent],
        scene_id: Optional[str] = None,
        state: Optional[Dict[str, Any]] = None,
    ) -> SimulationResult:
        """
        Replay events starting from a scene.

        Args:
            events: Player events, dispatched in order
            scene_id: Scene to start on (defaults to the course start scene)
            state: Optional initial state (``globals``, ``scene``, ``nodes``)

        Returns:
            SimulationResult with per-event records and the final state

        Raises:
            SimulationError: if the start scene does not exist or the
                initial state is malformed
        """
        start = scene_id or self.course.start_scene_id
        if self.course.scene(start) is None:
            raise SimulationError(f"Scene not found: {start}", scene_id=start)

        self._seed_state(state or {})
        history: List[str] = []
        records: List[EventRecord] = []
        queue: deque[RuntimeEvent] = deque()

        self._enter(start, history, queue, initial=True)
        queue.extend(events)
        truncated = False

        while queue:
            if len(records) >= self.max_events:
                truncated = True
                break

            event = queue.popleft()
            if event.target and event.state:
                self.store.update_node_state(event.target, event.state)

            scene = self.course.scene(self.current_scene)
            outcome = self.interpreter.handle_event(event, scene.triggers, scene.id)
            records.append(
                EventRecord(
                    event=event,
                    scene_id=scene.id,
                    matched_triggers=outcome.matched,
                    effects=outcome.effects,
                    next_scene=outcome.next_scene,
                )
            )

            if outcome.next_scene is not None:
                if self.course.scene(outcome.next_scene) is None:
                    raise SimulationError(
                        f"Scene not found: {outcome.next_scene}", scene_id=scene.id
                    )
                # the new scene's entry event runs before remaining player events
                entry: deque[RuntimeEvent] = deque()
                self._enter(outcome.next_scene, history, entry)
                queue.extendleft(reversed(entry))

        increment_counter("simulated_events_total", value=len(records))
        logger.info(
            "simulation_completed",
            course_id=self.course.meta.id,
            events=len(records),
            final_scene=self.current_scene,
            truncated=truncated,
        )

        return SimulationResult(
            start_scene=start,
            final_scene=self.current_scene,
            scene_history=history,
            events=records,
            state=self.store.snapshot(),
            truncated=truncated,
        )

    def _seed_state(self, state: Dict[str, Any]) -> None:
        try:
            global_vars = dict(self.course.globals.vars)
            global_vars.update(state.get("globals", {}).get("vars", {}))
            for node_id, node_state in state.get("nodes", {}).items():
                if not isinstance(node_state, dict):
                    raise ValueError(f"state of node {node_id!r} must be an object")
            self.store.restore(
                {
                    "globals": {"vars": global_vars},
                    "scene": {"vars": dict(state.get("scene", {}).get("vars", {}))},
                    "nodes": dict(state.get("nodes", {})),
                }
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise SimulationError(f"Invalid initial state: {exc}") from exc

    def _enter(
        self,
        scene_id: str,
        history: List[str],
        queue: deque,
        initial: bool = False,
    ) -> None:
        scene = self.course.scene(scene_id)
        if not initial:
            if scene_id != self.current_scene:
                self.store.reset_scene_state(scene.vars)
        else:
            # caller-supplied scene vars and node state win over defaults
            for key, value in scene.vars.items():
                if not self.store.has(f"scene.vars.{key}"):
                    self.store.set(f"scene.vars.{key}", value)

        self.current_scene = scene_id
        history.append(scene_id)
        queue.append(RuntimeEvent(type=SCENE_ENTER_EVENT, target=scene_id))


def simulate(
    course: CourseDSL,
    events: Iterable[RuntimeEvent],
    scene_id: Optional[str] = None,
    state: Optional[Dict[str, Any]] = None,
    max_events: int = DEFAULT_MAX_EVENTS,
) -> SimulationResult:
    """Convenience function: replay events against a course."""
    return CourseSimulator(course, max_events=max_events).run(events, scene_id, state)


__all__ = [
    "SCENE_ENTER_EVENT",
    "CourseSimulator",
    "EventRecord",
    "SimulationResult",
    "simulate",
]
