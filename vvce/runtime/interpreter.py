"""
Event-Condition-Action interpreter for scene triggers.

State-changing actions (setVar, incVar, addScore, resetNode) are applied
to the Store. Presentational actions are recorded as effects with their
text interpolated, since rendering happens on the client. A gotoScene
action is reported through the outcome and stops trigger processing for
the current event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vvce.observability.logging import get_logger
from vvce.runtime.conditions import ConditionEvaluator, to_number
from vvce.runtime.resolver import ReferenceResolver
from vvce.runtime.store import Store
from vvce.schema.models import CONTAINER_ACTIONS, TriggerDSL

logger = get_logger(__name__)

SCORE_PATH = "globals.vars.score"


@dataclass
class RuntimeEvent:
    """
    An event raised by the player or the runtime.

    ``state`` carries the node state the emitting component wrote before
    raising the event (e.g. the selected quiz option); it is merged into
    ``nodes.<target>`` ahead of trigger evaluation.
    """

    type: str
    target: Optional[str] = None
    state: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Effect:
    """A client-side action produced while handling an event."""

    action: str
    scene_id: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TriggerOutcome:
    """What handling one event produced."""

    matched: int = 0
    effects: List[Effect] = field(default_factory=list)
    next_scene: Optional[str] = None


class ActionApplier:
    """Applies trigger actions to a Store and collects effects."""

    def __init__(self, store: Store, resolver: ReferenceResolver):
        self.store = store
        self.resolver = resolver

    def apply_all(self, actions: List[Any], scene_id: str, outcome: TriggerOutcome) -> None:
        for action in actions:
            self.apply(action, scene_id, outcome)

    def apply(self, action: Any, scene_id: str, outcome: TriggerOutcome) -> None:
        kind = action.action

        if kind in CONTAINER_ACTIONS:
            self.apply_all(action.actions, scene_id, outcome)
            return

        if kind == "setVar":
            self.store.set(action.path, self.resolver.resolve(action.value))
        elif kind == "incVar":
            self.store.set(action.path, self._numeric(action.path) + action.by)
        elif kind == "addScore":
            value = to_number(self.resolver.resolve(action.value)) or 0
            self.store.set(SCORE_PATH, self._numeric(SCORE_PATH) + _narrow(value))
        elif kind == "resetNode":
            self.store.set_node_state(action.node_id, {})
        elif kind == "gotoScene":
            outcome.next_scene = action.scene_id

        params = action.model_dump(by_alias=True, exclude={"action"}, exclude_none=True)
        if kind not in ("setVar", "incVar", "addScore"):
            params = self.resolver.resolve_object(params)
        outcome.effects.append(Effect(action=kind, scene_id=scene_id, params=params))

    def _numeric(self, path: str) -> float:
        current = self.store.get(path)
        number = to_number(current)
        if number is None:
            if current is not None:
                logger.warning("non_numeric_variable_reset", path=path, value=current)
            return 0
        return _narrow(number)


def _narrow(number: float) -> float:
    """Keep whole numbers as ints so state round-trips as written."""
    return int(number) if float(number).is_integer() else number


class TriggerInterpreter:
    """Matches events to triggers, evaluates conditions and applies actions."""

    def __init__(self, evaluator: ConditionEvaluator, applier: ActionApplier):
        self.evaluator = evaluator
        self.applier = applier

    @classmethod
    def for_store(cls, store: Store) -> "TriggerInterpreter":
        resolver = ReferenceResolver(store)
        return cls(ConditionEvaluator(resolver), ActionApplier(store, resolver))

    @staticmethod
    def matches(event: RuntimeEvent, trigger: TriggerDSL) -> bool:
        if trigger.on.event != event.type:
            return False
        return not trigger.on.target or trigger.on.target == event.target

    def handle_event(
        self, event: RuntimeEvent, triggers: List[TriggerDSL], scene_id: str
    ) -> TriggerOutcome:
        """
        Run every trigger matching an event, in declaration order.

        Processing stops at the first trigger that changes scene. The
        remaining triggers belong to the scene being left and are not
        evaluated against the new scene's state. The browser runtime
        keeps iterating them; this interpreter deliberately does not.

        Args:
            event: Incoming event
            triggers: Triggers of the current scene
            scene_id: Current scene id, recorded on effects

        Returns:
            TriggerOutcome with effects and an optional scene change
        """
        outcome = TriggerOutcome()

        for trigger in triggers:
            if not self.matches(event, trigger):
                continue

            outcome.matched += 1
            passed = self.evaluator.evaluate_all(trigger.if_)
            branch = trigger.then if passed else trigger.else_
            logger.debug(
                "trigger_matched",
                scene_id=scene_id,
                event_type=event.type,
                target=event.target,
                condition=passed,
                actions=len(branch),
            )
            self.applier.apply_all(branch, scene_id, outcome)

            if outcome.next_scene is not None:
                break

        return outcome


__all__ = [
    "RuntimeEvent",
    "Effect",
    "TriggerOutcome",
    "ActionApplier",
    "TriggerInterpreter",
]
