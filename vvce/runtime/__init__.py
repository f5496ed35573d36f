"""Course runtime: state store, reference resolution, conditions and triggers."""

from vvce.runtime.conditions import ConditionEvaluator
from vvce.runtime.interpreter import (
    ActionApplier,
    Effect,
    RuntimeEvent,
    TriggerInterpreter,
    TriggerOutcome,
)
from vvce.runtime.resolver import ReferenceResolver
from vvce.runtime.simulation import CourseSimulator, SimulationResult, simulate
from vvce.runtime.store import Store

__all__ = [
    "Store",
    "ReferenceResolver",
    "ConditionEvaluator",
    "ActionApplier",
    "Effect",
    "RuntimeEvent",
    "TriggerInterpreter",
    "TriggerOutcome",
    "CourseSimulator",
    "SimulationResult",
    "simulate",
]
