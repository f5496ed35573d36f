"""
Tests for the runtime store, reference resolver, condition evaluator and
trigger interpreter.
"""

import pytest
from pydantic import TypeAdapter

from vvce.runtime import (
    ConditionEvaluator,
    ReferenceResolver,
    RuntimeEvent,
    Store,
    TriggerInterpreter,
)
from vvce.runtime.conditions import strict_equals, to_number
from vvce.schema.models import ConditionDSL, TriggerDSL

pytestmark = pytest.mark.unit

_condition = TypeAdapter(ConditionDSL)


@pytest.fixture
def store():
    return Store(
        {
            "globals": {"vars": {"score": 10, "userName": "Ming", "passed": True}},
            "scene": {"vars": {"step": 2}},
            "nodes": {"quiz": {"selected": "B"}},
        }
    )


@pytest.fixture
def evaluator(store):
    return ConditionEvaluator(ReferenceResolver(store))


def _trigger(data):
    return TriggerDSL.model_validate(data)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


def test_store_get_set_and_defaults(store):
    assert store.get("globals.vars.score") == 10
    assert store.get("globals.vars.missing") is None
    assert store.get("globals.vars.score.deeper", "n/a") == "n/a"

    store.set("globals.vars.level.name", "gold")
    assert store.get("globals.vars.level") == {"name": "gold"}


def test_node_state_alias(store):
    assert Store.normalize_path("quiz.state.selected") == ["nodes", "quiz", "selected"]
    assert Store.normalize_path("scene.vars.step") == ["scene", "vars", "step"]
    assert store.get("quiz.state.selected") == "B"

    store.set("quiz.state.locked", True)
    assert store.node_state("quiz") == {"selected": "B", "locked": True}


def test_has_distinguishes_none_from_missing(store):
    store.set("scene.vars.empty", None)

    assert store.has("scene.vars.empty")
    assert not store.has("scene.vars.nothing")


def test_reset_scene_state_keeps_globals(store):
    store.reset_scene_state({"step": 0})

    assert store.scene_vars == {"step": 0}
    assert store.node_state("quiz") == {}
    assert store.global_vars["score"] == 10


def test_snapshot_is_independent(store):
    snapshot = store.snapshot()
    store.set("globals.vars.score", 99)

    assert snapshot["globals"]["vars"]["score"] == 10
    store.restore(snapshot)
    assert store.get("globals.vars.score") == 10


def test_reset_and_reset_node(store):
    store.reset_node("quiz")
    assert store.node_state("quiz") == {}

    store.reset()
    assert store.snapshot() == {"globals": {"vars": {}}, "scene": {"vars": {}}, "nodes": {}}


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def test_resolve_refs_and_literals(store):
    resolver = ReferenceResolver(store)

    assert resolver.is_ref({"ref": "globals.vars.score"})
    assert not resolver.is_ref({"ref": 3})
    assert resolver.resolve({"ref": "globals.vars.score"}) == 10
    assert resolver.resolve(42) == 42


def test_interpolate_leaves_unknown_placeholders(store):
    resolver = ReferenceResolver(store)

    text = "Hi {{ globals.vars.userName }}, score {{globals.vars.score}}, {{globals.vars.nope}}"
    assert resolver.interpolate(text) == "Hi Ming, score 10, {{globals.vars.nope}}"
    assert resolver.interpolate("passed={{globals.vars.passed}}") == "passed=true"
    assert resolver.interpolate(7) == 7


def test_resolve_object_recurses(store):
    resolver = ReferenceResolver(store)

    resolved = resolver.resolve_object(
        {"text": "{{globals.vars.userName}}", "items": [{"ref": "scene.vars.step"}, 1]}
    )

    assert resolved == {"text": "Ming", "items": [2, 1]}


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "left, right, expected",
    [
        (1, 1.0, True),
        (1, "1", False),
        (True, 1, False),
        (True, True, True),
        ("a", "a", True),
        (None, None, True),
    ],
)
def test_strict_equals(left, right, expected):
    assert strict_equals(left, right) is expected


@pytest.mark.parametrize(
    "value, expected",
    [(3, 3.0), ("2.5", 2.5), ("", None), ("abc", None), (True, None), (None, None), ("nan", None)],
)
def test_to_number(value, expected):
    assert to_number(value) == expected


@pytest.mark.parametrize(
    "condition, expected",
    [
        ({"op": "equals", "left": {"ref": "quiz.state.selected"}, "right": "B"}, True),
        ({"op": "notEquals", "left": {"ref": "scene.vars.step"}, "right": 2}, False),
        ({"op": "gte", "left": {"ref": "globals.vars.score"}, "right": 10}, True),
        ({"op": "lt", "left": {"ref": "globals.vars.score"}, "right": "20"}, True),
        ({"op": "gt", "left": {"ref": "globals.vars.userName"}, "right": 1}, False),
        ({"op": "lte", "left": {"ref": "globals.vars.missing"}, "right": 0}, False),
        ({"op": "and", "conditions": []}, True),
        ({"op": "or", "conditions": []}, False),
        ({"op": "not", "conditions": []}, False),
        (
            {"op": "not", "conditions": [{"op": "equals", "left": 1, "right": 2}]},
            True,
        ),
        (
            {
                "op": "or",
                "conditions": [
                    {"op": "equals", "left": 1, "right": 2},
                    {"op": "equals", "left": {"ref": "globals.vars.passed"}, "right": True},
                ],
            },
            True,
        ),
    ],
)
def test_evaluate(evaluator, condition, expected):
    assert evaluator.evaluate(_condition.validate_python(condition)) is expected


def test_evaluate_all(evaluator):
    assert evaluator.evaluate_all([]) is True
    conditions = [
        _condition.validate_python({"op": "gt", "left": {"ref": "globals.vars.score"}, "right": 5}),
        _condition.validate_python({"op": "equals", "left": "x", "right": "y"}),
    ]
    assert evaluator.evaluate_all(conditions) is False


def test_unknown_condition_is_false(evaluator):
    assert evaluator.evaluate({"op": "equals", "left": 1, "right": 1}) is False


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


def test_matches_on_event_type_and_optional_target():
    trigger = _trigger({"on": {"event": "click", "target": "btn"}})
    any_target = _trigger({"on": {"event": "click"}})

    assert TriggerInterpreter.matches(RuntimeEvent("click", "btn"), trigger)
    assert not TriggerInterpreter.matches(RuntimeEvent("click", "other"), trigger)
    assert not TriggerInterpreter.matches(RuntimeEvent("submit", "btn"), trigger)
    assert TriggerInterpreter.matches(RuntimeEvent("click", "other"), any_target)


def test_then_branch_mutates_store_and_records_effects(store):
    interpreter = TriggerInterpreter.for_store(store)
    trigger = _trigger(
        {
            "on": {"event": "submit", "target": "quiz"},
            "if": [{"op": "equals", "left": {"ref": "quiz.state.selected"}, "right": "B"}],
            "then": [
                {"action": "addScore", "value": 5},
                {"action": "incVar", "path": "scene.vars.step"},
                {"action": "setVar", "path": "globals.vars.last", "value": {"ref": "quiz.state.selected"}},
                {
                    "action": "parallel",
                    "actions": [
                        {"action": "toast", "text": "Score {{globals.vars.score}}"},
                        {"action": "playAnimation", "target": "quiz", "animation": "pulse"},
                    ],
                },
            ],
            "else": [{"action": "toast", "text": "wrong"}],
        }
    )

    outcome = interpreter.handle_event(RuntimeEvent("submit", "quiz"), [trigger], "s1")

    assert outcome.matched == 1
    assert outcome.next_scene is None
    assert store.get("globals.vars.score") == 15
    assert store.get("scene.vars.step") == 3
    assert store.get("globals.vars.last") == "B"
    assert [e.action for e in outcome.effects] == [
        "addScore",
        "incVar",
        "setVar",
        "toast",
        "playAnimation",
    ]
    toast = outcome.effects[3]
    assert toast.scene_id == "s1"
    assert toast.params == {"text": "Score 15"}


def test_else_branch_runs_when_condition_fails(store):
    interpreter = TriggerInterpreter.for_store(store)
    trigger = _trigger(
        {
            "on": {"event": "submit"},
            "if": [{"op": "equals", "left": {"ref": "quiz.state.selected"}, "right": "A"}],
            "then": [{"action": "addScore", "value": 5}],
            "else": [{"action": "incVar", "path": "globals.vars.attempts", "by": 2}],
        }
    )

    interpreter.handle_event(RuntimeEvent("submit", "quiz"), [trigger], "s1")

    assert store.get("globals.vars.score") == 10
    assert store.get("globals.vars.attempts") == 2


def test_non_numeric_variable_restarts_from_zero(store):
    interpreter = TriggerInterpreter.for_store(store)
    trigger = _trigger(
        {"on": {"event": "tick"}, "then": [{"action": "incVar", "path": "globals.vars.userName"}]}
    )

    interpreter.handle_event(RuntimeEvent("tick"), [trigger], "s1")

    assert store.get("globals.vars.userName") == 1


def test_reset_node_clears_state(store):
    interpreter = TriggerInterpreter.for_store(store)
    trigger = _trigger(
        {"on": {"event": "retry"}, "then": [{"action": "resetNode", "nodeId": "quiz"}]}
    )

    outcome = interpreter.handle_event(RuntimeEvent("retry"), [trigger], "s1")

    assert store.node_state("quiz") == {}
    assert outcome.effects[0].params == {"nodeId": "quiz"}


@pytest.mark.parametrize("path", ["nodes", "nodes.quiz", "globals", "globals.vars", "scene.vars"])
def test_store_ignores_writes_over_layers(store, path):
    assert store.set(path, 1) is False

    store.set_node_state("quiz", {})
    store.update_node_state("quiz", {"selected": "C"})
    assert store.node_state("quiz") == {"selected": "C"}
    assert store.get("globals.vars.score") == 10
    assert store.get("scene.vars.step") == 2


def test_set_var_on_layer_root_keeps_node_state_usable(store):
    interpreter = TriggerInterpreter.for_store(store)
    triggers = [
        _trigger({"on": {"event": "wipe"}, "then": [{"action": "setVar", "path": "nodes", "value": 1}]}),
        _trigger({"on": {"event": "wipe"}, "then": [{"action": "resetNode", "nodeId": "quiz"}]}),
    ]

    outcome = interpreter.handle_event(RuntimeEvent("wipe"), triggers, "s1")

    assert outcome.matched == 2
    assert store.node_state("quiz") == {}
    assert isinstance(store.snapshot()["nodes"], dict)


def test_scene_change_stops_remaining_triggers(store):
    interpreter = TriggerInterpreter.for_store(store)
    triggers = [
        _trigger({"on": {"event": "click"}, "then": [{"action": "gotoScene", "sceneId": "next"}]}),
        _trigger({"on": {"event": "click"}, "then": [{"action": "addScore", "value": 1}]}),
    ]

    outcome = interpreter.handle_event(RuntimeEvent("click", "btn"), triggers, "s1")

    assert outcome.matched == 1
    assert outcome.next_scene == "next"
    assert outcome.effects[0].params == {"sceneId": "next"}
    assert store.get("globals.vars.score") == 10


def test_all_matching_triggers_run_in_order(store):
    interpreter = TriggerInterpreter.for_store(store)
    triggers = [
        _trigger({"on": {"event": "click"}, "then": [{"action": "addScore", "value": 1}]}),
        _trigger({"on": {"event": "click"}, "then": [{"action": "addScore", "value": 2.5}]}),
    ]

    outcome = interpreter.handle_event(RuntimeEvent("click"), triggers, "s1")

    assert outcome.matched == 2
    assert store.get("globals.vars.score") == 13.5
