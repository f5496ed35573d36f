"""
Tests for the structural, model and semantic course validation passes.
"""

import pytest

from vvce.exceptions import CourseValidationError
from vvce.schema import IssueCode, Severity, parse_course, validate_course
from vvce.schema.semantic import find_cycles, is_valid_ref_path
from vvce.schema.structure import check_structure
from vvce.schema.validator import format_location

pytestmark = pytest.mark.unit


def _scene(scene_id, nodes=None, triggers=None, **extra):
    return {"id": scene_id, "nodes": nodes or [], "triggers": triggers or [], **extra}


def _course(*scenes, start="a", **extra):
    return {
        "schema": "vvce.dsl.v1",
        "meta": {"id": "test", "version": "1.0.0"},
        "startSceneId": start,
        "scenes": list(scenes),
        **extra,
    }


def _button(node_id="btn"):
    return {"id": node_id, "type": "Button", "props": {}}


def _click(then, target="btn"):
    return {"on": {"event": "click", "target": target}, "then": then}


def _issues(result, code):
    return [i for i in (*result.errors, *result.warnings, *result.info) if i.code is code]


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


def test_sample_course_is_valid(sample_course):
    result = validate_course(sample_course)

    assert result.valid
    assert result.warnings == []
    assert result.codes() == ["CIRCULAR_SCENE_REF"]
    assert result.info[0].severity is Severity.INFO
    assert "welcome -> question1 -> question2 -> result -> welcome" in result.info[0].message


def test_non_object_document_is_rejected():
    result = check_structure(["not", "a", "course"])

    assert not result.valid
    assert result.errors[0].code is IssueCode.STRUCTURE_ERROR


def test_missing_required_fields_are_all_reported():
    result = check_structure({"schema": "vvce.dsl.v0", "meta": {}, "scenes": []})

    paths = [issue.path for issue in result.errors]
    assert paths == ["schema", "meta.id", "meta.version", "startSceneId", "scenes"]


def test_scenes_must_be_an_array():
    result = check_structure(_course(start="a") | {"scenes": {"a": {}}})

    assert [i.message for i in result.errors] == ["scenes must be an array"]


def test_duplicate_scene_and_node_ids():
    document = _course(
        _scene("a", nodes=[_button("x"), _button("x")]),
        _scene("a"),
    )

    result = check_structure(document)

    assert [(i.path, i.code) for i in result.errors] == [
        ("scenes[0].nodes[1].id", IssueCode.DUPLICATE_ID),
        ("scenes[1].id", IssueCode.DUPLICATE_ID),
    ]


def test_node_without_type():
    result = check_structure(_course(_scene("a", nodes=[{"id": "x"}])))

    assert [i.path for i in result.errors] == ["scenes[0].nodes[0].type"]


def test_structural_errors_stop_before_model_pass():
    result = validate_course(_course(_scene("a"), _scene("a")))

    assert result.codes() == ["DUPLICATE_ID"]


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


def test_unknown_action_is_a_schema_error():
    document = _course(_scene("a", nodes=[_button()], triggers=[_click([{"action": "explode"}])]))

    result = validate_course(document)

    assert not result.valid
    assert result.codes() == ["SCHEMA_ERROR"]
    assert result.errors[0].path.startswith("scenes[0].triggers[0].then[0]")


def test_format_location():
    assert format_location(("scenes", 0, "triggers", 1, "then")) == "scenes[0].triggers[1].then"
    assert format_location(()) == ""


def test_extra_fields_are_tolerated():
    document = _course(_scene("a", x_editor={"zoom": 2}), meta_extra=True)

    assert validate_course(document).valid


# ---------------------------------------------------------------------------
# Semantics
# ---------------------------------------------------------------------------


def test_unknown_start_scene():
    result = validate_course(_course(_scene("a"), start="missing"))

    assert [(i.path, i.code) for i in result.errors] == [
        ("startSceneId", IssueCode.INVALID_SCENE_REF)
    ]


def test_goto_unknown_scene_inside_container():
    then = [{"action": "sequence", "actions": [{"action": "gotoScene", "sceneId": "nowhere"}]}]
    result = validate_course(_course(_scene("a", nodes=[_button()], triggers=[_click(then)])))

    issue = _issues(result, IssueCode.INVALID_SCENE_REF)[0]
    assert issue.severity is Severity.ERROR
    assert issue.path == "scenes[0].triggers[0].then[0].actions[0]"


def test_goto_unknown_scene_from_modal_button():
    modal = {
        "action": "modal",
        "text": "Leave?",
        "buttons": [{"text": "Yes", "actions": [{"action": "gotoScene", "sceneId": "gone"}]}],
    }
    result = validate_course(_course(_scene("a", nodes=[_button()], triggers=[_click([modal])])))

    assert [i.path for i in _issues(result, IssueCode.INVALID_SCENE_REF)] == [
        "scenes[0].triggers[0].then[0].buttons[0].actions[0]"
    ]


def test_trigger_target_missing_is_error_action_target_missing_is_warning():
    then = [{"action": "hideNode", "target": "ghost"}]
    result = validate_course(_course(_scene("a", nodes=[_button()], triggers=[_click(then, "nobody")])))

    node_issues = _issues(result, IssueCode.INVALID_NODE_REF)
    assert [i.severity for i in node_issues] == [Severity.ERROR, Severity.WARNING]


def test_scene_enter_target_names_the_scene():
    trigger = {"on": {"event": "sceneEnter", "target": "a"}, "then": [{"action": "toast", "text": "hi"}]}
    result = validate_course(_course(_scene("a", triggers=[trigger])))

    assert result.valid
    assert _issues(result, IssueCode.INVALID_NODE_REF) == []


def test_scene_enter_target_for_other_scene_warns():
    trigger = {"on": {"event": "sceneEnter", "target": "b"}, "then": [{"action": "toast", "text": "hi"}]}
    result = validate_course(_course(_scene("a", triggers=[trigger])))

    assert result.valid
    assert [i.code for i in result.warnings] == [IssueCode.INVALID_SCENE_REF]


def test_invalid_var_paths_warn():
    trigger = {
        "on": {"event": "click", "target": "btn"},
        "if": [
            {
                "op": "and",
                "conditions": [{"op": "equals", "left": {"ref": "score"}, "right": 1}],
            }
        ],
        "then": [{"action": "setVar", "path": "globals.score", "value": 1}],
    }
    result = validate_course(_course(_scene("a", nodes=[_button()], triggers=[trigger])))

    assert result.valid
    assert [i.path for i in _issues(result, IssueCode.INVALID_VAR_PATH)] == [
        "scenes[0].triggers[0].if[0].conditions[0].left",
        "scenes[0].triggers[0].then[0].path",
    ]


@pytest.mark.parametrize(
    "path, expected",
    [
        ("globals.vars.score", True),
        ("scene.vars.step", True),
        ("quiz1.state.selected", True),
        ("globals.score", False),
        ("scene.vars.a.b", False),
        ("score", False),
    ],
)
def test_is_valid_ref_path(path, expected):
    assert is_valid_ref_path(path) is expected


def test_animation_theme_and_style_refs():
    node = {
        "id": "btn",
        "type": "Button",
        "styleClass": ["primary", "glowing"],
        "enterAnimation": {"type": "fadeIn"},
        "exitAnimation": {"type": "melt"},
    }
    then = [
        {"action": "playAnimation", "target": "btn", "animation": "spin"},
        {"action": "setTheme", "theme": "neon"},
    ]
    document = _course(
        _scene("a", nodes=[node], triggers=[_click(then)]),
        theme="midnight",
        resources={"styles": {"primary": {"color": "red"}}, "animations": {"spin": {"keyframes": []}}},
    )

    result = validate_course(document)

    assert result.valid
    assert _issues(result, IssueCode.INVALID_ANIMATION_REF)[0].path == "scenes[0].nodes[0].exitAnimation"
    assert [i.path for i in _issues(result, IssueCode.INVALID_THEME_REF)] == [
        "theme",
        "scenes[0].triggers[0].then[1]",
    ]
    style_issues = _issues(result, IssueCode.INVALID_STYLE_REF)
    assert len(style_issues) == 1
    assert '"glowing"' in style_issues[0].message


def test_custom_theme_object_name_is_accepted():
    then = [{"action": "setTheme", "theme": "ocean"}]
    document = _course(
        _scene("a", nodes=[_button()], triggers=[_click(then)]),
        theme={"name": "ocean", "extends": "default"},
    )

    assert _issues(validate_course(document), IssueCode.INVALID_THEME_REF) == []


def test_unknown_component_type_is_info():
    result = validate_course(_course(_scene("a", nodes=[{"id": "v", "type": "Video"}])))

    assert result.valid
    assert [i.code for i in result.info] == [IssueCode.UNKNOWN_COMPONENT_TYPE]


@pytest.mark.parametrize(
    "action, message",
    [
        ({"action": "addScore", "value": "ten"}, "addScore.value must be a number"),
        ({"action": "addScore", "value": True}, "addScore.value must be a number"),
        ({"action": "delay", "duration": -5}, "delay.duration must be a non-negative number"),
        ({"action": "toast", "text": ""}, "toast.text must be a non-empty string"),
    ],
)
def test_invalid_action_params(action, message):
    result = validate_course(_course(_scene("a", nodes=[_button()], triggers=[_click([action])])))

    assert not result.valid
    assert [(i.code, i.message) for i in result.errors] == [
        (IssueCode.INVALID_ACTION_PARAMS, message)
    ]


def test_empty_container_is_error():
    result = validate_course(
        _course(_scene("a", nodes=[_button()], triggers=[_click([{"action": "parallel", "actions": []}])]))
    )

    assert result.codes() == ["EMPTY_ACTIONS"]


def test_nesting_deeper_than_limit_is_error():
    action = {"action": "toast", "text": "deep"}
    for _ in range(12):
        action = {"action": "sequence", "actions": [action]}

    result = validate_course(_course(_scene("a", nodes=[_button()], triggers=[_click([action])])))

    nesting = _issues(result, IssueCode.NESTED_DEPTH_EXCEEDED)
    assert len(nesting) == 1
    assert nesting[0].path == "scenes[0].triggers[0].then"


def test_nesting_at_the_limit_is_valid():
    action = {"action": "toast", "text": "deep"}
    for _ in range(10):
        action = {"action": "sequence", "actions": [action]}

    result = validate_course(_course(_scene("a", nodes=[_button()], triggers=[_click([action])])))

    assert result.valid
    assert _issues(result, IssueCode.NESTED_DEPTH_EXCEEDED) == []


@pytest.mark.slow
def test_long_scene_chain_validates(chain_course):
    result = validate_course(chain_course(1500))

    assert result.valid
    assert _issues(result, IssueCode.UNREACHABLE_SCENE) == []
    assert _issues(result, IssueCode.CIRCULAR_SCENE_REF) == []


def test_find_cycles_on_long_chain_and_ring():
    chain = {f"s{i}": {f"s{i + 1}"} for i in range(2999)}
    chain["s2999"] = set()
    assert find_cycles(chain) == []

    ring = {f"s{i}": {f"s{(i + 1) % 2000}"} for i in range(2000)}
    cycles = find_cycles(ring)
    assert len(cycles) == 1
    assert len(cycles[0]) == 2000
    assert cycles[0][0] == "s0"


def test_self_loop_warns_and_unreachable_scene_warns():
    document = _course(
        _scene("a", nodes=[_button()], triggers=[_click([{"action": "gotoScene", "sceneId": "a"}])]),
        _scene("orphan"),
    )

    result = validate_course(document)

    assert result.valid
    assert sorted(i.code.value for i in result.warnings) == [
        "CIRCULAR_SCENE_REF",
        "UNREACHABLE_SCENE",
    ]
    assert result.info == []


def test_find_cycles_reports_each_cycle_once():
    graph = {"a": {"b"}, "b": {"a", "c"}, "c": {"a"}}

    cycles = find_cycles(graph)

    assert cycles == [["a", "b"], ["a", "b", "c"]]


def test_parse_course_raises_with_result():
    with pytest.raises(CourseValidationError) as excinfo:
        parse_course(_course(_scene("a"), start="b"))

    result = excinfo.value.result
    assert not result.valid
    assert [i.code for i in result.errors] == [IssueCode.INVALID_SCENE_REF]
    assert [i.code for i in result.warnings] == [IssueCode.UNREACHABLE_SCENE]


def test_parse_course_returns_model(sample_course):
    course = parse_course(sample_course)

    assert course.meta.id == "simple-quiz"
    assert course.start_scene_id == "welcome"
    assert course.scene("result").triggers[0].node_target is None
    assert course.scene("nope") is None


def test_result_to_dict(sample_course):
    payload = validate_course(sample_course).to_dict()

    assert payload["valid"] is True
    assert payload["info"][0]["severity"] == "info"
    assert payload["info"][0]["code"] == "CIRCULAR_SCENE_REF"
