"""
Pydantic models for the VV course DSL (`vvce.dsl.v1`).

Field names are snake_case; the JSON wire names are camelCase and are
accepted through aliases. Every model tolerates unknown fields so newer
course documents still load.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SCHEMA_VERSION = "vvce.dsl.v1"

# Component types shipped with the M0 renderer
M0_COMPONENTS = frozenset({"Dialog", "QuizSingle", "Button"})

BUILTIN_ANIMATIONS = frozenset(
    {
        "fadeIn",
        "fadeOut",
        "slideInLeft",
        "slideInRight",
        "slideInUp",
        "slideInDown",
        "slideOutLeft",
        "slideOutRight",
        "slideOutUp",
        "slideOutDown",
        "scaleIn",
        "scaleOut",
        "rotateIn",
        "rotateOut",
        "bounceIn",
        "bounceOut",
        "flipInX",
        "flipInY",
        "flipOutX",
        "flipOutY",
        "zoomIn",
        "zoomOut",
        "pulse",
        "shake",
        "wobble",
        "swing",
        "tada",
        "heartbeat",
        "rubber",
        "jello",
        "float",
        "glow",
    }
)

BUILTIN_THEMES = frozenset(
    {"default", "playful", "academic", "minimal", "vibrant", "dark", "nature", "tech", "retro"}
)

StyleProperties = Dict[str, Any]


class DSLModel(BaseModel):
    """Base model for every DSL object."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ============ Conditions ============


class RefExpression(DSLModel):
    ref: str


class ComparisonCondition(DSLModel):
    op: Literal["equals", "notEquals", "gt", "gte", "lt", "lte"]
    left: Any = None
    right: Any = None


class LogicalCondition(DSLModel):
    op: Literal["and", "or", "not"]
    conditions: List["ConditionDSL"] = Field(default_factory=list)


ConditionDSL = Annotated[
    Union[ComparisonCondition, LogicalCondition], Field(discriminator="op")
]


# ============ Animations and transitions ============


class NodeAnimation(DSLModel):
    type: str
    duration: Optional[float] = None
    easing: Optional[str] = None
    delay: Optional[float] = None
    params: Dict[str, Any] = Field(default_factory=dict)


class SceneTransition(DSLModel):
    type: str
    duration: Optional[float] = None
    easing: Optional[str] = None
    direction: Optional[str] = None
    custom: Optional[str] = None


class AnimationKeyframe(DSLModel):
    offset: float = Field(..., ge=0, le=100)
    properties: Dict[str, Any] = Field(default_factory=dict)


class AnimationDefinition(DSLModel):
    keyframes: List[AnimationKeyframe]
    duration: Optional[float] = None
    easing: Optional[str] = None
    delay: Optional[float] = None
    iterations: Optional[int] = None
    direction: Optional[str] = None
    fill_mode: Optional[str] = Field(None, alias="fillMode")


class AssetDefinition(DSLModel):
    id: str
    type: Literal["image", "font", "audio", "video", "lottie", "spine"]
    url: str
    preload: bool = False
    fallback: Optional[str] = None


class CourseResources(DSLModel):
    variables: Dict[str, Any] = Field(default_factory=dict)
    animations: Dict[str, AnimationDefinition] = Field(default_factory=dict)
    transitions: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    styles: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    assets: List[AssetDefinition] = Field(default_factory=list)


class ThemeConfig(DSLModel):
    name: Optional[str] = None
    extends: Optional[str] = None
    mode: Optional[Literal["light", "dark", "auto"]] = None
    variables: Dict[str, Any] = Field(default_factory=dict)
    components: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


# ============ Actions ============
# Parameters checked by the semantic validator stay loosely typed here so
# that problems surface as INVALID_ACTION_PARAMS instead of schema errors.


class GotoSceneAction(DSLModel):
    action: Literal["gotoScene"]
    scene_id: str = Field(..., alias="sceneId")
    transition: Optional[SceneTransition] = None


class SetVarAction(DSLModel):
    action: Literal["setVar"]
    path: str
    value: Any = None


class IncVarAction(DSLModel):
    action: Literal["incVar"]
    path: str
    by: Union[int, float] = 1


class AddScoreAction(DSLModel):
    action: Literal["addScore"]
    value: Any = None


class ToastAction(DSLModel):
    action: Literal["toast"]
    text: Any = None
    duration: Optional[float] = None
    position: Optional[Literal["top", "center", "bottom"]] = None
    variant: Optional[Literal["info", "success", "warning", "error"]] = None
    icon: Optional[str] = None


class ModalButton(DSLModel):
    text: str
    variant: Optional[Literal["primary", "secondary", "danger"]] = None
    actions: List["ActionDSL"] = Field(default_factory=list)


class ModalAction(DSLModel):
    action: Literal["modal"]
    text: str
    title: Optional[str] = None
    buttons: List[ModalButton] = Field(default_factory=list)
    style: Optional[StyleProperties] = None
    enter_animation: Optional[NodeAnimation] = Field(None, alias="enterAnimation")


class ResetNodeAction(DSLModel):
    action: Literal["resetNode"]
    node_id: str = Field(..., alias="nodeId")


class PlayAnimationAction(DSLModel):
    action: Literal["playAnimation"]
    target: str
    animation: str
    duration: Optional[float] = None
    easing: Optional[str] = None
    delay: Optional[float] = None
    iterations: Optional[int] = None


class StopAnimationAction(DSLModel):
    action: Literal["stopAnimation"]
    target: str


class SetStyleAction(DSLModel):
    action: Literal["setStyle"]
    target: str
    style: StyleProperties = Field(default_factory=dict)
    animate: bool = False
    duration: Optional[float] = None
    easing: Optional[str] = None


class AddClassAction(DSLModel):
    action: Literal["addClass"]
    target: str
    class_name: Union[str, List[str]] = Field(..., alias="className")
    duration: Optional[float] = None


class RemoveClassAction(DSLModel):
    action: Literal["removeClass"]
    target: str
    class_name: Union[str, List[str]] = Field(..., alias="className")
    duration: Optional[float] = None


class SetThemeAction(DSLModel):
    action: Literal["setTheme"]
    theme: str
    duration: Optional[float] = None


class ShowNodeAction(DSLModel):
    action: Literal["showNode"]
    target: str
    animation: Optional[str] = None
    duration: Optional[float] = None


class HideNodeAction(DSLModel):
    action: Literal["hideNode"]
    target: str
    animation: Optional[str] = None
    duration: Optional[float] = None


class ParallelAction(DSLModel):
    action: Literal["parallel"]
    actions: List["ActionDSL"] = Field(default_factory=list)


class SequenceAction(DSLModel):
    action: Literal["sequence"]
    actions: List["ActionDSL"] = Field(default_factory=list)


class DelayAction(DSLModel):
    action: Literal["delay"]
    duration: Any = None


class SoundAction(DSLModel):
    action: Literal["sound"]
    src: str
    volume: Optional[float] = Field(None, ge=0, le=1)
    loop: bool = False


class HapticAction(DSLModel):
    action: Literal["haptic"]
    type: Literal["light", "medium", "heavy", "success", "warning", "error"]


ActionDSL = Annotated[
    Union[
        GotoSceneAction,
        SetVarAction,
        IncVarAction,
        AddScoreAction,
        ToastAction,
        ModalAction,
        ResetNodeAction,
        PlayAnimationAction,
        StopAnimationAction,
        SetStyleAction,
        AddClassAction,
        RemoveClassAction,
        SetThemeAction,
        ShowNodeAction,
        HideNodeAction,
        ParallelAction,
        SequenceAction,
        DelayAction,
        SoundAction,
        HapticAction,
    ],
    Field(discriminator="action"),
]

# Actions that address a node in the current scene
NODE_TARGET_ACTIONS = frozenset(
    {
        "playAnimation",
        "stopAnimation",
        "setStyle",
        "addClass",
        "removeClass",
        "showNode",
        "hideNode",
        "resetNode",
    }
)

CONTAINER_ACTIONS = frozenset({"parallel", "sequence"})

# Raised by the runtime on scene entry; its target is the scene id
SCENE_ENTER_EVENT = "sceneEnter"


def action_target(action: Any) -> Optional[str]:
    """Return the node id an action addresses, if any."""
    return getattr(action, "target", None) or getattr(action, "node_id", None)


# ============ Triggers ============


class EventMatcher(DSLModel):
    event: str
    target: Optional[str] = None


class TriggerDSL(DSLModel):
    on: EventMatcher
    if_: List[ConditionDSL] = Field(default_factory=list, alias="if")
    then: List[ActionDSL] = Field(default_factory=list)
    else_: List[ActionDSL] = Field(default_factory=list, alias="else")

    @property
    def node_target(self) -> Optional[str]:
        """The node this trigger listens on; sceneEnter targets name scenes instead."""
        if self.on.event == SCENE_ENTER_EVENT:
            return None
        return self.on.target

    def all_actions(self) -> List[Any]:
        """Top-level actions from both branches."""
        return [*self.then, *self.else_]


# ============ Scenes and nodes ============


class NodeInteraction(DSLModel):
    trigger: Literal["hover", "click", "focus", "active", "visible"]
    animation: Optional[str] = None
    style: Optional[StyleProperties] = None
    duration: Optional[float] = None
    easing: Optional[str] = None


class NodeDSL(DSLModel):
    id: str
    type: str
    props: Dict[str, Any] = Field(default_factory=dict)
    style: Optional[StyleProperties] = None
    style_class: Optional[Union[str, List[str]]] = Field(None, alias="styleClass")
    enter_animation: Optional[NodeAnimation] = Field(None, alias="enterAnimation")
    exit_animation: Optional[NodeAnimation] = Field(None, alias="exitAnimation")
    interactions: List[NodeInteraction] = Field(default_factory=list)
    visible: Optional[Union[bool, ConditionDSL]] = None

    @property
    def style_classes(self) -> List[str]:
        if self.style_class is None:
            return []
        if isinstance(self.style_class, str):
            return [self.style_class]
        return list(self.style_class)


class LayoutConfig(DSLModel):
    type: Literal["stack", "grid", "flex", "absolute", "masonry"]
    padding: Optional[Union[float, str, List[float]]] = None
    gap: Optional[Union[float, str]] = None
    columns: Optional[int] = None
    rows: Optional[int] = None
    align: Optional[str] = None
    justify: Optional[str] = None
    reverse: bool = False
    wrap: bool = False


class SceneDSL(DSLModel):
    id: str
    title: Optional[str] = None
    layout: Optional[LayoutConfig] = None
    style: Optional[StyleProperties] = None
    enter_transition: Optional[SceneTransition] = Field(None, alias="enterTransition")
    exit_transition: Optional[SceneTransition] = Field(None, alias="exitTransition")
    background: Optional[Dict[str, Any]] = None
    vars: Dict[str, Any] = Field(default_factory=dict)
    nodes: List[NodeDSL] = Field(default_factory=list)
    triggers: List[TriggerDSL] = Field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}


# ============ Course ============


class CourseMeta(DSLModel):
    id: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")


class CourseGlobals(DSLModel):
    vars: Dict[str, Any] = Field(default_factory=dict)


class CourseDSL(DSLModel):
    schema_: Literal["vvce.dsl.v1"] = Field(..., alias="schema")
    meta: CourseMeta
    globals: CourseGlobals = Field(default_factory=CourseGlobals)
    resources: CourseResources = Field(default_factory=CourseResources)
    theme: Optional[Union[str, ThemeConfig]] = None
    start_scene_id: str = Field(..., alias="startSceneId", min_length=1)
    scenes: List[SceneDSL] = Field(..., min_length=1)

    def scene(self, scene_id: str) -> Optional[SceneDSL]:
        for scene in self.scenes:
            if scene.id == scene_id:
                return scene
        return None

    def scene_ids(self) -> set[str]:
        return {scene.id for scene in self.scenes}


LogicalCondition.model_rebuild()
ModalButton.model_rebuild()
ParallelAction.model_rebuild()
SequenceAction.model_rebuild()
ModalAction.model_rebuild()
TriggerDSL.model_rebuild()
NodeDSL.model_rebuild()
SceneDSL.model_rebuild()
CourseDSL.model_rebuild()


def walk_actions(actions: List[Any]):
    """Yield every action, descending into parallel/sequence containers."""
    for action in actions:
        yield action
        if action.action in CONTAINER_ACTIONS:
            yield from walk_actions(action.actions)


__all__ = [
    "SCHEMA_VERSION",
    "M0_COMPONENTS",
    "BUILTIN_ANIMATIONS",
    "BUILTIN_THEMES",
    "NODE_TARGET_ACTIONS",
    "CONTAINER_ACTIONS",
    "SCENE_ENTER_EVENT",
    "CourseDSL",
    "CourseMeta",
    "CourseGlobals",
    "CourseResources",
    "ThemeConfig",
    "SceneDSL",
    "NodeDSL",
    "TriggerDSL",
    "EventMatcher",
    "ComparisonCondition",
    "LogicalCondition",
    "RefExpression",
    "ConditionDSL",
    "ActionDSL",
    "action_target",
    "walk_actions",
]
