"""
Course tooling endpoints.

All operations are stateless: the course document travels in the request
body and nothing is stored. Handlers are plain `def` functions because
validation and analysis are CPU-bound; FastAPI runs them in its thread
pool.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from vvce.analysis import dry_run, dry_run_report
from vvce.exceptions import SimulationError
from vvce.runtime import RuntimeEvent, simulate
from vvce.schema import parse_course, validate_course

PREFIX = "/api/v1/courses"

router = APIRouter(tags=["courses"])


class SimulatedEvent(BaseModel):
    """One player event to replay."""

    type: str = Field(..., min_length=1, description="Event name, e.g. click or submit")
    target: Optional[str] = Field(None, description="Node id that raised the event")
    state: Dict[str, Any] = Field(
        default_factory=dict,
        description="Node state written by the component before it raised the event",
    )


class SimulateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    course: Dict[str, Any]
    scene_id: Optional[str] = Field(None, alias="sceneId")
    state: Optional[Dict[str, Any]] = None
    events: List[SimulatedEvent] = Field(default_factory=list)


@router.post("/validate")
def validate(document: Any = Body(...)) -> Dict[str, Any]:
    """Validate a course document. Validity is reported in the body."""
    return validate_course(document).to_dict()


@router.post("/dry-run")
def dry_run_course(document: Any = Body(...)) -> Dict[str, Any]:
    """Enumerate scene paths, coverage, dead code and complexity."""
    course = parse_course(document)
    return dry_run(course).to_dict()


@router.post("/dry-run/report", response_class=PlainTextResponse)
def dry_run_course_report(document: Any = Body(...)) -> str:
    """Render the dry run as a plain-text report."""
    course = parse_course(document)
    return dry_run_report(course)


@router.post("/simulate")
def simulate_course(payload: SimulateRequest, request: Request) -> Dict[str, Any]:
    """Replay player events against a course's triggers."""
    max_events = request.app.state.config.max_simulation_events
    if len(payload.events) > max_events:
        raise SimulationError(
            f"Too many events: {len(payload.events)} (limit {max_events})",
            scene_id=payload.scene_id,
        )

    course = parse_course(payload.course)
    events = [
        RuntimeEvent(type=event.type, target=event.target, state=event.state)
        for event in payload.events
    ]
    result = simulate(
        course,
        events,
        scene_id=payload.scene_id,
        state=payload.state,
        max_events=max_events,
    )
    return result.to_dict()
