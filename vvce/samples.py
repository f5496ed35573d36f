"""
Built-in sample course.

Used by the engine health check and as a starting point for authors; it
exercises conditions, else branches, scoring and a sceneEnter trigger.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

_SAMPLE_COURSE: Dict[str, Any] = {
    "schema": "vvce.dsl.v1",
    "meta": {"id": "simple-quiz", "version": "1.0.0", "title": "Arithmetic quiz"},
    "globals": {"vars": {"score": 0, "attempt": 0, "userName": "Ming"}},
    "startSceneId": "welcome",
    "scenes": [
        {
            "id": "welcome",
            "vars": {"greeting": "Welcome to the maths quiz!"},
            "nodes": [
                {"id": "intro", "type": "Dialog", "props": {"text": "{{scene.vars.greeting}}"}},
                {"id": "startBtn", "type": "Button", "props": {"text": "Start"}},
            ],
            "triggers": [
                {
                    "on": {"event": "click", "target": "startBtn"},
                    "then": [{"action": "gotoScene", "sceneId": "question1"}],
                }
            ],
        },
        {
            "id": "question1",
            "vars": {"questionText": "1 + 1 = ?"},
            "nodes": [
                {
                    "id": "answer",
                    "type": "QuizSingle",
                    "props": {"question": "1 + 1 = ?", "options": ["1", "2", "3"]},
                }
            ],
            "triggers": [
                {
                    "on": {"event": "submit", "target": "answer"},
                    "if": [
                        {"op": "equals", "left": {"ref": "answer.state.selected"}, "right": "2"}
                    ],
                    "then": [
                        {"action": "addScore", "value": 10},
                        {"action": "toast", "text": "Correct! +10", "variant": "success"},
                        {"action": "gotoScene", "sceneId": "question2"},
                    ],
                    "else": [
                        {"action": "incVar", "path": "globals.vars.attempt", "by": 1},
                        {"action": "toast", "text": "Not quite, try again", "variant": "warning"},
                    ],
                }
            ],
        },
        {
            "id": "question2",
            "vars": {"questionText": "2 x 3 = ?"},
            "nodes": [
                {
                    "id": "answer",
                    "type": "QuizSingle",
                    "props": {"question": "2 x 3 = ?", "options": ["5", "6", "8"]},
                }
            ],
            "triggers": [
                {
                    "on": {"event": "submit", "target": "answer"},
                    "if": [
                        {"op": "equals", "left": {"ref": "answer.state.selected"}, "right": "6"}
                    ],
                    "then": [
                        {"action": "addScore", "value": 10},
                        {"action": "toast", "text": "Correct! +10", "variant": "success"},
                        {"action": "gotoScene", "sceneId": "result"},
                    ],
                    "else": [
                        {"action": "incVar", "path": "globals.vars.attempt", "by": 1},
                        {"action": "toast", "text": "Not quite, try again", "variant": "warning"},
                    ],
                }
            ],
        },
        {
            "id": "result",
            "nodes": [{"id": "restartBtn", "type": "Button", "props": {"text": "Restart"}}],
            "triggers": [
                {
                    "on": {"event": "sceneEnter", "target": "result"},
                    "if": [{"op": "gte", "left": {"ref": "globals.vars.score"}, "right": 20}],
                    "then": [{"action": "toast", "text": "Full marks, {{globals.vars.userName}}!"}],
                    "else": [{"action": "toast", "text": "Score: {{globals.vars.score}}"}],
                },
                {
                    "on": {"event": "click", "target": "restartBtn"},
                    "then": [
                        {"action": "setVar", "path": "globals.vars.score", "value": 0},
                        {"action": "setVar", "path": "globals.vars.attempt", "value": 0},
                        {"action": "gotoScene", "sceneId": "welcome"},
                    ],
                },
            ],
        },
    ],
}


def sample_course() -> Dict[str, Any]:
    """Return a fresh copy of the sample course document."""
    return copy.deepcopy(_SAMPLE_COURSE)


__all__ = ["sample_course"]
