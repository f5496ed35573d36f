"""
VV Course Engine - Custom Exceptions

Exception hierarchy shared by the configuration layer, the course
validators and the runtime interpreter. The HTTP layer maps each type to
a response status, so raise the most specific class available.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vvce.schema.issues import ValidationResult


class VVCEError(Exception):
    """
    Base exception for all course engine errors.

    Catch this when any engine failure should be handled the same way.
    """

    pass


class ConfigError(VVCEError):
    """Raised when configuration cannot be loaded or validated."""


class CourseValidationError(VVCEError):
    """
    Raised when a course document fails validation.

    Attributes:
        result: The full validation result, including warnings

    Example:
        >>> raise CourseValidationError("Course is invalid", result=result)
    """

    def __init__(self, message: str, result: "ValidationResult"):
        super().__init__(message)
        self.result = result


class SimulationError(VVCEError):
    """
    Raised when an event simulation cannot run.

    Attributes:
        scene_id: Scene the simulation was positioned on, if known
    """

    def __init__(self, message: str, scene_id: str | None = None):
        super().__init__(message)
        self.scene_id = scene_id


__all__ = [
    "VVCEError",
    "ConfigError",
    "CourseValidationError",
    "SimulationError",
]
