"""
Course validation pipeline.

Three passes run in order, each only if the previous one produced no
errors:

1. Structure: ids, required fields and uniqueness on the raw document
2. Model: parse into the pydantic DSL models
3. Semantics: cross references and scene flow

Usage:
    from vvce.schema import validate_course, parse_course

    result = validate_course(document)
    if not result.valid:
        ...

    course = parse_course(document)  # raises CourseValidationError
"""

from __future__ import annotations

from typing import Any, Tuple

from pydantic import ValidationError

from vvce.exceptions import CourseValidationError
from vvce.observability.logging import get_logger
from vvce.observability.metrics import increment_counter
from vvce.schema.issues import IssueCode, ValidationResult
from vvce.schema.models import CourseDSL
from vvce.schema.semantic import SemanticValidator
from vvce.schema.structure import check_structure

logger = get_logger(__name__)


def format_location(loc: Tuple[Any, ...]) -> str:
    """Render a pydantic error location as ``scenes[0].triggers[1].then``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


class Validator:
    """Runs the structural, model and semantic passes over a course document."""

    def __init__(self, semantic: SemanticValidator | None = None):
        self.semantic = semantic or SemanticValidator()

    def check(self, document: Any) -> Tuple[ValidationResult, CourseDSL | None]:
        """
        Validate a document and return the parsed course when parsing succeeded.

        The course is returned even when semantic errors were found so that
        callers can still inspect it.
        """
        result = check_structure(document)
        if not result.valid:
            return result, None

        try:
            course = CourseDSL.model_validate(document)
        except ValidationError as exc:
            for err in exc.errors():
                result.error(format_location(err["loc"]), err["msg"], IssueCode.SCHEMA_ERROR)
            return result, None

        result.merge(self.semantic.validate(course))
        return result, course

    def validate(self, document: Any) -> ValidationResult:
        result, course = self.check(document)
        course_id = course.meta.id if course else _raw_course_id(document)

        increment_counter(
            "course_validations_total", labels={"result": "valid" if result.valid else "invalid"}
        )
        logger.info(
            "course_validated",
            course_id=course_id,
            valid=result.valid,
            errors=len(result.errors),
            warnings=len(result.warnings),
        )
        return result


def _raw_course_id(document: Any) -> Any:
    if isinstance(document, dict) and isinstance(document.get("meta"), dict):
        return document["meta"].get("id")
    return None


def validate_course(document: Any) -> ValidationResult:
    """Convenience function: validate a raw course document."""
    return Validator().validate(document)


def parse_course(document: Any) -> CourseDSL:
    """
    Validate and parse a raw course document.

    Raises:
        CourseValidationError: if any pass reports an error
    """
    result, course = Validator().check(document)
    if not result.valid or course is None:
        raise CourseValidationError(
            f"Course failed validation with {len(result.errors)} error(s)", result=result
        )
    return course


__all__ = ["Validator", "validate_course", "parse_course", "format_location"]
