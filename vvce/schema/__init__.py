"""Course DSL models and validators."""

from vvce.schema.issues import IssueCode, Severity, ValidationIssue, ValidationResult
from vvce.schema.models import SCHEMA_VERSION, CourseDSL, SceneDSL, TriggerDSL
from vvce.schema.semantic import SemanticValidator, validate_semantics
from vvce.schema.structure import check_structure
from vvce.schema.validator import Validator, parse_course, validate_course

__all__ = [
    "SCHEMA_VERSION",
    "CourseDSL",
    "SceneDSL",
    "TriggerDSL",
    "IssueCode",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    "SemanticValidator",
    "Validator",
    "check_structure",
    "parse_course",
    "validate_course",
    "validate_semantics",
]
