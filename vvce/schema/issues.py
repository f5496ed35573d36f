"""
Validation result types shared by the structural and semantic validators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class Severity(str, Enum):
    """How serious a validation finding is."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCode(str, Enum):
    """Machine-readable validation codes."""

    # Structure
    STRUCTURE_ERROR = "STRUCTURE_ERROR"
    DUPLICATE_ID = "DUPLICATE_ID"
    SCHEMA_ERROR = "SCHEMA_ERROR"
    # References
    INVALID_SCENE_REF = "INVALID_SCENE_REF"
    INVALID_NODE_REF = "INVALID_NODE_REF"
    INVALID_VAR_PATH = "INVALID_VAR_PATH"
    INVALID_ANIMATION_REF = "INVALID_ANIMATION_REF"
    INVALID_THEME_REF = "INVALID_THEME_REF"
    INVALID_STYLE_REF = "INVALID_STYLE_REF"
    # Flow
    CIRCULAR_SCENE_REF = "CIRCULAR_SCENE_REF"
    UNREACHABLE_SCENE = "UNREACHABLE_SCENE"
    EMPTY_ACTIONS = "EMPTY_ACTIONS"
    # Actions and components
    INVALID_ACTION_PARAMS = "INVALID_ACTION_PARAMS"
    NESTED_DEPTH_EXCEEDED = "NESTED_DEPTH_EXCEEDED"
    UNKNOWN_COMPONENT_TYPE = "UNKNOWN_COMPONENT_TYPE"


@dataclass
class ValidationIssue:
    """
    A single validation finding.

    Attributes:
        path: Dotted/indexed location in the course document
        message: Human-readable description
        severity: error, warning or info
        code: Machine-readable issue code
    """

    path: str
    message: str
    severity: Severity
    code: IssueCode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "message": self.message,
            "severity": self.severity.value,
            "code": self.code.value,
        }


@dataclass
class ValidationResult:
    """Outcome of validating one course document."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    info: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, issue: ValidationIssue) -> None:
        """File an issue under its severity."""
        if issue.severity is Severity.ERROR:
            self.errors.append(issue)
        elif issue.severity is Severity.WARNING:
            self.warnings.append(issue)
        else:
            self.info.append(issue)

    def error(self, path: str, message: str, code: IssueCode) -> None:
        self.add(ValidationIssue(path, message, Severity.ERROR, code))

    def warning(self, path: str, message: str, code: IssueCode) -> None:
        self.add(ValidationIssue(path, message, Severity.WARNING, code))

    def note(self, path: str, message: str, code: IssueCode) -> None:
        self.add(ValidationIssue(path, message, Severity.INFO, code))

    def merge(self, other: "ValidationResult") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.info.extend(other.info)

    def codes(self) -> List[str]:
        """All issue codes in error, warning, info order."""
        return [i.code.value for i in (*self.errors, *self.warnings, *self.info)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
            "info": [i.to_dict() for i in self.info],
        }


__all__ = ["Severity", "IssueCode", "ValidationIssue", "ValidationResult"]
