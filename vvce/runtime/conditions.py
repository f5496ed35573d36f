"""Evaluation of trigger conditions against runtime state."""

from __future__ import annotations

import math
import operator
from typing import Any, Callable, Dict, List, Optional

from vvce.observability.logging import get_logger
from vvce.runtime.resolver import ReferenceResolver
from vvce.schema.models import ComparisonCondition, LogicalCondition

logger = get_logger(__name__)

_NUMERIC_OPS: Dict[str, Callable[[float, float], bool]] = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


def strict_equals(left: Any, right: Any) -> bool:
    """Equality that does not treat booleans as numbers or strings as numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    numeric = (int, float)
    if isinstance(left, numeric) and isinstance(right, numeric):
        return left == right
    return type(left) is type(right) and left == right


def to_number(value: Any) -> Optional[float]:
    """Coerce a value to a float, or None when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


class ConditionEvaluator:
    """Evaluates comparison and logical conditions."""

    def __init__(self, resolver: ReferenceResolver):
        self.resolver = resolver

    def evaluate(self, condition: Any) -> bool:
        if isinstance(condition, LogicalCondition):
            return self._evaluate_logical(condition)
        if isinstance(condition, ComparisonCondition):
            return self._evaluate_comparison(condition)
        logger.warning("unknown_condition", condition=repr(condition))
        return False

    def evaluate_all(self, conditions: List[Any]) -> bool:
        """AND of all conditions; an empty list is true."""
        return all(self.evaluate(condition) for condition in conditions)

    def _evaluate_comparison(self, condition: ComparisonCondition) -> bool:
        left = self.resolver.resolve(condition.left)
        right = self.resolver.resolve(condition.right)

        if condition.op == "equals":
            return strict_equals(left, right)
        if condition.op == "notEquals":
            return not strict_equals(left, right)

        left_num, right_num = to_number(left), to_number(right)
        if left_num is None or right_num is None:
            logger.debug("non_numeric_comparison", op=condition.op, left=left, right=right)
            return False
        return _NUMERIC_OPS[condition.op](left_num, right_num)

    def _evaluate_logical(self, condition: LogicalCondition) -> bool:
        children = condition.conditions
        if condition.op == "and":
            return all(self.evaluate(child) for child in children)
        if condition.op == "or":
            return any(self.evaluate(child) for child in children)
        # "not" negates its first condition only
        if not children:
            return False
        return not self.evaluate(children[0])


__all__ = ["ConditionEvaluator", "strict_equals", "to_number"]
