"""
Condition Evaluator - Tests one logic condition against the answer store

Responsibilities:
- Decide whether a question counts as answered
- Evaluate the eight condition operators against a respondent's answers

Design principles:
- Pure functions: no side effects, no state
- Deterministic: same input always produces same output
- Total: never raises; malformed input evaluates to False
- Missing answers fail every operator except IS_NOT_ANSWERED

Multi-select answers (lists) are tested by membership: EQUALS means "the
value is one of the selected options", the same as CONTAINS.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from survey_logic.contracts import ConditionOperator, LogicCondition

logger = logging.getLogger(__name__)

_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def is_answered(value: Any) -> bool:
    """
    Check whether an answer value counts as answered.

    None, empty string and empty list/tuple/set are unanswered.
    Anything else (including 0 and False) is answered.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, _SEQUENCE_TYPES):
        return len(value) > 0
    return True


def evaluate(condition: LogicCondition, answers: Mapping) -> bool:
    """
    Evaluate a single condition against the answer store.

    Args:
        condition: Condition to test
        answers: Mapping of question id -> answer (scalar, list, or absent)

    Returns:
        bool: True if the condition holds. Malformed input returns False.
    """
    if not isinstance(answers, Mapping):
        return False

    try:
        question_id = condition.question_id
        operator = condition.operator
        expected = condition.value
    except AttributeError:
        return False

    operator = getattr(operator, "value", operator)
    if not isinstance(operator, str):
        return False

    try:
        answer = answers.get(question_id)
    except TypeError:
        # Unhashable question id
        return False
    answered = is_answered(answer)

    if operator == ConditionOperator.IS_ANSWERED:
        return answered

    if operator == ConditionOperator.IS_NOT_ANSWERED:
        return not answered

    if operator not in _COMPARISONS:
        logger.warning(f"Unknown condition operator: {operator!r}")
        return False

    # Every comparison fails on an unanswered question
    if not answered:
        return False

    return _COMPARISONS[operator](answer, expected)


# =============================================================================
# Comparison operators (answer is known to be answered)
# =============================================================================

def _equals(answer: Any, expected: Any) -> bool:
    if isinstance(answer, _SEQUENCE_TYPES):
        if isinstance(expected, _SEQUENCE_TYPES):
            return _same_selection(answer, expected)
        return _member(answer, expected)
    return answer == expected


def _same_selection(answer: Any, expected: Any) -> bool:
    """Whole-selection equality. Sets have no order, so compare by membership."""
    if isinstance(answer, (set, frozenset)) or isinstance(expected, (set, frozenset)):
        return (all(_member(expected, item) for item in answer)
                and all(_member(answer, item) for item in expected))
    return list(answer) == list(expected)


def _not_equals(answer: Any, expected: Any) -> bool:
    return not _equals(answer, expected)


def _contains(answer: Any, expected: Any) -> Optional[bool]:
    """
    Membership for list answers, substring for string/number answers.

    Returns None when the answer shape has no containment semantics.
    """
    if isinstance(answer, _SEQUENCE_TYPES):
        if isinstance(expected, _SEQUENCE_TYPES):
            return any(_member(answer, item) for item in expected)
        return _member(answer, expected)

    if isinstance(answer, (str, int, float)) and not isinstance(answer, bool):
        if expected is None:
            return None
        return str(expected) in str(answer)

    return None


def _contains_op(answer: Any, expected: Any) -> bool:
    return _contains(answer, expected) is True


def _not_contains_op(answer: Any, expected: Any) -> bool:
    return _contains(answer, expected) is False


def _member(collection: Any, item: Any) -> bool:
    try:
        return item in collection
    except TypeError:
        # Unhashable item tested against a set
        return any(element == item for element in collection)


def _to_number(value: Any) -> Optional[float]:
    """Coerce to float. Booleans and non-scalars are not numeric."""
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _greater_than(answer: Any, expected: Any) -> bool:
    left, right = _to_number(answer), _to_number(expected)
    if left is None or right is None:
        return False
    return left > right


def _less_than(answer: Any, expected: Any) -> bool:
    left, right = _to_number(answer), _to_number(expected)
    if left is None or right is None:
        return False
    return left < right


_COMPARISONS = {
    ConditionOperator.EQUALS.value: _equals,
    ConditionOperator.NOT_EQUALS.value: _not_equals,
    ConditionOperator.CONTAINS.value: _contains_op,
    ConditionOperator.NOT_CONTAINS.value: _not_contains_op,
    ConditionOperator.GREATER_THAN.value: _greater_than,
    ConditionOperator.LESS_THAN.value: _less_than,
}
