"""
Semantic contracts for the survey navigation logic engine.

This module defines immutable data structures shared by the evaluator,
resolver, validator and navigator. They define shape and semantics only;
enforcement lives in the rule validator.

Design principles:
- Frozen dataclasses (immutable after creation)
- No validation logic (contracts, not validators)
- No dependencies on other modules
- Unknown operator/action strings are kept verbatim so the validator can
  report them and the evaluator can treat them as non-matching

Contents:
- ConditionOperator, LogicAction, LogicType: string enums of the rule vocabulary
- Question: catalog entry (id + sequential order)
- LogicCondition, LogicActionData, LogicRule: the rule model
- ValidationError: authoring-time finding returned by validate_rule()

Usage:
    from survey_logic.contracts import LogicRule, LogicCondition, ConditionOperator
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple


class ConditionOperator(str, Enum):
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    CONTAINS = "CONTAINS"
    NOT_CONTAINS = "NOT_CONTAINS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    IS_ANSWERED = "IS_ANSWERED"
    IS_NOT_ANSWERED = "IS_NOT_ANSWERED"


class LogicAction(str, Enum):
    SKIP_TO_QUESTION = "SKIP_TO_QUESTION"
    SKIP_TO_END = "SKIP_TO_END"
    SHOW_QUESTION = "SHOW_QUESTION"
    HIDE_QUESTION = "HIDE_QUESTION"


class LogicType(str, Enum):
    """Rule classification. Does not change evaluation mechanics."""
    SKIP_LOGIC = "SKIP_LOGIC"
    BRANCHING = "BRANCHING"
    DISPLAY_LOGIC = "DISPLAY_LOGIC"


# Operators that ignore condition.value
VALUELESS_OPERATORS = frozenset({
    ConditionOperator.IS_ANSWERED.value,
    ConditionOperator.IS_NOT_ANSWERED.value,
})

# Actions that must carry a target question
TARGETED_ACTIONS = frozenset({
    LogicAction.SKIP_TO_QUESTION.value,
    LogicAction.SHOW_QUESTION.value,
    LogicAction.HIDE_QUESTION.value,
})


def _enum_value(raw: Any) -> Any:
    """Collapse enum members to their string value, pass anything else through."""
    if isinstance(raw, Enum):
        return raw.value
    return raw


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present key (camelCase or snake_case record shapes)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _require(data: dict, *keys: str) -> str:
    value = _pick(data, *keys)
    if value is None:
        raise KeyError(keys[0])
    return str(value)


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if raw is None or isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        # datetime.fromisoformat() rejects a trailing 'Z' before Python 3.11
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text)
    raise ValueError(f"Unsupported createdAt value: {raw!r}")


@dataclass(frozen=True)
class Question:
    """
    Question catalog entry.

    The engine only needs the identifier and the sequential position. Orders
    are unique within a survey; the survey store enforces that at load time.

    Attributes:
        id: Question identifier
        order: Default sequential position
        hidden_by_default: Seeds the hidden set at the start of a traversal
            (a SHOW_QUESTION rule can reveal it)
        text: Question text, used only by the console harness
    """
    id: str
    order: int
    hidden_by_default: bool = False
    text: Optional[str] = None

    @staticmethod
    def from_dict(data: dict) -> "Question":
        return Question(
            id=str(data["id"]),
            order=int(data["order"]),
            hidden_by_default=bool(_pick(data, "hiddenByDefault", "hidden_by_default", default=False)),
            text=data.get("text"),
        )

    def to_dict(self) -> dict:
        result = {"id": self.id, "order": self.order}
        if self.hidden_by_default:
            result["hiddenByDefault"] = True
        if self.text is not None:
            result["text"] = self.text
        return result


@dataclass(frozen=True)
class LogicCondition:
    """
    Single comparison between a question's answer and a literal value.

    Attributes:
        question_id: Question whose answer is tested. Usually the rule's
            source question, but any prior question is allowed.
        operator: ConditionOperator value (kept as a plain string if unknown)
        value: Literal compared against the answer. Ignored for
            IS_ANSWERED / IS_NOT_ANSWERED.
    """
    question_id: str
    operator: str
    value: Any = None

    @staticmethod
    def from_dict(data: dict) -> "LogicCondition":
        return LogicCondition(
            question_id=_require(data, "questionId", "question_id"),
            operator=_enum_value(data.get("operator")),
            value=data.get("value"),
        )

    def to_dict(self) -> dict:
        result = {"questionId": self.question_id, "operator": _enum_value(self.operator)}
        if self.value is not None:
            result["value"] = self.value
        return result


@dataclass(frozen=True)
class LogicActionData:
    """
    Effect applied when every condition of a rule holds.

    target_question_id is required for SKIP_TO_QUESTION, SHOW_QUESTION and
    HIDE_QUESTION and must point strictly forward in order.
    """
    action: str
    target_question_id: Optional[str] = None

    @staticmethod
    def from_dict(data: dict, fallback_target: Optional[str] = None) -> "LogicActionData":
        target = _pick(data, "targetQuestionId", "target_question_id", default=None)
        if target is None:
            target = fallback_target
        return LogicActionData(
            action=_enum_value(_pick(data, "action", "type")),
            target_question_id=str(target) if target is not None else None,
        )

    def to_dict(self) -> dict:
        result = {"action": _enum_value(self.action)}
        if self.target_question_id is not None:
            result["targetQuestionId"] = self.target_question_id
        return result


@dataclass(frozen=True)
class LogicRule:
    """
    Declarative navigation rule attached to a source question.

    Conditions are conjunctive: the rule fires only if all of them hold.
    Rules are never edited in place; replacement is delete + recreate.

    Attributes:
        id: Rule identifier
        source_question_id: Question whose submission triggers evaluation
        type: LogicType value (classification only)
        conditions: Tuple of LogicCondition, never empty for a valid rule
        action: LogicActionData applied when the rule wins
        created_at: Creation timestamp, earliest wins on conflicts.
            None sorts after every dated rule.
    """
    id: str
    source_question_id: str
    type: str
    conditions: Tuple[LogicCondition, ...]
    action: LogicActionData
    created_at: Optional[datetime] = None

    @staticmethod
    def from_dict(data: dict) -> "LogicRule":
        """
        Build a rule from a stored record.

        Accepts both the persisted camelCase shape:

            {"id": "r1", "sourceQuestionId": "q1", "type": "SKIP_LOGIC",
             "conditions": [{"questionId": "q1", "operator": "EQUALS", "value": "No"}],
             "actions": {"action": "SKIP_TO_QUESTION", "targetQuestionId": "q3"},
             "createdAt": "2025-11-20T04:27:06Z"}

        and the snake_case equivalent. A legacy top-level targetQuestionId
        is used when the action record carries none.

        Raises:
            KeyError: If id or source question is missing
            ValueError: If createdAt cannot be parsed
        """
        action_data = _pick(data, "actions", "action", default={}) or {}
        if isinstance(action_data, list):
            # Older records stored a one-element action list
            action_data = action_data[0] if action_data else {}
        legacy_target = _pick(data, "targetQuestionId", "target_question_id", default=None)
        conditions = tuple(
            LogicCondition.from_dict(c) for c in (data.get("conditions") or [])
        )
        return LogicRule(
            id=str(data["id"]),
            source_question_id=_require(data, "sourceQuestionId", "source_question_id"),
            type=_enum_value(data.get("type", LogicType.SKIP_LOGIC.value)),
            conditions=conditions,
            action=LogicActionData.from_dict(action_data, fallback_target=legacy_target),
            created_at=_parse_timestamp(_pick(data, "createdAt", "created_at", default=None)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sourceQuestionId": self.source_question_id,
            "type": _enum_value(self.type),
            "conditions": [c.to_dict() for c in self.conditions],
            "actions": self.action.to_dict(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class ValidationError:
    """
    Authoring-time finding for a rule.

    Attributes:
        code: Stable machine-readable code (e.g. 'BACKWARD_TARGET')
        message: Human-readable explanation for the author
        field: Record path the finding refers to (e.g. 'conditions[0].questionId')
    """
    code: str
    message: str
    field: Optional[str] = None

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "field": self.field}
