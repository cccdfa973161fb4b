"""
Rule Validator - Authoring-time checks for logic rules

Responsibilities:
- Check the condition/action vocabulary and required fields
- Check referenced question ids exist in the survey's question catalog
- Enforce the forward-only invariant (target order > source order)

Design principles:
- Pure functions: returns findings, never mutates the rule
- Collect all errors, don't stop at the first one
- The same checks decide, at evaluation time, which rules the resolver
  ignores as misconfigured
"""

from typing import Dict, Iterable, List, Mapping, Union

from survey_logic.contracts import (
    ConditionOperator,
    LogicAction,
    LogicRule,
    LogicType,
    Question,
    TARGETED_ACTIONS,
    VALUELESS_OPERATORS,
    ValidationError,
)
from survey_logic.exceptions import RuleValidationError

QuestionCatalog = Union[Mapping[str, Question], Iterable[Question]]

_OPERATORS = frozenset(op.value for op in ConditionOperator)
_ACTIONS = frozenset(a.value for a in LogicAction)
_RULE_TYPES = frozenset(t.value for t in LogicType)


def index_questions(question_catalog: QuestionCatalog) -> Dict[str, Question]:
    """Return the catalog as a dict keyed by question id."""
    if isinstance(question_catalog, Mapping):
        return dict(question_catalog)
    return {q.id: q for q in question_catalog}


def _value(raw):
    return getattr(raw, "value", raw)


def validate_rule(rule: LogicRule, question_catalog: QuestionCatalog) -> List[ValidationError]:
    """
    Validate a rule against the survey's question catalog.

    Args:
        rule: Rule to check
        question_catalog: Questions of the survey, as an iterable of Question
            or a dict keyed by id

    Returns:
        list[ValidationError]: Empty if the rule may be persisted
    """
    questions = index_questions(question_catalog)
    return validate_rule_structure(rule) + _reference_errors(rule, questions)


def validate_rule_structure(rule: LogicRule) -> List[ValidationError]:
    """
    Checks that need no question catalog: vocabulary, required values,
    non-empty conditions, target presence.
    """
    errors = []

    if _value(rule.type) not in _RULE_TYPES:
        errors.append(ValidationError(
            "UNKNOWN_RULE_TYPE",
            f"Rule type '{rule.type}' is not one of {sorted(_RULE_TYPES)}",
            "type",
        ))

    if not rule.conditions:
        errors.append(ValidationError(
            "EMPTY_CONDITIONS",
            "Rule must have at least one condition",
            "conditions",
        ))

    for i, condition in enumerate(rule.conditions):
        operator = _value(condition.operator)
        if operator not in _OPERATORS:
            errors.append(ValidationError(
                "UNKNOWN_OPERATOR",
                f"Condition {i + 1} uses unknown operator '{condition.operator}'",
                f"conditions[{i}].operator",
            ))
        elif operator not in VALUELESS_OPERATORS and condition.value is None:
            errors.append(ValidationError(
                "MISSING_CONDITION_VALUE",
                f"Condition {i + 1} uses {operator} but has no value",
                f"conditions[{i}].value",
            ))

    action = _value(rule.action.action)
    if action not in _ACTIONS:
        errors.append(ValidationError(
            "UNKNOWN_ACTION",
            f"Action '{rule.action.action}' is not one of {sorted(_ACTIONS)}",
            "actions.action",
        ))
    elif action in TARGETED_ACTIONS and not rule.action.target_question_id:
        errors.append(ValidationError(
            "MISSING_TARGET",
            f"Action {action} requires a target question",
            "actions.targetQuestionId",
        ))

    return errors


def _reference_errors(rule: LogicRule, questions: Dict[str, Question]) -> List[ValidationError]:
    errors = []

    source = questions.get(rule.source_question_id)
    if source is None:
        errors.append(ValidationError(
            "UNKNOWN_SOURCE_QUESTION",
            f"Source question '{rule.source_question_id}' does not exist in this survey",
            "sourceQuestionId",
        ))

    for i, condition in enumerate(rule.conditions):
        if condition.question_id not in questions:
            errors.append(ValidationError(
                "UNKNOWN_CONDITION_QUESTION",
                f"Condition {i + 1} references question '{condition.question_id}' "
                f"which does not exist in this survey",
                f"conditions[{i}].questionId",
            ))

    target_id = rule.action.target_question_id
    if _value(rule.action.action) not in TARGETED_ACTIONS or not target_id:
        return errors

    target = questions.get(target_id)
    if target is None:
        errors.append(ValidationError(
            "UNKNOWN_TARGET_QUESTION",
            f"Target question '{target_id}' does not exist in this survey",
            "actions.targetQuestionId",
        ))
    elif source is not None and target.order <= source.order:
        errors.append(ValidationError(
            "BACKWARD_TARGET",
            f"Target question '{target_id}' (order {target.order}) must come after "
            f"source question '{source.id}' (order {source.order})",
            "actions.targetQuestionId",
        ))

    return errors


def ensure_valid_rule(rule: LogicRule, question_catalog: QuestionCatalog) -> LogicRule:
    """
    Validate a rule and raise if it may not be persisted.

    Returns:
        LogicRule: The same rule, for chaining

    Raises:
        RuleValidationError: If validate_rule() reports any error
    """
    errors = validate_rule(rule, question_catalog)
    if errors:
        raise RuleValidationError(rule.id, errors)
    return rule


def validate_rule_set(
    rules: Iterable[LogicRule],
    question_catalog: QuestionCatalog
) -> Dict[str, List[ValidationError]]:
    """
    Validate every rule of a survey.

    Returns:
        dict: rule id -> errors, for rules with at least one error only
    """
    questions = index_questions(question_catalog)
    findings = {}

    for rule in rules:
        errors = validate_rule(rule, questions)
        if errors:
            findings[rule.id] = errors

    return findings
