"""
Rule Resolver - Picks the single winning rule for a source question

Responsibilities:
- Index rules by source question (once, at construction)
- Evaluate each candidate rule's conditions with an AND-fold
- Apply the tie-break: earliest created rule wins
- Ignore misconfigured rules and report them as configuration warnings

Design principles:
- Read-only snapshot: rules and questions are indexed once, never mutated
- Deterministic: same answers always produce the same action
- Never raises during evaluation; bad configuration means "no match"
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional

from survey_logic.contracts import LogicActionData, LogicRule, Question
from survey_logic.core.condition_evaluator import evaluate
from survey_logic.core.rule_validator import (
    QuestionCatalog,
    index_questions,
    validate_rule,
    validate_rule_structure,
)

logger = logging.getLogger(__name__)


def _tie_break_key(position: int, rule: LogicRule) -> tuple:
    """
    Sort key: dated rules by timestamp (naive treated as UTC), undated last,
    input position breaks remaining ties.
    """
    created_at = rule.created_at
    if not isinstance(created_at, datetime):
        return (1, 0.0, position)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (0, created_at.timestamp(), position)


class RuleResolver:
    """
    Resolves the winning action for a source question.

    Holds no per-respondent state, so one instance can serve any number of
    concurrent sessions of the same survey.
    """

    def __init__(self, questions: Optional[QuestionCatalog], rules: Iterable[LogicRule]):
        """
        Index the question catalog and rule set.

        Args:
            questions: Survey questions (iterable of Question or dict by id).
                None skips reference checks (structure is still checked).
            rules: Rule snapshot for the survey
        """
        self.questions: Optional[Dict[str, Question]] = (
            index_questions(questions) if questions is not None else None
        )
        self.configuration_warnings: Dict[str, list] = {}
        self._rules_by_source: Dict[str, List[LogicRule]] = {}

        ordered = sorted(enumerate(rules), key=lambda item: _tie_break_key(*item))

        for _, rule in ordered:
            if self.questions is None:
                errors = validate_rule_structure(rule)
            else:
                errors = validate_rule(rule, self.questions)

            if errors:
                self.configuration_warnings[rule.id] = errors
                logger.warning(
                    f"Ignoring misconfigured rule '{rule.id}' on question "
                    f"'{rule.source_question_id}': "
                    + "; ".join(e.message for e in errors)
                )
                continue

            self._rules_by_source.setdefault(rule.source_question_id, []).append(rule)

        active = sum(len(r) for r in self._rules_by_source.values())
        logger.info(
            f"Rule Resolver initialized with {active} active rules "
            f"({len(self.configuration_warnings)} ignored)"
        )

    def rules_for(self, source_question_id: str) -> List[LogicRule]:
        """Active rules for a source question, in tie-break order."""
        return list(self._rules_by_source.get(source_question_id, []))

    def winning_rule(self, source_question_id: str, answers: Mapping) -> Optional[LogicRule]:
        """
        Find the first rule (in tie-break order) whose conditions all hold.

        Args:
            source_question_id: Question just answered
            answers: Answer store

        Returns:
            LogicRule or None if no rule matches
        """
        for rule in self._rules_by_source.get(source_question_id, ()):
            # all() short-circuits on the first false condition
            if all(evaluate(condition, answers) for condition in rule.conditions):
                return rule
        return None

    def resolve(self, source_question_id: str, answers: Mapping) -> Optional[LogicActionData]:
        """
        Resolve the action to apply after answering a question.

        Returns:
            LogicActionData of the winning rule, or None for default advance
        """
        rule = self.winning_rule(source_question_id, answers)
        return rule.action if rule is not None else None


def resolve(
    source_question_id: str,
    rules: Iterable[LogicRule],
    answers: Mapping,
    questions: Optional[QuestionCatalog] = None
) -> Optional[LogicActionData]:
    """
    Functional form of RuleResolver.resolve().

    Without a question catalog only structural problems disqualify a rule;
    pass the catalog whenever it is available so dangling and backward
    references are ignored too.
    """
    return RuleResolver(questions, rules).resolve(source_question_id, answers)
