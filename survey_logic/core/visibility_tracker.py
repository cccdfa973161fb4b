"""
Visibility Tracker - Accumulates SHOW/HIDE effects over one traversal

Effects are applied the moment their source question is answered and
persist for the rest of the traversal. Nothing is re-evaluated
retroactively. Hidden questions are exempt from required-answer
validation and are dropped from any page that groups questions.
"""

import logging
from typing import Iterable, List, Optional

from survey_logic.contracts import LogicAction, LogicActionData

logger = logging.getLogger(__name__)


class VisibilityTracker:
    """Set of suppressed question ids for a single respondent session"""

    def __init__(self, hidden: Optional[Iterable[str]] = None):
        self.hidden = set(hidden or ())

    def apply_show(self, question_id: str) -> None:
        self.hidden.discard(question_id)

    def apply_hide(self, question_id: str) -> None:
        self.hidden.add(question_id)

    def apply(self, action: Optional[LogicActionData]) -> bool:
        """
        Apply a SHOW_QUESTION / HIDE_QUESTION action.

        Returns:
            bool: True if the action changed visibility, False for any
            other action (or a missing target)
        """
        if action is None or not action.target_question_id:
            return False

        if action.action == LogicAction.SHOW_QUESTION:
            self.apply_show(action.target_question_id)
            logger.debug(f"Showing question {action.target_question_id}")
            return True

        if action.action == LogicAction.HIDE_QUESTION:
            self.apply_hide(action.target_question_id)
            logger.debug(f"Hiding question {action.target_question_id}")
            return True

        return False

    def is_visible(self, question_id: str) -> bool:
        return question_id not in self.hidden

    def filter_page(self, question_ids: Iterable[str]) -> List[str]:
        """Drop hidden questions from a page/step, preserving order."""
        return [q_id for q_id in question_ids if self.is_visible(q_id)]

    def required_question_ids(self, required_ids: Iterable[str]) -> List[str]:
        """Required questions that must actually be enforced (visible only)."""
        return self.filter_page(required_ids)

    # ========================
    # Serialization
    # ========================

    def snapshot(self) -> List[str]:
        """Sorted list of hidden ids (JSON-safe, deterministic)"""
        return sorted(self.hidden)

    @classmethod
    def from_snapshot(cls, hidden: Iterable[str]) -> "VisibilityTracker":
        return cls(hidden)
