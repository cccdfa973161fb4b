"""
Result types returned by SurveyNavigator.handle()

These are the ONLY return types from the command handler.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from survey_logic.commands import NavigationState


@dataclass(frozen=True)
class TransitionResult:
    """
    Successful transition.

    Returned by: StartSurvey, SubmitAnswer

    Attributes:
        state: New navigation state (caller persists it)
        next_question_id: Question to render next, None when terminated
        terminated: Whether the survey has ended
        debug: Winning rule id and applied action, if any
    """
    state: NavigationState
    next_question_id: Optional[str]
    terminated: bool
    debug: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class IllegalTransition:
    """
    Command rejected by the navigator (invalid lifecycle transition).

    Examples:
    - SubmitAnswer for a question that is not the current one
    - SubmitAnswer after the survey has terminated

    Attributes:
        reason: Human-readable explanation
        command_type: Name of rejected command type
    """
    reason: str
    command_type: str
