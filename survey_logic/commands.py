"""
Navigation state and command types for SurveyNavigator.

NavigationState is the explicit, serializable "current position" of one
respondent session. It is threaded through every call instead of being
held by the navigator, so sessions are independent and resumable.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple
import copy

ANSWERING = "ANSWERING"
TERMINATED = "TERMINATED"


@dataclass(frozen=True)
class NavigationState:
    """
    Immutable snapshot of a respondent's traversal.

    Rules:
    - Never mutated; every transition returns a new instance
    - TERMINATED is terminal (current_question_id is None)
    - Serializable to/from JSON

    Attributes:
        survey_id: Survey being answered (None for anonymous previews)
        status: ANSWERING or TERMINATED
        current_question_id: Question awaiting an answer, None once terminated
        answers: Read-only answer store, question id -> submitted value.
            List answers inside it must not be mutated either.
        hidden: Sorted ids currently suppressed from display/validation
        turn_count: Number of answers submitted so far
        path: Question ids answered so far, in submission order
    """
    survey_id: Optional[str]
    status: str
    current_question_id: Optional[str]
    # Left out of hash(): answer values may be lists
    answers: Mapping[str, Any] = field(default_factory=dict, hash=False)
    hidden: Tuple[str, ...] = ()
    turn_count: int = 0
    path: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'answers', MappingProxyType(dict(self.answers)))

    @property
    def is_terminated(self) -> bool:
        return self.status == TERMINATED

    def to_json(self) -> dict:
        """
        Serialize to JSON-safe dict (deep copy).

        Returns:
            dict: camelCase keys, lists instead of tuples
        """
        return {
            'surveyId': self.survey_id,
            'status': self.status,
            'currentQuestionId': self.current_question_id,
            'answers': copy.deepcopy(dict(self.answers)),
            'hidden': list(self.hidden),
            'turnCount': self.turn_count,
            'path': list(self.path),
        }

    @staticmethod
    def from_json(data: dict) -> "NavigationState":
        """
        Deserialize from JSON dict.

        Deep copies so no external reference can mutate the state.

        Raises:
            ValueError: If status is unknown, turnCount negative, or a field
                has the wrong shape
            KeyError: If status is missing
        """
        status = data['status']
        if status not in (ANSWERING, TERMINATED):
            raise ValueError(f"Unknown navigation status: {status!r}")

        turn_count = int(data.get('turnCount', 0))
        if turn_count < 0:
            raise ValueError("turnCount must not be negative")

        survey_id = data.get('surveyId')
        if survey_id is not None and not isinstance(survey_id, str):
            raise ValueError("surveyId must be a string")

        current_question_id = None
        if status == ANSWERING:
            current_question_id = data.get('currentQuestionId')
            if not isinstance(current_question_id, str):
                raise ValueError("currentQuestionId must be a string while ANSWERING")

        answers = data.get('answers', {})
        if not isinstance(answers, dict) or not all(isinstance(k, str) for k in answers):
            raise ValueError("answers must be an object keyed by question id")

        return NavigationState(
            survey_id=survey_id,
            status=status,
            current_question_id=current_question_id,
            answers=copy.deepcopy(answers),
            hidden=tuple(sorted(_id_list(data, 'hidden'))),
            turn_count=turn_count,
            path=tuple(_id_list(data, 'path')),
        )


def _id_list(data: dict, key: str) -> list:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{key} must be a list of question ids")
    return value


# Command types

@dataclass(frozen=True)
class StartSurvey:
    """
    Begin a new traversal.

    Returns: TransitionResult positioned on the first visible question.
    """
    survey_id: Optional[str] = None


@dataclass(frozen=True)
class SubmitAnswer:
    """
    Submit the answer for the current question.

    Returns: TransitionResult with the next position, or IllegalTransition
    when question_id is not the current question or the survey has ended.
    """
    state: NavigationState
    question_id: str
    value: Any


# Command union type for type hints
Command = StartSurvey | SubmitAnswer
