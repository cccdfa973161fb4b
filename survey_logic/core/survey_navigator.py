"""
Survey Navigator - Navigation state machine for one survey (Functional Core)

Responsibilities:
- Compute the first question of a traversal
- Compute the next position after each submitted answer
- Apply SHOW/HIDE effects to the visibility set
- Terminate early on SKIP_TO_END, or after the last visible question

States:
- ANSWERING(current_question_id)
- TERMINATED (terminal, no further transitions)

Transition, once per submitted answer for the current question:
1. Record the answer
2. Resolve the winning rule for the current question
3. SKIP_TO_END -> TERMINATED
4. SKIP_TO_QUESTION -> target, or the next visible question at or after
   the target's order if the target is hidden
5. SHOW_QUESTION / HIDE_QUESTION -> update visibility, then default advance
6. Default advance -> next visible question by order, else TERMINATED

Design principles:
- Explicit state in/out: NavigationState is threaded through every call
- Configs cached (question index, rule resolver), no session state held
- Forward-only: every rule target has a greater order than its source,
  so a traversal always terminates
- Misconfigured rules degrade to default advance, never block a respondent
"""

import logging
from typing import Any, Iterable, List, Optional, Tuple

from survey_logic.commands import (
    ANSWERING,
    TERMINATED,
    NavigationState,
    StartSurvey,
    SubmitAnswer,
)
from survey_logic.contracts import LogicAction, LogicRule, Question
from survey_logic.core.rule_resolver import RuleResolver
from survey_logic.core.visibility_tracker import VisibilityTracker
from survey_logic.exceptions import InvalidTransitionError, SurveyDefinitionError
from survey_logic.results import IllegalTransition, TransitionResult

logger = logging.getLogger(__name__)


class SurveyNavigator:
    """
    Navigation state machine for a single survey.

    Holds only read-only indexes built at construction. A rule edit is picked
    up by building a new navigator, so one transition never mixes rule sets.
    """

    def __init__(
        self,
        questions: Iterable[Question],
        rules: Iterable[LogicRule] = (),
        survey_id: Optional[str] = None
    ):
        """
        Index questions by order and rules by source question.

        Args:
            questions: Question catalog of the survey
            rules: Rule snapshot for the survey
            survey_id: Survey identifier stamped on new states

        Raises:
            SurveyDefinitionError: If question ids or orders are not unique
        """
        self.survey_id = survey_id
        self.questions: List[Question] = sorted(questions, key=lambda q: q.order)
        self._validate_questions()

        self._by_id = {q.id: q for q in self.questions}
        self.resolver = RuleResolver(self._by_id, rules)

        logger.info(
            f"Survey Navigator initialized for survey {survey_id or '<anonymous>'} "
            f"with {len(self.questions)} questions"
        )

    @property
    def configuration_warnings(self) -> dict:
        """Rules ignored as misconfigured, rule id -> ValidationError list"""
        return self.resolver.configuration_warnings

    # =========================================================================
    # Public API
    # =========================================================================

    def start(self, survey_id: Optional[str] = None) -> NavigationState:
        """
        Begin a traversal.

        Questions flagged hidden_by_default start in the hidden set.

        Returns:
            NavigationState: ANSWERING(first visible question), or TERMINATED
            if no question is visible
        """
        tracker = VisibilityTracker(q.id for q in self.questions if q.hidden_by_default)
        first = self._first_visible(tracker, min_order=None, inclusive=True)

        state = NavigationState(
            survey_id=survey_id if survey_id is not None else self.survey_id,
            status=ANSWERING if first is not None else TERMINATED,
            current_question_id=first,
            answers={},
            hidden=tuple(tracker.snapshot()),
        )

        logger.info(f"Traversal started for survey {state.survey_id}: first question {first}")
        return state

    def submit_answer(self, state: NavigationState, question_id: str, value: Any) -> NavigationState:
        """
        Submit the answer to the current question.

        Pure function of state + input: the given state is not modified.

        Args:
            state: Current navigation state
            question_id: Question being answered (must be current)
            value: Answer value (scalar, list, or None)

        Returns:
            NavigationState: Next position

        Raises:
            InvalidTransitionError: If the survey has terminated or
                question_id is not the current question
        """
        new_state, _ = self._transition(state, question_id, value)
        return new_state

    def is_terminated(self, state: NavigationState) -> bool:
        return state.status == TERMINATED

    def visible_question_ids(self, state: NavigationState) -> List[str]:
        """
        Questions currently visible, in order. Empty once terminated.

        Used by pagination/rendering to decide what to show and what to
        validate as required.
        """
        if self.is_terminated(state):
            return []
        tracker = VisibilityTracker.from_snapshot(state.hidden)
        return tracker.filter_page(q.id for q in self.questions)

    def current_question(self, state: NavigationState) -> Optional[Question]:
        if self.is_terminated(state):
            return None
        return self._by_id.get(state.current_question_id)

    def handle(self, command):
        """
        Command handler.

        Args:
            command: StartSurvey or SubmitAnswer

        Returns:
            TransitionResult or IllegalTransition (never raises for a
            rejected transition)
        """
        if isinstance(command, StartSurvey):
            state = self.start(command.survey_id)
            return self._result(state, debug={})

        if isinstance(command, SubmitAnswer):
            try:
                state, debug = self._transition(command.state, command.question_id, command.value)
            except InvalidTransitionError as e:
                logger.warning(f"Rejected answer for {command.question_id}: {e.reason}")
                return IllegalTransition(reason=e.reason, command_type="SubmitAnswer")
            return self._result(state, debug=debug)

        return IllegalTransition(
            reason=f"Unknown command: {type(command).__name__}",
            command_type=type(command).__name__,
        )

    # =========================================================================
    # Transition
    # =========================================================================

    def _transition(self, state: NavigationState, question_id: str, value: Any) -> Tuple[NavigationState, dict]:
        current = self._check_submission(state, question_id)

        answers = dict(state.answers)
        answers[question_id] = value

        tracker = VisibilityTracker.from_snapshot(state.hidden)
        rule = self.resolver.winning_rule(question_id, answers)
        action = rule.action if rule is not None else None

        debug = {'rule_id': None, 'action': None}
        if rule is not None:
            debug['rule_id'] = rule.id
            debug['action'] = getattr(action.action, 'value', action.action)

        if action is not None and action.action == LogicAction.SKIP_TO_END:
            next_id = None

        elif action is not None and action.action == LogicAction.SKIP_TO_QUESTION:
            next_id = self._skip_target(action.target_question_id, current, tracker)

        else:
            # SHOW/HIDE only toggle a later question, then advance normally
            tracker.apply(action)
            next_id = self._first_visible(tracker, min_order=current.order, inclusive=False)

        new_state = NavigationState(
            survey_id=state.survey_id,
            status=ANSWERING if next_id is not None else TERMINATED,
            current_question_id=next_id,
            answers=answers,
            hidden=tuple(tracker.snapshot()),
            turn_count=state.turn_count + 1,
            path=state.path + (question_id,),
        )

        if next_id is None:
            logger.info(f"Survey {state.survey_id} terminated after question {question_id}")
        else:
            logger.debug(f"Question {question_id} answered, next question {next_id}")

        return new_state, debug

    def _check_submission(self, state: NavigationState, question_id: str) -> Question:
        """
        Reject submissions that break the caller contract.

        Returns:
            Question: The current question

        Raises:
            InvalidTransitionError
        """
        if state.status == TERMINATED:
            raise InvalidTransitionError("Survey has already terminated", question_id)

        if state.status != ANSWERING:
            raise InvalidTransitionError(f"Unknown navigation status: {state.status!r}", question_id)

        if self.survey_id is not None and state.survey_id != self.survey_id:
            raise InvalidTransitionError(
                f"State belongs to survey {state.survey_id}, not {self.survey_id}",
                question_id
            )

        if question_id != state.current_question_id:
            raise InvalidTransitionError(
                f"Question {question_id} is not the current question "
                f"(expected {state.current_question_id})",
                question_id
            )

        current = self._by_id.get(question_id)
        if current is None:
            raise InvalidTransitionError(f"Question {question_id} is not part of this survey", question_id)

        return current

    def _skip_target(self, target_id: str, current: Question, tracker: VisibilityTracker) -> Optional[str]:
        """
        Resolve a SKIP_TO_QUESTION target.

        A hidden target reroutes to the next visible question at or after
        its order. A dangling target falls back to default advance.
        """
        target = self._by_id.get(target_id)
        if target is None or target.order <= current.order:
            logger.warning(f"Ignoring invalid skip target {target_id} from {current.id}")
            return self._first_visible(tracker, min_order=current.order, inclusive=False)

        if tracker.is_visible(target.id):
            return target.id

        return self._first_visible(tracker, min_order=target.order, inclusive=True)

    def _first_visible(self, tracker: VisibilityTracker, min_order: Optional[int], inclusive: bool) -> Optional[str]:
        """
        First visible question whose order is after (or at, when inclusive)
        min_order. None min_order means from the start.
        """
        for question in self.questions:
            if min_order is not None:
                if inclusive and question.order < min_order:
                    continue
                if not inclusive and question.order <= min_order:
                    continue
            if tracker.is_visible(question.id):
                return question.id
        return None

    def _result(self, state: NavigationState, debug: dict) -> TransitionResult:
        return TransitionResult(
            state=state,
            next_question_id=state.current_question_id,
            terminated=self.is_terminated(state),
            debug=debug,
        )

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate_questions(self):
        """
        Check question ids and orders are unique.

        Raises:
            SurveyDefinitionError: If validation fails
        """
        errors = []
        seen_ids = set()
        seen_orders = {}

        for question in self.questions:
            if question.id in seen_ids:
                errors.append(f"Duplicate question id '{question.id}'")
            seen_ids.add(question.id)

            if question.order in seen_orders:
                errors.append(
                    f"Questions '{seen_orders[question.order]}' and '{question.id}' "
                    f"share order {question.order}"
                )
            else:
                seen_orders[question.order] = question.id

        if errors:
            raise SurveyDefinitionError("Question catalog validation failed:\n  - " + "\n  - ".join(errors))
