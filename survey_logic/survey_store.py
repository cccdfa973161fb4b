"""
File-backed survey definition store.

Serves the question catalog and the rule snapshot for a survey from one
JSON file per survey:

    data/surveys/
        customer-feedback.json
        ...

File shape:
    {
        "surveyId": "customer-feedback",
        "questions": [{"id": "q1", "order": 1, "text": "...", "hiddenByDefault": false}],
        "rules": [{"id": "r1", "sourceQuestionId": "q1", "type": "SKIP_LOGIC",
                   "conditions": [...], "actions": {...}, "createdAt": "..."}]
    }

Rules are re-read on every call, so each traversal starts from a
consistent snapshot of whatever is on disk at that moment.
"""

import json
import logging
from pathlib import Path
from typing import List, Tuple

from survey_logic.contracts import LogicRule, Question
from survey_logic.exceptions import SurveyDefinitionError

logger = logging.getLogger(__name__)


class JsonSurveyStore:
    """Question Catalog + Rule Store backed by JSON definition files"""

    def __init__(self, data_dir: str = "data/surveys"):
        """
        Args:
            data_dir: Directory containing <survey_id>.json files

        Raises:
            FileNotFoundError: If data_dir doesn't exist
        """
        self.data_dir = Path(data_dir)

        if not self.data_dir.is_dir():
            raise FileNotFoundError(f"Survey directory not found: {data_dir}")

        logger.info(f"JsonSurveyStore initialized: {self.data_dir}")

    def survey_exists(self, survey_id: str) -> bool:
        return self._path_for(survey_id).exists()

    def list_survey_ids(self) -> List[str]:
        return sorted(p.stem for p in self.data_dir.glob("*.json"))

    def load_survey(self, survey_id: str) -> Tuple[List[Question], List[LogicRule]]:
        """
        Load questions and rules from a single read of the definition file,
        so one transition never mixes two versions of a survey.

        Raises:
            FileNotFoundError: If the survey doesn't exist
            SurveyDefinitionError: If the file is malformed
        """
        definition = self._load(survey_id)
        return (
            self._parse_questions(survey_id, definition),
            self._parse_rules(survey_id, definition),
        )

    def get_questions_for_survey(self, survey_id: str) -> List[Question]:
        """
        Load the question catalog, sorted by order.

        Raises:
            FileNotFoundError: If the survey doesn't exist
            SurveyDefinitionError: If the file is malformed
        """
        definition = self._load(survey_id)
        return self._parse_questions(survey_id, definition)

    def get_rules_for_survey(self, survey_id: str) -> List[LogicRule]:
        """
        Load the rule snapshot for a survey.

        Raises:
            FileNotFoundError: If the survey doesn't exist
            SurveyDefinitionError: If the file is malformed

        Malformed rule records are skipped with a warning.
        """
        definition = self._load(survey_id)
        return self._parse_rules(survey_id, definition)

    # ========================
    # Private Helpers
    # ========================

    def _path_for(self, survey_id: str) -> Path:
        # Reject path components so survey ids can't escape data_dir
        if not survey_id or Path(survey_id).name != survey_id or survey_id.startswith("."):
            raise SurveyDefinitionError(f"Invalid survey id: {survey_id!r}")
        return self.data_dir / f"{survey_id}.json"

    def _load(self, survey_id: str) -> dict:
        path = self._path_for(survey_id)

        if not path.exists():
            raise FileNotFoundError(f"Survey not found: {survey_id}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                definition = json.load(f)
        except json.JSONDecodeError as e:
            raise SurveyDefinitionError(f"Survey {survey_id} is not valid JSON: {e}") from e

        if not isinstance(definition, dict):
            raise SurveyDefinitionError(f"Survey {survey_id} must be a JSON object")

        return definition

    def _parse_questions(self, survey_id: str, definition: dict) -> List[Question]:
        raw_questions = definition.get("questions")
        if not isinstance(raw_questions, list):
            raise SurveyDefinitionError(f"Survey {survey_id} missing 'questions' list")

        errors = []
        questions = []
        seen_ids = set()
        seen_orders = set()

        for i, raw in enumerate(raw_questions):
            try:
                question = Question.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                errors.append(f"Question at index {i} is malformed: {e!r}")
                continue

            if question.id in seen_ids:
                errors.append(f"Duplicate question id '{question.id}'")
            if question.order in seen_orders:
                errors.append(f"Duplicate question order {question.order} ('{question.id}')")

            seen_ids.add(question.id)
            seen_orders.add(question.order)
            questions.append(question)

        if errors:
            raise SurveyDefinitionError(
                f"Survey {survey_id} validation failed:\n  - " + "\n  - ".join(errors)
            )

        return sorted(questions, key=lambda q: q.order)

    def _parse_rules(self, survey_id: str, definition: dict) -> List[LogicRule]:
        rules = []

        for i, raw in enumerate(definition.get("rules") or []):
            try:
                rules.append(LogicRule.from_dict(raw))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                # An unreadable rule must not block respondents, drop it
                logger.warning(f"Survey {survey_id}: skipping malformed rule at index {i}: {e!r}")

        logger.debug(f"Loaded {len(rules)} rules for survey {survey_id}")
        return rules
