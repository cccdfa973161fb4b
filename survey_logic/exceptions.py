"""
Exception types for the survey navigation logic engine.

Evaluation-time anomalies never raise (they degrade to "rule does not match"
or default advance). Exceptions here cover caller-contract violations and
authoring/definition problems only.
"""


class SurveyLogicError(Exception):
    """Base class for all survey logic errors"""
    pass


class InvalidTransitionError(SurveyLogicError, ValueError):
    """
    Answer submitted for a question that is not current, or after termination.

    Attributes:
        reason: Human-readable explanation
        question_id: Question the caller tried to answer
    """

    def __init__(self, reason: str, question_id: str = None):
        super().__init__(reason)
        self.reason = reason
        self.question_id = question_id


class RuleValidationError(SurveyLogicError, ValueError):
    """
    Rule rejected at authoring time.

    Attributes:
        rule_id: Identifier of the rejected rule
        errors: List of ValidationError findings
    """

    def __init__(self, rule_id: str, errors: list):
        self.rule_id = rule_id
        self.errors = list(errors)
        details = "\n  - ".join(e.message for e in self.errors)
        super().__init__(f"Rule '{rule_id}' failed validation:\n  - {details}")


class SurveyDefinitionError(SurveyLogicError, ValueError):
    """Survey definition file is malformed (raised at load time)"""
    pass
