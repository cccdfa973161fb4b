"""
Test Suite for the Condition Evaluator

Run with: pytest tests/test_condition_evaluator.py
"""

import unittest

from survey_logic.contracts import ConditionOperator, LogicCondition
from survey_logic.core.condition_evaluator import evaluate, is_answered


def cond(operator, value=None, question_id="q1"):
    return LogicCondition(question_id=question_id, operator=operator, value=value)


# =============================================================================
# PART 1: Answered detection
# =============================================================================

class TestIsAnswered(unittest.TestCase):
    """Absent, None, empty string and empty list count as unanswered."""

    def test_none_is_unanswered(self):
        self.assertFalse(is_answered(None))

    def test_empty_string_is_unanswered(self):
        self.assertFalse(is_answered(""))

    def test_empty_list_is_unanswered(self):
        self.assertFalse(is_answered([]))

    def test_zero_is_answered(self):
        self.assertTrue(is_answered(0))

    def test_false_is_answered(self):
        self.assertTrue(is_answered(False))

    def test_whitespace_is_answered(self):
        self.assertTrue(is_answered(" "))

    def test_is_answered_operator(self):
        self.assertTrue(evaluate(cond(ConditionOperator.IS_ANSWERED), {"q1": "x"}))
        self.assertFalse(evaluate(cond(ConditionOperator.IS_ANSWERED), {}))
        self.assertFalse(evaluate(cond(ConditionOperator.IS_ANSWERED), {"q1": []}))

    def test_is_not_answered_operator(self):
        self.assertTrue(evaluate(cond(ConditionOperator.IS_NOT_ANSWERED), {}))
        self.assertTrue(evaluate(cond(ConditionOperator.IS_NOT_ANSWERED), {"q1": ""}))
        self.assertFalse(evaluate(cond(ConditionOperator.IS_NOT_ANSWERED), {"q1": 0}))

    def test_answered_operators_are_negations(self):
        """IS_ANSWERED is always the negation of IS_NOT_ANSWERED."""
        samples = [
            {}, {"q1": None}, {"q1": ""}, {"q1": []}, {"q1": "a"},
            {"q1": 0}, {"q1": ["a"]}, {"q1": {"k": 1}}, {"other": "a"},
        ]
        for answers in samples:
            with self.subTest(answers=answers):
                self.assertEqual(
                    evaluate(cond(ConditionOperator.IS_ANSWERED), answers),
                    not evaluate(cond(ConditionOperator.IS_NOT_ANSWERED), answers),
                )

    def test_answered_operators_ignore_value(self):
        self.assertTrue(evaluate(cond(ConditionOperator.IS_ANSWERED, value="ignored"), {"q1": "x"}))


# =============================================================================
# PART 2: Equality
# =============================================================================

class TestEquality(unittest.TestCase):

    def test_equals_string_match(self):
        self.assertTrue(evaluate(cond("EQUALS", "Yes"), {"q1": "Yes"}))

    def test_equals_is_case_sensitive(self):
        self.assertFalse(evaluate(cond("EQUALS", "Yes"), {"q1": "yes"}))

    def test_equals_number(self):
        self.assertTrue(evaluate(cond("EQUALS", 5), {"q1": 5}))

    def test_equals_multi_select_means_selected(self):
        """Multi-select EQUALS matches when the value is one of the selections."""
        self.assertTrue(evaluate(cond("EQUALS", "B"), {"q1": ["A", "B"]}))
        self.assertFalse(evaluate(cond("EQUALS", "C"), {"q1": ["A", "B"]}))

    def test_equals_list_value_against_whole_selection(self):
        self.assertTrue(evaluate(cond("EQUALS", ["A", "B"]), {"q1": ["A", "B"]}))

    def test_equals_set_selection_ignores_order(self):
        """Set iteration order varies with the hash seed; equality must not."""
        many = [f"opt{i}" for i in range(20)]
        self.assertTrue(evaluate(cond("EQUALS", list(reversed(many))), {"q1": frozenset(many)}))
        self.assertTrue(evaluate(cond("EQUALS", set(many)), {"q1": many}))
        self.assertFalse(evaluate(cond("EQUALS", many[:-1]), {"q1": set(many)}))
        self.assertTrue(evaluate(cond("NOT_EQUALS", ["A", "C"]), {"q1": {"A", "B"}}))

    def test_equals_unanswered_is_false(self):
        self.assertFalse(evaluate(cond("EQUALS", "Yes"), {}))

    def test_not_equals_different_value(self):
        self.assertTrue(evaluate(cond("NOT_EQUALS", "Yes"), {"q1": "No"}))

    def test_not_equals_same_value(self):
        self.assertFalse(evaluate(cond("NOT_EQUALS", "Yes"), {"q1": "Yes"}))

    def test_not_equals_unanswered_is_false(self):
        """Unlike a plain != check, a missing answer never satisfies NOT_EQUALS."""
        self.assertFalse(evaluate(cond("NOT_EQUALS", "Yes"), {}))
        self.assertFalse(evaluate(cond("NOT_EQUALS", "Yes"), {"q1": None}))

    def test_not_equals_multi_select(self):
        self.assertFalse(evaluate(cond("NOT_EQUALS", "A"), {"q1": ["A", "B"]}))
        self.assertTrue(evaluate(cond("NOT_EQUALS", "C"), {"q1": ["A", "B"]}))


# =============================================================================
# PART 3: Containment
# =============================================================================

class TestContainment(unittest.TestCase):

    def test_contains_list_membership(self):
        self.assertTrue(evaluate(cond("CONTAINS", "Exports"), {"q1": ["Reports", "Exports"]}))

    def test_contains_list_non_member(self):
        self.assertFalse(evaluate(cond("CONTAINS", "Export"), {"q1": ["Reports", "Exports"]}))

    def test_contains_list_value_any_selected(self):
        self.assertTrue(evaluate(cond("CONTAINS", ["Option A", "Option B"]), {"q1": ["Option B"]}))
        self.assertFalse(evaluate(cond("CONTAINS", ["Option A", "Option B"]), {"q1": ["Option C"]}))

    def test_contains_substring(self):
        self.assertTrue(evaluate(cond("CONTAINS", "slow"), {"q1": "The app is slow at times"}))

    def test_contains_substring_case_sensitive(self):
        self.assertFalse(evaluate(cond("CONTAINS", "Slow"), {"q1": "The app is slow"}))

    def test_contains_coerces_value_to_string(self):
        self.assertTrue(evaluate(cond("CONTAINS", 42), {"q1": "answer 42"}))

    def test_contains_number_answer(self):
        self.assertTrue(evaluate(cond("CONTAINS", "2"), {"q1": 123}))

    def test_not_contains_string(self):
        self.assertTrue(evaluate(cond("NOT_CONTAINS", "fast"), {"q1": "The app is slow"}))
        self.assertFalse(evaluate(cond("NOT_CONTAINS", "slow"), {"q1": "The app is slow"}))

    def test_not_contains_list(self):
        self.assertTrue(evaluate(cond("NOT_CONTAINS", "C"), {"q1": ["A", "B"]}))

    def test_containment_unanswered_is_false(self):
        self.assertFalse(evaluate(cond("CONTAINS", "a"), {}))
        self.assertFalse(evaluate(cond("NOT_CONTAINS", "a"), {}))

    def test_containment_on_mapping_answer_is_false(self):
        """Answer shapes without containment semantics fail both operators."""
        answers = {"q1": {"row1": "A"}}
        self.assertFalse(evaluate(cond("CONTAINS", "A"), answers))
        self.assertFalse(evaluate(cond("NOT_CONTAINS", "A"), answers))


# =============================================================================
# PART 4: Numeric comparison
# =============================================================================

class TestNumericComparison(unittest.TestCase):

    def test_greater_than(self):
        self.assertTrue(evaluate(cond("GREATER_THAN", 6), {"q1": 7}))
        self.assertFalse(evaluate(cond("GREATER_THAN", 6), {"q1": 6}))

    def test_less_than(self):
        self.assertTrue(evaluate(cond("LESS_THAN", 3), {"q1": 2}))
        self.assertFalse(evaluate(cond("LESS_THAN", 3), {"q1": 3}))

    def test_numeric_strings_are_coerced(self):
        self.assertTrue(evaluate(cond("GREATER_THAN", "6"), {"q1": "10"}))
        self.assertTrue(evaluate(cond("LESS_THAN", 5), {"q1": " 4.5 "}))

    def test_non_numeric_answer_is_false(self):
        self.assertFalse(evaluate(cond("GREATER_THAN", 6), {"q1": "ten"}))
        self.assertFalse(evaluate(cond("LESS_THAN", 6), {"q1": "ten"}))

    def test_non_numeric_value_is_false(self):
        self.assertFalse(evaluate(cond("GREATER_THAN", "abc"), {"q1": 10}))

    def test_list_answer_is_false(self):
        self.assertFalse(evaluate(cond("GREATER_THAN", 1), {"q1": [5]}))

    def test_boolean_answer_is_not_numeric(self):
        self.assertFalse(evaluate(cond("GREATER_THAN", 0), {"q1": True}))

    def test_unanswered_is_false(self):
        self.assertFalse(evaluate(cond("GREATER_THAN", 0), {}))
        self.assertFalse(evaluate(cond("LESS_THAN", 100), {"q1": ""}))


# =============================================================================
# PART 5: Malformed input never raises
# =============================================================================

class TestMalformedInput(unittest.TestCase):

    def test_unknown_operator_is_false(self):
        self.assertFalse(evaluate(cond("IN", ["a"]), {"q1": "a"}))

    def test_none_operator_is_false(self):
        self.assertFalse(evaluate(cond(None, "a"), {"q1": "a"}))

    def test_unhashable_operator_is_false(self):
        self.assertFalse(evaluate(cond(["EQUALS"], "a"), {"q1": "a"}))

    def test_non_mapping_answers_is_false(self):
        self.assertFalse(evaluate(cond("IS_NOT_ANSWERED"), None))
        self.assertFalse(evaluate(cond("EQUALS", "a"), ["a"]))

    def test_non_condition_object_is_false(self):
        self.assertFalse(evaluate(object(), {"q1": "a"}))

    def test_unhashable_question_id_is_false(self):
        self.assertFalse(evaluate(cond("IS_NOT_ANSWERED", question_id=["q1"]), {"q1": "a"}))

    def test_condition_on_other_question(self):
        """Conditions may test any question, not just the rule's source."""
        condition = cond("EQUALS", "Yes", question_id="q0")
        self.assertTrue(evaluate(condition, {"q0": "Yes", "q1": "No"}))

    def test_deterministic(self):
        condition = cond("CONTAINS", "b")
        answers = {"q1": ["a", "b"]}
        results = {evaluate(condition, answers) for _ in range(10)}
        self.assertEqual(results, {True})


if __name__ == "__main__":
    unittest.main()
