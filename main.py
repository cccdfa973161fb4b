"""
Console Harness for SurveyNavigator (authoring preview)

Runs a survey definition in a terminal loop before wiring it to the web app.

Usage:
    python main.py customer-feedback
    python main.py customer-feedback --data-dir data/surveys
"""

import argparse
import logging
import sys

from survey_logic.commands import StartSurvey, SubmitAnswer
from survey_logic.core.survey_navigator import SurveyNavigator
from survey_logic.results import IllegalTransition
from survey_logic.survey_store import JsonSurveyStore
from survey_logic.utils.helpers import format_answer, parse_console_answer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"quit", "exit", "stop"}


def print_separator(char="=", length=60):
    """Print a separator line"""
    print(char * length)


def print_debug_info(navigator, result):
    """Print winning rule and visible set after a transition"""
    print("-" * 60)
    debug = result.debug
    if debug.get('rule_id'):
        print(f"Rule fired: {debug['rule_id']} ({debug['action']})")
    else:
        print("No rule fired (default advance)")
    print(f"Visible: {', '.join(navigator.visible_question_ids(result.state)) or '(none)'}")
    print("-" * 60)


def print_configuration_warnings(navigator):
    warnings = navigator.configuration_warnings
    if not warnings:
        return
    print("\nConfiguration warnings (these rules will never fire):")
    for rule_id, errors in warnings.items():
        for error in errors:
            print(f"  - {rule_id}: [{error.code}] {error.message}")


def main(argv=None):
    """Run console preview"""
    arg_parser = argparse.ArgumentParser(description="Preview survey navigation in the terminal")
    arg_parser.add_argument("survey_id", help="Survey definition to load (<data-dir>/<survey_id>.json)")
    arg_parser.add_argument("--data-dir", default="data/surveys", help="Directory of survey definitions")
    args = arg_parser.parse_args(argv)

    print_separator()
    print("SURVEY LOGIC ENGINE - CONSOLE PREVIEW")
    print_separator()

    try:
        store = JsonSurveyStore(args.data_dir)
        questions, rules = store.load_survey(args.survey_id)
        navigator = SurveyNavigator(questions, rules, survey_id=args.survey_id)
    except (FileNotFoundError, ValueError) as e:
        print(f"\nFailed to load survey: {e}")
        return 1

    print_configuration_warnings(navigator)
    print("\nType 'quit', 'exit', or 'stop' to end early")
    print("Separate multiple selections with commas\n")

    # State is external - we hold it in this loop
    result = navigator.handle(StartSurvey(args.survey_id))
    state = result.state

    while not navigator.is_terminated(state):
        question = navigator.current_question(state)
        print(f"\n[{question.id}] {question.text or '(no text)'}")

        try:
            raw = input("> ")
        except (KeyboardInterrupt, EOFError):
            print("\n\nPreview interrupted by user")
            break

        if raw.strip().lower() in EXIT_COMMANDS:
            print("\nPreview ended by user")
            break

        value = parse_console_answer(raw)
        result = navigator.handle(SubmitAnswer(state, question.id, value))

        if isinstance(result, IllegalTransition):
            print(f"\nRejected: {result.reason}")
            continue

        state = result.state
        print(f"Recorded: {format_answer(value)}")
        print_debug_info(navigator, result)

    if navigator.is_terminated(state):
        print_separator()
        print("SURVEY COMPLETE")
        print_separator()

    print(f"\nQuestions answered: {state.turn_count}")
    print(f"Path: {' -> '.join(state.path) or '(none)'}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
