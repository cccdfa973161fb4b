"""
Flask Web Application for the Survey Logic Engine

Thin HTTP surface over SurveyNavigator for the response-collection layer
and the rule validator for the authoring layer.

Run with:
    flask --app app:create_app run
"""

from flask import Flask, jsonify, request
import logging
import os

from survey_logic.commands import NavigationState, SubmitAnswer
from survey_logic.contracts import LogicRule
from survey_logic.core.rule_validator import validate_rule
from survey_logic.core.survey_navigator import SurveyNavigator
from survey_logic.exceptions import SurveyDefinitionError
from survey_logic.persistence import SessionPersistence
from survey_logic.results import IllegalTransition
from survey_logic.survey_store import JsonSurveyStore
from survey_logic.utils.helpers import generate_session_id

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SURVEY_DATA_DIR = os.environ.get('SURVEY_DATA_DIR', 'data/surveys')
SESSION_OUTPUT_DIR = os.environ.get('SESSION_OUTPUT_DIR', 'outputs/sessions')
SECRET_KEY = os.environ.get('SURVEY_LOGIC_SECRET_KEY', 'survey-logic-dev-secret-key')


def create_app(survey_store=None, persistence=None):
    """
    Build the Flask app.

    Args:
        survey_store: Question catalog + rule store (default: JsonSurveyStore
            over SURVEY_DATA_DIR)
        persistence: Session persistence (default: SessionPersistence over
            SESSION_OUTPUT_DIR)
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = SECRET_KEY

    store = survey_store or JsonSurveyStore(SURVEY_DATA_DIR)
    sessions = persistence or SessionPersistence(SESSION_OUTPUT_DIR)

    def build_navigator(survey_id):
        # One read per request: a transition never mixes two rule sets
        questions, rules = store.load_survey(survey_id)
        return SurveyNavigator(questions, rules, survey_id=survey_id)

    def navigation_payload(navigator, state, session_id):
        question = navigator.current_question(state)
        return {
            'success': True,
            'session_id': session_id,
            'finished': navigator.is_terminated(state),
            'question_id': state.current_question_id,
            'question': question.text if question else None,
            'visible_question_ids': navigator.visible_question_ids(state),
            'state': state.to_json(),
        }

    @app.errorhandler(FileNotFoundError)
    def survey_not_found(e):
        return jsonify({'success': False, 'error': str(e)}), 404

    @app.errorhandler(SurveyDefinitionError)
    def survey_definition_error(e):
        logger.error(f"Survey definition error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500

    @app.route('/api/surveys/<survey_id>/start', methods=['POST'])
    def start_survey(survey_id):
        """Start new traversal and persist turn 0"""
        navigator = build_navigator(survey_id)
        state = navigator.start(survey_id)

        session_id = generate_session_id()
        sessions.save_turn(session_id, state)

        logger.info(f"Session {session_id} started for survey {survey_id}")
        return jsonify(navigation_payload(navigator, state, session_id))

    @app.route('/api/surveys/<survey_id>/answer', methods=['POST'])
    def submit_answer(survey_id):
        """Submit answer for the current question and get the next one"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        session_id = data.get('session_id')
        question_id = data.get('questionId')

        if not (isinstance(session_id, str) and session_id
                and isinstance(question_id, str) and question_id):
            return jsonify({
                'success': False,
                'error': "'session_id' and 'questionId' are required"
            }), 400

        try:
            known_session = sessions.session_exists(session_id)
        except ValueError as e:
            return jsonify({'success': False, 'error': str(e)}), 400

        if not known_session:
            return jsonify({'success': False, 'error': f"Unknown session: {session_id}"}), 404

        # The persisted turn is authoritative; a client copy is only a guard
        state = sessions.load_latest_turn(session_id)
        if state is None:
            return jsonify({'success': False, 'error': f"Unknown session: {session_id}"}), 404

        if state.survey_id != survey_id:
            return jsonify({
                'success': False,
                'error': f"Session {session_id} does not belong to survey {survey_id}"
            }), 409

        if data.get('state') is not None:
            try:
                client_state = NavigationState.from_json(data['state'])
            except (KeyError, TypeError, ValueError) as e:
                return jsonify({'success': False, 'error': f"Invalid state: {e}"}), 400

            if client_state != state:
                return jsonify({
                    'success': False,
                    'error': 'State is out of date, reload the session'
                }), 409

        navigator = build_navigator(survey_id)
        result = navigator.handle(SubmitAnswer(state, question_id, data.get('value')))

        if isinstance(result, IllegalTransition):
            return jsonify({'success': False, 'error': result.reason}), 409

        try:
            sessions.save_turn(session_id, result.state)
        except FileExistsError as e:
            logger.error(f"Double submit for session {session_id}: {e}")
            return jsonify({'success': False, 'error': 'Turn already submitted'}), 409

        payload = navigation_payload(navigator, result.state, session_id)
        payload['debug'] = result.debug
        return jsonify(payload)

    @app.route('/api/sessions/<session_id>', methods=['GET'])
    def resume_session(session_id):
        """Latest persisted state for a session"""
        try:
            state = sessions.load_latest_turn(session_id)
        except ValueError as e:
            return jsonify({'success': False, 'error': str(e)}), 400

        if state is None:
            return jsonify({'success': False, 'error': f"Unknown session: {session_id}"}), 404

        navigator = build_navigator(state.survey_id)
        return jsonify(navigation_payload(navigator, state, session_id))

    @app.route('/api/surveys/<survey_id>/rules/warnings', methods=['GET'])
    def rule_warnings(survey_id):
        """Rules ignored at evaluation time because they are misconfigured"""
        navigator = build_navigator(survey_id)
        return jsonify({
            'success': True,
            'warnings': {
                rule_id: [e.to_dict() for e in errors]
                for rule_id, errors in navigator.configuration_warnings.items()
            }
        })

    @app.route('/api/surveys/<survey_id>/rules/validate', methods=['POST'])
    def validate_rule_endpoint(survey_id):
        """Authoring-time validation of a rule record before it is persisted"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'success': False, 'error': 'Rule record must be a JSON object'}), 400

        try:
            rule = LogicRule.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            return jsonify({'success': False, 'error': f"Malformed rule: {e!r}"}), 400

        errors = validate_rule(rule, store.get_questions_for_survey(survey_id))
        if errors:
            return jsonify({
                'success': False,
                'valid': False,
                'errors': [e.to_dict() for e in errors]
            }), 422

        return jsonify({'success': True, 'valid': True, 'errors': []})

    return app


if __name__ == '__main__':
    os.makedirs(SESSION_OUTPUT_DIR, exist_ok=True)

    print("\n" + "=" * 60)
    print("SURVEY LOGIC ENGINE - WEB INTERFACE")
    print("=" * 60)
    print("\nServer starting on http://localhost:5000")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 60 + "\n")

    create_app().run(debug=False, host='0.0.0.0', port=5000)
