"""
Student Routes
Taking a timed quiz: start/resume, timing, anti-cheat events, submission, results
"""
from flask import Blueprint, request, jsonify

from examcore.errors import InvalidInput, InvalidPayload
from examcore.services import AttemptService, AntiCheatService, ReviewService
from examcore.utils import get_current_user_id, require_login

student_bp = Blueprint('student', __name__)


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidPayload()
    return data


@student_bp.route('/quizzes/<int:quiz_id>/attempt', methods=['POST'])
@require_login
def start_attempt(quiz_id):
    """Create or resume the caller's attempt and return what the exam page needs"""
    attempt, created = AttemptService.create_or_resume(quiz_id, get_current_user_id())
    payload = AttemptService.build_take_payload(attempt, attempt.quiz)
    payload['resumed'] = not created
    return jsonify(payload), 201 if created else 200


@student_bp.route('/attempts/<int:attempt_id>/status')
@require_login
def attempt_status(attempt_id):
    """Authoritative remaining time"""
    return jsonify(AttemptService.time_status(attempt_id, get_current_user_id()))


@student_bp.route('/attempts/<int:attempt_id>/events', methods=['POST'])
@require_login
def log_anti_cheat(attempt_id):
    """Record an anti-cheat event; the client submits with auto=true on limitExceeded"""
    data = _json_body()
    kind = data.get('kind')
    if not kind:
        raise InvalidInput()

    result = AntiCheatService.record_event(
        attempt_id,
        get_current_user_id(),
        kind,
        data.get('meta'),
    )
    return jsonify({
        'ok': True,
        'limitExceeded': result['limit_exceeded'],
        'tabSwitchCount': result['tab_switch_count'],
    })


@student_bp.route('/attempts/<int:attempt_id>/submit', methods=['POST'])
@require_login
def submit_attempt(attempt_id):
    """Grade and close the attempt"""
    data = _json_body()
    answers = data.get('answers')
    if not isinstance(answers, list):
        raise InvalidPayload()

    result = AttemptService.submit(
        attempt_id,
        get_current_user_id(),
        answers,
        client_asks_auto=bool(data.get('auto', False)),
    )
    return jsonify({'ok': True, 'score': result['score'], 'status': result['status']})


@student_bp.route('/attempts')
@require_login
def history():
    """Caller's attempt history"""
    return jsonify({'attempts': ReviewService.history(get_current_user_id())})


@student_bp.route('/attempts/<int:attempt_id>/review')
@require_login
def review(attempt_id):
    """Per-question review, subject to the quiz's answer visibility"""
    return jsonify(ReviewService.review(attempt_id, get_current_user_id()))
