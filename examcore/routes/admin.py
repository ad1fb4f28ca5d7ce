"""
Admin Routes
Quiz-owner tools: manual grading, attempt roster, attempt detail, analytics
"""
from flask import Blueprint, request, jsonify

from examcore.errors import InvalidPayload
from examcore.services import AnalyticsService, OverrideService
from examcore.utils import get_current_user_id, require_admin

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/attempts/<int:attempt_id>/grade', methods=['POST'])
@require_admin
def manual_grade(attempt_id):
    """Override one answer's points (clamped to the question's maximum)"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidPayload()

    result = OverrideService.override(
        attempt_id,
        data.get('questionId'),
        data.get('points_awarded'),
        get_current_user_id(),
        correct=data.get('correct'),
    )
    return jsonify({
        'ok': True,
        'score': result['score'],
        'points_awarded': result['points_awarded'],
        'correct': result['correct'],
    })


@admin_bp.route('/quizzes/<int:quiz_id>/attempts')
@require_admin
def quiz_attempts(quiz_id):
    """All attempts on an owned quiz"""
    return jsonify({
        'quiz_id': quiz_id,
        'attempts': AnalyticsService.attempt_roster(quiz_id, get_current_user_id()),
    })


@admin_bp.route('/attempts/<int:attempt_id>')
@require_admin
def attempt_detail(attempt_id):
    """Answers and anti-cheat log of one attempt"""
    return jsonify(AnalyticsService.attempt_detail(attempt_id, get_current_user_id()))


@admin_bp.route('/quizzes/<int:quiz_id>/analytics')
@require_admin
def analytics(quiz_id):
    """Quiz analytics"""
    return jsonify(AnalyticsService.quiz_analytics(quiz_id, get_current_user_id()))
