"""
Override Service
Admin correction of one graded answer followed by score re-aggregation
"""
import logging
import math

from examcore.extensions import db
from examcore.errors import (
    AnswerNotFound, AttemptNotFound, AttemptStillInProgress, Forbidden,
    InvalidPayload, QuestionNotFound,
)
from examcore.models import Answer, Attempt, Question, Quiz
from examcore.services.scoring_service import ScoringService
from examcore.sockets.monitor_events import notify_monitor
from examcore.utils.helpers import now_utc

log = logging.getLogger(__name__)


def clamp_points(awarded_points, max_points):
    """Bound awarded points to [0, max_points]"""
    return max(0.0, min(float(awarded_points), float(max_points or 0)))


def _validate(attempt_id, question_id, awarded_points, correct):
    if not attempt_id or not question_id or isinstance(question_id, bool):
        raise InvalidPayload()
    try:
        question_id = int(question_id)
    except (TypeError, ValueError):
        raise InvalidPayload('Invalid questionId')
    if isinstance(awarded_points, bool) or not isinstance(awarded_points, (int, float)):
        raise InvalidPayload('points_awarded must be a number')
    if not math.isfinite(awarded_points):
        raise InvalidPayload('points_awarded must be finite')
    if correct is not None and not isinstance(correct, bool):
        raise InvalidPayload('correct must be a boolean')
    return question_id


class OverrideService:
    """Manual grading by the quiz owner"""

    @staticmethod
    def override(attempt_id, question_id, awarded_points, admin_id, correct=None):
        """
        Rewrite one answer's points/correctness and recompute the attempt score

        Returns:
            dict: {'score', 'points_awarded', 'correct'}
        """
        question_id = _validate(attempt_id, question_id, awarded_points, correct)

        try:
            # Serialise overrides on the same attempt
            attempt = Attempt.query.filter_by(id=attempt_id).with_for_update().first()
            if attempt is None:
                raise AttemptNotFound()

            quiz = db.session.get(Quiz, attempt.quiz_id)
            if quiz is None or quiz.created_by != admin_id:
                raise Forbidden('Not owner')
            if not attempt.is_terminal:
                raise AttemptStillInProgress('Attempt has not been graded yet')

            question = Question.query.filter_by(id=question_id, quiz_id=quiz.id).first()
            if question is None:
                raise QuestionNotFound()

            answer = Answer.query.filter_by(attempt_id=attempt.id, question_id=question.id).first()
            if answer is None:
                raise AnswerNotFound()

            capped = clamp_points(awarded_points, question.points)
            if capped != float(awarded_points):
                log.warning("Clamped override for attempt %s question %s: %s -> %s",
                            attempt_id, question_id, awarded_points, capped)

            answer.points_awarded = capped
            if correct is not None:
                answer.correct = correct
            answer.graded_at = now_utc()
            db.session.flush()

            score = ScoringService.attempt_total(attempt.id)
            attempt.score = score
            result = {
                'score': score,
                'points_awarded': capped,
                'correct': answer.correct,
            }
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        log.info("Admin %s overrode attempt %s question %s -> %s (score %s)",
                 admin_id, attempt_id, question_id, capped, score)
        notify_monitor(quiz.id, 'attempt_regraded', {
            'attempt_id': attempt_id,
            'question_id': question_id,
            'score': score,
        })
        return result
