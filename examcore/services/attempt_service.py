"""
Attempt Service
Attempt lifecycle: create/resume, authoritative timing and exactly-once submission
"""
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from examcore.extensions import db
from examcore.errors import (
    AlreadySubmittedOrNotFound, AttemptNotFound, InvalidPayload, QuizNotFound,
)
from examcore.models import Answer, Attempt, AttemptStatus, Question, Quiz
from examcore.models.question import QuestionKind
from examcore.services import time_enforcer
from examcore.services.grading_service import AnswerGrader, as_int_id
from examcore.services.scoring_service import ScoringService
from examcore.sockets.monitor_events import notify_monitor
from examcore.utils.helpers import now_utc

log = logging.getLogger(__name__)


def normalize_answers(answers):
    """
    Validate the submitted answer list
    Returns {question_id: submission}; a later entry for the same question wins
    """
    if not isinstance(answers, list):
        raise InvalidPayload()

    normalized = {}
    for item in answers:
        if not isinstance(item, dict):
            raise InvalidPayload('Each answer must be an object')
        question_id = as_int_id(item.get('question_id'))
        if question_id is None:
            raise InvalidPayload('Invalid question_id')

        selected = item.get('selected_option_ids')
        if selected is not None and not isinstance(selected, list):
            raise InvalidPayload('selected_option_ids must be a list')
        if any(isinstance(raw, float) and not raw.is_integer() for raw in selected or []):
            raise InvalidPayload('selected_option_ids must be integers')
        short_text = item.get('short_text')
        if short_text is not None and not isinstance(short_text, str):
            raise InvalidPayload('short_text must be a string')

        normalized[question_id] = {
            'selected_option_ids': selected or [],
            'short_text': short_text,
        }
    return normalized


def _upsert_answer(values):
    """INSERT ... ON CONFLICT (attempt_id, question_id) DO UPDATE"""
    dialect = db.session.get_bind().dialect.name
    if dialect == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Answer upsert not supported on {dialect}")

    stmt = insert(Answer.__table__).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=['attempt_id', 'question_id'],
        set_={
            'selected_option_ids': stmt.excluded.selected_option_ids,
            'short_text': stmt.excluded.short_text,
            'correct': stmt.excluded.correct,
            'points_awarded': stmt.excluded.points_awarded,
            'graded_at': stmt.excluded.graded_at,
        },
    )
    db.session.execute(stmt)


class AttemptService:
    """Attempt state machine: in_progress -> submitted | auto_submitted"""

    @staticmethod
    def create_or_resume(quiz_id, user_id):
        """
        Find-or-create the caller's in-progress attempt
        Resuming never touches started_at, so a reload cannot reset the timer

        Returns:
            tuple: (attempt, created)
        """
        quiz = db.session.get(Quiz, quiz_id)
        if quiz is None:
            raise QuizNotFound()

        existing = Attempt.query.filter_by(
            quiz_id=quiz_id,
            user_id=user_id,
            status=AttemptStatus.IN_PROGRESS.value,
        ).first()
        if existing:
            log.info("Resumed attempt %s for user %s on quiz %s", existing.id, user_id, quiz_id)
            return existing, False

        attempt = Attempt(
            quiz_id=quiz_id,
            user_id=user_id,
            status=AttemptStatus.IN_PROGRESS.value,
            started_at=now_utc(),
            tab_switch_count=0,
            score=0.0,
        )
        db.session.add(attempt)
        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent request created it first
            db.session.rollback()
            existing = Attempt.query.filter_by(
                quiz_id=quiz_id,
                user_id=user_id,
                status=AttemptStatus.IN_PROGRESS.value,
            ).first()
            if existing is None:
                raise
            log.info("Resumed attempt %s after concurrent create", existing.id)
            return existing, False

        log.info("Created attempt %s for user %s on quiz %s", attempt.id, user_id, quiz_id)
        return attempt, True

    @staticmethod
    def compute_remaining(attempt, quiz, now=None):
        """Whole seconds left, always derived from stored timestamps"""
        return time_enforcer.for_attempt(attempt, quiz, now).remaining_seconds

    @staticmethod
    def get_owned_attempt(attempt_id, user_id):
        attempt = Attempt.query.filter_by(id=attempt_id, user_id=user_id).first()
        if attempt is None:
            raise AttemptNotFound()
        return attempt

    @staticmethod
    def time_status(attempt_id, user_id, now=None):
        """Authoritative timing for the client countdown to reconcile against"""
        attempt = AttemptService.get_owned_attempt(attempt_id, user_id)
        now = now or now_utc()
        remaining = AttemptService.compute_remaining(attempt, attempt.quiz, now)
        status = time_enforcer.for_attempt(attempt, attempt.quiz, now)
        return {
            'attempt_id': attempt.id,
            'status': attempt.status,
            'remaining_seconds': remaining if not attempt.is_terminal else 0,
            'deadline_passed': status.deadline_passed,
            'deadline': status.deadline.isoformat(),
        }

    @staticmethod
    def build_take_payload(attempt, quiz, now=None):
        """Attempt + quiz header + questions without correctness"""
        now = now or now_utc()
        remaining = AttemptService.compute_remaining(attempt, quiz, now)
        status = time_enforcer.for_attempt(attempt, quiz, now)
        questions = Question.query.options(selectinload(Question.options)).filter_by(
            quiz_id=quiz.id
        ).order_by(Question.order_index).all()
        return {
            'attempt': attempt.to_dict(),
            'quiz': {
                'id': quiz.id,
                'title': quiz.title,
                'description': quiz.description,
                'duration_seconds': quiz.duration_seconds,
                'allow_tab_switches': quiz.allow_tab_switches,
                'end_at': quiz.end_at.isoformat() if quiz.end_at else None,
            },
            'questions': [q.to_public_dict() for q in questions],
            'remaining_seconds': remaining,
            'deadline_passed': status.deadline_passed,
            'deadline': status.deadline.isoformat(),
        }

    @staticmethod
    def claim(attempt_id, user_id, new_status, now):
        """
        Compare-and-set the terminal transition
        Returns True only for the single caller whose UPDATE matched an in-progress row
        """
        result = db.session.execute(
            update(Attempt)
            .where(
                Attempt.id == attempt_id,
                Attempt.user_id == user_id,
                Attempt.status == AttemptStatus.IN_PROGRESS.value,
            )
            .values(status=new_status, submitted_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def submit(attempt_id, user_id, answers, client_asks_auto=False, now=None):
        """
        Grade, aggregate and close an attempt exactly once

        Returns:
            dict: {'score': float, 'status': str}
        """
        submissions = normalize_answers(answers)

        attempt = Attempt.query.filter_by(
            id=attempt_id,
            user_id=user_id,
            status=AttemptStatus.IN_PROGRESS.value,
        ).first()
        if attempt is None:
            raise AlreadySubmittedOrNotFound()

        quiz = db.session.get(Quiz, attempt.quiz_id)
        if quiz is None:
            raise QuizNotFound()

        now = now or now_utc()
        timing = time_enforcer.for_attempt(attempt, quiz, now)
        forced = bool(client_asks_auto) or timing.deadline_passed
        new_status = (AttemptStatus.AUTO_SUBMITTED if forced else AttemptStatus.SUBMITTED).value

        try:
            if not AttemptService.claim(attempt.id, user_id, new_status, now):
                db.session.rollback()
                log.warning("Lost submit race on attempt %s", attempt_id)
                raise AlreadySubmittedOrNotFound()

            questions = Question.query.options(selectinload(Question.options)).filter_by(
                quiz_id=quiz.id
            ).all()
            question_map = {q.id: q for q in questions}

            for question_id, submission in submissions.items():
                question = question_map.get(question_id)
                if question is None:
                    continue

                result = AnswerGrader.grade(question, question.options, submission)
                is_short = question.kind == QuestionKind.SHORT.value
                _upsert_answer({
                    'attempt_id': attempt.id,
                    'question_id': question.id,
                    'selected_option_ids': [] if is_short else sorted(
                        AnswerGrader.filter_selection(question.options, submission)
                    ),
                    'short_text': submission.get('short_text') if is_short else None,
                    'correct': result.correct,
                    'points_awarded': result.awarded,
                    'graded_at': now,
                })

            score = ScoringService.attempt_total(attempt.id)
            db.session.execute(
                update(Attempt)
                .where(Attempt.id == attempt.id)
                .values(score=score)
                .execution_options(synchronize_session=False)
            )
            db.session.commit()
        except AlreadySubmittedOrNotFound:
            raise
        except Exception:
            db.session.rollback()
            raise

        log.info("Attempt %s %s with score %s (forced=%s, client_auto=%s)",
                 attempt_id, new_status, score, forced, bool(client_asks_auto))
        notify_monitor(quiz.id, 'attempt_finished', {
            'attempt_id': attempt_id,
            'user_id': user_id,
            'status': new_status,
            'score': score,
        })
        return {'score': score, 'status': new_status}
