"""
Review Service
Student-facing history and per-question review of graded attempts
"""
from sqlalchemy.orm import selectinload

from examcore.extensions import db
from examcore.errors import AttemptNotFound, AttemptStillInProgress, QuizNotFound
from examcore.models import Answer, Attempt, Question, Quiz
from examcore.utils.helpers import to_display_tz


def _display(dt):
    local = to_display_tz(dt)
    return local.isoformat() if local else None


class ReviewService:
    """Read-only views over a student's own attempts"""

    @staticmethod
    def history(user_id):
        """All attempts of the caller, newest first"""
        rows = db.session.query(Attempt, Quiz.title).join(
            Quiz, Quiz.id == Attempt.quiz_id
        ).filter(
            Attempt.user_id == user_id
        ).order_by(Attempt.started_at.desc(), Attempt.id.desc()).all()

        return [
            dict(
                attempt.to_dict(),
                quiz_title=title,
                started_at_local=_display(attempt.started_at),
                submitted_at_local=_display(attempt.submitted_at),
            )
            for attempt, title in rows
        ]

    @staticmethod
    def review(attempt_id, user_id, now=None):
        """
        Question-by-question review of a finished attempt
        Correct option ids appear only when the quiz policy allows it
        """
        attempt = Attempt.query.filter_by(id=attempt_id, user_id=user_id).first()
        if attempt is None:
            raise AttemptNotFound()
        if not attempt.is_terminal:
            raise AttemptStillInProgress()

        quiz = db.session.get(Quiz, attempt.quiz_id)
        if quiz is None:
            raise QuizNotFound()
        reveal = quiz.can_reveal_answers(now)

        questions = Question.query.options(selectinload(Question.options)).filter_by(
            quiz_id=quiz.id
        ).order_by(Question.order_index).all()
        answers = {a.question_id: a for a in Answer.query.filter_by(attempt_id=attempt.id).all()}

        rows = []
        correct_count = 0
        auto_gradable = 0
        for idx, question in enumerate(questions, 1):
            answer = answers.get(question.id)
            row = question.to_public_dict()
            row['number'] = idx
            row['answer'] = answer.to_dict() if answer else None
            if answer is not None and answer.correct is not None:
                auto_gradable += 1
                if answer.correct:
                    correct_count += 1
            if reveal and question.uses_options:
                row['correct_option_ids'] = question.correct_option_ids()
            rows.append(row)

        return {
            'attempt': dict(
                attempt.to_dict(),
                submitted_at_local=_display(attempt.submitted_at),
            ),
            'quiz': {'id': quiz.id, 'title': quiz.title, 'total_points': quiz.total_points()},
            'answers_revealed': reveal,
            'correct_count': correct_count,
            'graded_count': auto_gradable,
            'questions': rows,
        }
