"""
Analytics Service
Quiz-owner views: attempt roster, grading detail and per-question statistics
"""
from sqlalchemy import func

from examcore.extensions import db
from examcore.errors import AttemptNotFound, Forbidden, QuizNotFound
from examcore.models import AntiCheatEvent, Answer, Attempt, AttemptStatus, Question, Quiz, User


def owned_quiz(quiz_id, admin_id):
    """Quiz if it exists and belongs to admin_id"""
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        raise QuizNotFound()
    if quiz.created_by != admin_id:
        raise Forbidden('Not owner')
    return quiz


class AnalyticsService:
    """Aggregations for the quiz owner"""

    @staticmethod
    def attempt_roster(quiz_id, admin_id):
        """
        Every attempt on a quiz with its integrity signals

        Returns:
            list: dicts with attempt fields, username and event_count
        """
        owned_quiz(quiz_id, admin_id)

        event_counts = db.session.query(
            AntiCheatEvent.attempt_id,
            func.count(AntiCheatEvent.id).label('event_count'),
        ).group_by(AntiCheatEvent.attempt_id).subquery()

        rows = db.session.query(
            Attempt,
            User.username,
            func.coalesce(event_counts.c.event_count, 0).label('event_count'),
        ).join(
            User, User.id == Attempt.user_id
        ).outerjoin(
            event_counts, event_counts.c.attempt_id == Attempt.id
        ).filter(
            Attempt.quiz_id == quiz_id
        ).order_by(Attempt.started_at.desc(), Attempt.id.desc()).all()

        return [
            dict(attempt.to_dict(), username=username, event_count=int(event_count or 0))
            for attempt, username, event_count in rows
        ]

    @staticmethod
    def attempt_detail(attempt_id, admin_id):
        """Answers (including short text) and the event log for grading"""
        attempt = db.session.get(Attempt, attempt_id)
        if attempt is None:
            raise AttemptNotFound()
        quiz = owned_quiz(attempt.quiz_id, admin_id)

        answers = {a.question_id: a for a in Answer.query.filter_by(attempt_id=attempt.id).all()}
        questions = Question.query.filter_by(quiz_id=quiz.id).order_by(Question.order_index).all()

        return {
            'attempt': attempt.to_dict(),
            'questions': [
                {
                    'id': q.id,
                    'kind': q.kind,
                    'prompt': q.prompt,
                    'points': q.points,
                    'correct_option_ids': q.correct_option_ids() if q.uses_options else [],
                    'answer': answers[q.id].to_dict() if q.id in answers else None,
                }
                for q in questions
            ],
            'events': [e.to_dict() for e in attempt.events],
        }

    @staticmethod
    def quiz_analytics(quiz_id, admin_id):
        """Status counts, average score and per-question/option statistics"""
        quiz = owned_quiz(quiz_id, admin_id)

        status_rows = db.session.query(
            Attempt.status, func.count(Attempt.id)
        ).filter_by(quiz_id=quiz_id).group_by(Attempt.status).all()
        status_counts = {s.value: 0 for s in AttemptStatus}
        status_counts.update({status: int(count) for status, count in status_rows})

        finished = db.session.query(
            func.count(Attempt.id),
            func.avg(Attempt.score),
        ).filter(
            Attempt.quiz_id == quiz_id,
            Attempt.status != AttemptStatus.IN_PROGRESS.value,
        ).one()

        per_question = db.session.query(
            Answer.question_id,
            func.sum(db.case((Answer.correct == True, 1), else_=0)).label('correct_count'),
            func.sum(db.case((Answer.correct == False, 1), else_=0)).label('incorrect_count'),
            func.sum(db.case((Answer.correct.is_(None), 1), else_=0)).label('pending_count'),
            func.avg(Answer.points_awarded).label('avg_points'),
        ).join(
            Attempt, Attempt.id == Answer.attempt_id
        ).filter(
            Attempt.quiz_id == quiz_id
        ).group_by(Answer.question_id).all()
        stats = {row.question_id: row for row in per_question}

        # Option selections are JSON lists; tally them in Python
        selections = {}
        selected_lists = db.session.query(Answer.question_id, Answer.selected_option_ids).join(
            Attempt, Attempt.id == Answer.attempt_id
        ).filter(Attempt.quiz_id == quiz_id).all()
        for question_id, option_ids in selected_lists:
            tally = selections.setdefault(question_id, {})
            for option_id in option_ids or []:
                tally[option_id] = tally.get(option_id, 0) + 1

        questions = []
        for q in quiz.questions:
            row = stats.get(q.id)
            tally = selections.get(q.id, {})
            questions.append({
                'id': q.id,
                'prompt': q.prompt,
                'kind': q.kind,
                'points': q.points,
                'correct': int(row.correct_count or 0) if row else 0,
                'incorrect': int(row.incorrect_count or 0) if row else 0,
                'pending': int(row.pending_count or 0) if row else 0,
                'avg_points': round(float(row.avg_points or 0), 2) if row else 0.0,
                'option_selections': [
                    {'id': o.id, 'label': o.label, 'is_correct': o.is_correct, 'count': tally.get(o.id, 0)}
                    for o in q.options
                ],
            })

        return {
            'quiz_id': quiz.id,
            'title': quiz.title,
            'attempts': status_counts,
            'finished_attempts': int(finished[0] or 0),
            'average_score': round(float(finished[1]), 2) if finished[1] is not None else None,
            'total_possible': quiz.total_points(),
            'questions': questions,
        }
