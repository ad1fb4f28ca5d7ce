"""
Answer Model
Graded answer, one row per question per attempt
"""
from examcore.extensions import db
from examcore.utils.helpers import now_utc


class Answer(db.Model):
    """Answer model"""
    __tablename__ = 'answer'

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(db.Integer, db.ForeignKey('attempt.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    selected_option_ids = db.Column(db.JSON, nullable=False, default=list)
    short_text = db.Column(db.Text, nullable=True)
    # NULL = not yet determined (short answers pending manual grading)
    correct = db.Column(db.Boolean, nullable=True)
    points_awarded = db.Column(db.Float, nullable=False, default=0.0)
    graded_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        db.UniqueConstraint(
            'attempt_id', 'question_id',
            name='unique_answer_per_question'
        ),
        db.CheckConstraint('points_awarded >= 0', name='ck_answer_points_non_negative'),
    )

    question = db.relationship('Question', lazy=True)

    def __repr__(self):
        return f'<Answer Q{self.question_id} of attempt {self.attempt_id}>'

    def to_dict(self):
        return {
            'question_id': self.question_id,
            'selected_option_ids': list(self.selected_option_ids or []),
            'short_text': self.short_text,
            'correct': self.correct,
            'points_awarded': self.points_awarded,
        }
