"""
Quiz Model
Timing and integrity policy for a quiz; read-only from the attempt engine
"""
import enum

from examcore.extensions import db
from examcore.utils.helpers import now_utc, as_utc


class AnswerVisibility(str, enum.Enum):
    """When a student may see the correct options of a graded attempt"""
    NEVER = 'never'
    AFTER_DUE = 'after_due'
    IMMEDIATE = 'immediate'


class Quiz(db.Model):
    """Quiz model"""
    __tablename__ = 'quiz'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)

    # Attempt length in seconds (> 0)
    duration_seconds = db.Column(db.Integer, nullable=False)

    # Absolute window - NULL means open-ended
    start_at = db.Column(db.DateTime(timezone=True), nullable=True)
    end_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Violation tolerance: tab switches permitted before forced submission
    allow_tab_switches = db.Column(db.Integer, nullable=False, default=0)

    show_correct_answers = db.Column(
        db.String(20), nullable=False, default=AnswerVisibility.NEVER.value
    )
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        db.CheckConstraint('duration_seconds > 0', name='ck_quiz_duration_positive'),
        db.CheckConstraint('allow_tab_switches >= 0', name='ck_quiz_tab_switches_non_negative'),
    )

    # Relationships
    questions = db.relationship(
        'Question', backref='quiz', lazy=True, order_by='Question.order_index'
    )

    def __repr__(self):
        return f'<Quiz {self.title}>'

    def total_points(self):
        """Maximum score obtainable on this quiz"""
        return sum(float(q.points or 0) for q in self.questions)

    def is_past_due(self, now=None):
        """True once end_at is set and reached"""
        if self.end_at is None:
            return False
        return (now or now_utc()) >= as_utc(self.end_at)

    def can_reveal_answers(self, now=None):
        """Apply the show_correct_answers policy"""
        policy = AnswerVisibility(self.show_correct_answers)
        if policy is AnswerVisibility.IMMEDIATE:
            return True
        if policy is AnswerVisibility.AFTER_DUE:
            return self.is_past_due(now)
        return False
