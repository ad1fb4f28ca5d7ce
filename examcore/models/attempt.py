"""
Attempt Model
One student's timed session against one quiz
"""
import enum

from examcore.extensions import db
from examcore.utils.helpers import now_utc


class AttemptStatus(str, enum.Enum):
    IN_PROGRESS = 'in_progress'
    SUBMITTED = 'submitted'
    AUTO_SUBMITTED = 'auto_submitted'

    @property
    def is_terminal(self):
        return self is not AttemptStatus.IN_PROGRESS


class Attempt(db.Model):
    """Attempt model"""
    __tablename__ = 'attempt'

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quiz.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=AttemptStatus.IN_PROGRESS.value)
    started_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now_utc)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    tab_switch_count = db.Column(db.Integer, nullable=False, default=0)
    score = db.Column(db.Float, nullable=False, default=0.0)

    __table_args__ = (
        # At most one in-progress attempt per (quiz, user)
        db.Index(
            'unique_in_progress_attempt', 'quiz_id', 'user_id',
            unique=True,
            postgresql_where=db.text("status = 'in_progress'"),
            sqlite_where=db.text("status = 'in_progress'"),
        ),
    )

    quiz = db.relationship('Quiz', lazy=True)
    answers = db.relationship('Answer', backref='attempt', lazy=True)
    events = db.relationship(
        'AntiCheatEvent', backref='attempt', lazy=True, order_by='AntiCheatEvent.id'
    )

    def __repr__(self):
        return f'<Attempt {self.id} quiz={self.quiz_id} user={self.user_id} {self.status}>'

    @property
    def is_terminal(self):
        return AttemptStatus(self.status).is_terminal

    def to_dict(self):
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'user_id': self.user_id,
            'status': self.status,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'submitted_at': self.submitted_at.isoformat() if self.submitted_at else None,
            'tab_switch_count': self.tab_switch_count,
            'score': self.score,
        }
