"""
Question and Option Models
Closed set of question kinds; options apply to every kind except short
"""
import enum

from examcore.extensions import db


class QuestionKind(str, enum.Enum):
    SINGLE = 'single'
    MULTIPLE = 'multiple'
    BOOLEAN = 'boolean'
    SHORT = 'short'


class Question(db.Model):
    """Question model"""
    __tablename__ = 'question'

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quiz.id'), nullable=False, index=True)
    kind = db.Column(db.String(20), nullable=False, default=QuestionKind.SINGLE.value)
    prompt = db.Column(db.Text, nullable=False)
    points = db.Column(db.Float, nullable=False, default=1.0)
    order_index = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'order_index', name='unique_question_order'),
        db.CheckConstraint('points >= 0', name='ck_question_points_non_negative'),
    )

    options = db.relationship(
        'Option', backref='question', lazy=True, order_by='Option.order_index'
    )

    def __repr__(self):
        return f'<Question {self.id} ({self.kind}): {self.prompt[:50]}>'

    @property
    def uses_options(self):
        return self.kind != QuestionKind.SHORT.value

    def correct_option_ids(self):
        """Ids of the options flagged correct"""
        return sorted(o.id for o in self.options if o.is_correct)

    def to_public_dict(self):
        """Question as shown during an attempt - never exposes correctness"""
        return {
            'id': self.id,
            'kind': self.kind,
            'prompt': self.prompt,
            'points': self.points,
            'order_index': self.order_index,
            'options': [
                {'id': o.id, 'label': o.label, 'order_index': o.order_index}
                for o in self.options
            ] if self.uses_options else [],
        }


class Option(db.Model):
    """Option model"""
    __tablename__ = 'option'

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    label = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    order_index = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<Option {self.id} of Q{self.question_id}{" *" if self.is_correct else ""}>'
