"""
AntiCheatEvent Model
Append-only log of integrity signals reported by the exam client
"""
import enum

from examcore.extensions import db
from examcore.utils.helpers import now_utc


class AntiCheatKind(str, enum.Enum):
    TAB_BLUR = 'tab_blur'
    VISIBILITY_HIDDEN = 'visibility_hidden'
    COPY = 'copy'
    PASTE = 'paste'
    CONTEXT_MENU = 'context_menu'

    @property
    def counts_as_tab_switch(self):
        return self in (AntiCheatKind.TAB_BLUR, AntiCheatKind.VISIBILITY_HIDDEN)


class AntiCheatEvent(db.Model):
    """Anti-cheat event model (never updated or deleted)"""
    __tablename__ = 'anti_cheat_event'

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(db.Integer, db.ForeignKey('attempt.id'), nullable=False, index=True)
    kind = db.Column(db.String(30), nullable=False)
    meta = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now_utc)

    def __repr__(self):
        return f'<AntiCheatEvent {self.kind} attempt={self.attempt_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'kind': self.kind,
            'meta': self.meta or {},
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
