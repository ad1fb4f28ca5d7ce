"""
Anti-Cheat Service
Event ingestion and violation-threshold evaluation
"""
import logging

from flask import current_app
from sqlalchemy import update

from examcore.extensions import db
from examcore.errors import AttemptNotFound, InvalidInput
from examcore.models import AntiCheatEvent, AntiCheatKind, Attempt
from examcore.sockets.monitor_events import notify_monitor
from examcore.utils.helpers import now_utc

log = logging.getLogger(__name__)


def _validate_meta(meta):
    if meta is None:
        return {}
    if not isinstance(meta, dict):
        raise InvalidInput('meta must be an object')
    max_keys = current_app.config.get('ANTI_CHEAT_META_MAX_KEYS', 20)
    if len(meta) > max_keys:
        raise InvalidInput(f'meta may carry at most {max_keys} keys')
    return meta


class AntiCheatService:
    """Records events; signals, but never performs, forced submission"""

    @staticmethod
    def increment_tab_switches(attempt_id):
        """
        Atomic counter bump at the storage layer
        The row stays locked until commit, so the re-read sees exactly our increment
        """
        db.session.execute(
            update(Attempt)
            .where(Attempt.id == attempt_id)
            .values(tab_switch_count=Attempt.tab_switch_count + 1)
            .execution_options(synchronize_session=False)
        )
        return db.session.query(Attempt.tab_switch_count).filter(
            Attempt.id == attempt_id
        ).scalar()

    @staticmethod
    def record_event(attempt_id, user_id, kind, meta=None):
        """
        Append an event and evaluate the violation tolerance

        Returns:
            dict: {'limit_exceeded': bool, 'tab_switch_count': int}
        """
        if not attempt_id or not kind:
            raise InvalidInput()
        try:
            event_kind = AntiCheatKind(kind)
        except ValueError:
            raise InvalidInput(f'Unknown event kind: {kind}')
        meta = _validate_meta(meta)

        attempt = Attempt.query.filter_by(id=attempt_id, user_id=user_id).first()
        if attempt is None:
            raise AttemptNotFound()
        quiz = attempt.quiz

        limit_exceeded = False
        count = attempt.tab_switch_count
        try:
            db.session.add(AntiCheatEvent(
                attempt_id=attempt.id,
                kind=event_kind.value,
                meta=meta,
                created_at=now_utc(),
            ))
            if event_kind.counts_as_tab_switch:
                count = AntiCheatService.increment_tab_switches(attempt.id)
                limit_exceeded = count > quiz.allow_tab_switches
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        log.info("Anti-cheat event %s on attempt %s (count=%s)", event_kind.value, attempt_id, count)
        if event_kind.counts_as_tab_switch:
            if limit_exceeded:
                log.warning("Attempt %s exceeded tab-switch tolerance (%s > %s)",
                            attempt_id, count, quiz.allow_tab_switches)
            notify_monitor(quiz.id, 'attempt_violation', {
                'attempt_id': attempt_id,
                'user_id': user_id,
                'kind': event_kind.value,
                'tab_switch_count': count,
                'limit_exceeded': limit_exceeded,
            })

        return {'limit_exceeded': limit_exceeded, 'tab_switch_count': count}
