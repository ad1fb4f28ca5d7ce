"""
Socket.IO Event Handlers
Live proctor monitor: quiz owners watch violations and submissions as they happen
"""
import logging

from flask import session
from flask_socketio import emit, join_room, leave_room

from examcore.extensions import db, socketio, monitor_room
from examcore.models import Quiz

log = logging.getLogger(__name__)


def notify_monitor(quiz_id, event, payload):
    """
    Push a notification to the quiz owner's monitor room
    State is already committed; a failed push is logged, not raised
    """
    try:
        socketio.emit(event, dict(payload, quiz_id=quiz_id), room=monitor_room(quiz_id))
    except Exception:
        log.exception("Monitor notification %s for quiz %s failed", event, quiz_id)


def _owned_quiz(data):
    """Quiz from the event payload if the session user owns it"""
    try:
        quiz_id = int((data or {}).get('quiz_id'))
    except (TypeError, ValueError):
        return None
    if session.get('role') != 'admin' or session.get('user_id') is None:
        return None
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None or quiz.created_by != session.get('user_id'):
        return None
    return quiz


def register_socket_events():
    """Register all Socket.IO event handlers"""

    @socketio.on('join_monitor')
    def join_monitor(data):
        """Quiz owner joins the live monitor room"""
        quiz = _owned_quiz(data)
        if quiz is None:
            emit('monitor_error', {'error': 'Quiz not found or not owned by you'})
            return
        join_room(monitor_room(quiz.id))
        log.info("Admin %s joined monitor for quiz %s", session.get('user_id'), quiz.id)
        emit('monitor_joined', {'quiz_id': quiz.id})

    @socketio.on('leave_monitor')
    def leave_monitor(data):
        """Quiz owner leaves the live monitor room"""
        quiz = _owned_quiz(data)
        if quiz is None:
            return
        leave_room(monitor_room(quiz.id))
        log.info("Admin %s left monitor for quiz %s", session.get('user_id'), quiz.id)
