"""
Flask Extensions
Unbound extension instances, attached to the app in create_app
"""
from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO

db = SQLAlchemy()
socketio = SocketIO()


def monitor_room(quiz_id):
    """Socket.IO room name for a quiz's live proctor monitor"""
    return f"monitor_{quiz_id}"
