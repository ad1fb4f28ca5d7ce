"""
Helper Functions
Clock, identity and access helpers used across the application
"""
from datetime import datetime, timezone
from functools import wraps

from flask import session, current_app
import pytz

from examcore.errors import Unauthenticated, Forbidden


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def as_utc(dt):
    """Treat naive timestamps (SQLite drops tzinfo) as UTC"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_display_tz(dt):
    """Convert a UTC timestamp to the configured display timezone"""
    if not dt:
        return None
    tz = pytz.timezone(current_app.config.get('DISPLAY_TIMEZONE', 'UTC'))
    return as_utc(dt).astimezone(tz)


def get_current_user_id():
    """
    Stable caller id from the signed session
    Raises Unauthenticated - never falls back to an anonymous caller
    """
    user_id = session.get('user_id')
    if user_id is None:
        raise Unauthenticated()
    return user_id


def get_current_user():
    """Get current logged-in user"""
    from examcore.extensions import db
    from examcore.models import User

    user = db.session.get(User, get_current_user_id())
    if user is None:
        session.clear()
        raise Unauthenticated()
    return user


# Decorators
def require_login(f):
    """Decorator to require any logged-in user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        get_current_user_id()
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """
    Decorator to require admin role
    Quiz ownership is checked by the services themselves
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        get_current_user_id()
        if session.get('role') != 'admin':
            raise Forbidden('Admin access required')
        return f(*args, **kwargs)
    return decorated_function
