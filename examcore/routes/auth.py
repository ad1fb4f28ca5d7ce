"""
Authentication Routes
Session identity for the exam API: register, login, logout, current user
"""
import logging

from flask import Blueprint, request, session, jsonify
from werkzeug.security import generate_password_hash, check_password_hash

from examcore.extensions import db
from examcore.errors import InvalidInput, Unauthenticated, UsernameTaken
from examcore.models import User
from examcore.utils import get_current_user

log = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    """User registration"""
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password')
    role = data.get('role', User.ROLE_STUDENT)

    if not username or not password or role not in (User.ROLE_ADMIN, User.ROLE_STUDENT):
        raise InvalidInput('Invalid input')

    if User.query.filter_by(username=username).first():
        raise UsernameTaken()

    user = User(
        username=username,
        password=generate_password_hash(password),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    log.info("Registered %s user %s", role, username)
    return jsonify({'ok': True, 'id': user.id, 'username': user.username, 'role': user.role}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """User login"""
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    password = data.get('password')

    user = User.query.filter_by(username=username).first()
    if not user or not check_password_hash(user.password, password or ''):
        raise Unauthenticated('Invalid username or password')

    session.clear()
    session['user_id'] = user.id
    session['username'] = user.username
    session['role'] = user.role
    return jsonify({'ok': True, 'id': user.id, 'role': user.role})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """User logout"""
    session.clear()
    return jsonify({'ok': True})


@auth_bp.route('/me')
def me():
    """Current session identity"""
    user = get_current_user()
    return jsonify({'id': user.id, 'username': user.username, 'role': user.role, 'is_admin': user.is_admin})
