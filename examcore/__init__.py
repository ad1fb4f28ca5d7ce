"""
Exam Engine
Flask application factory for the timed-exam attempt API
"""
import logging

from flask import Flask

from examcore.config import config, get_config
from examcore.extensions import db, socketio
from examcore.errors import register_error_handlers

log = logging.getLogger(__name__)


def _configure_logging(app):
    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format="%(asctime)s  %(levelname)s  %(name)s  %(message)s",
    )
    logging.getLogger('examcore').setLevel(app.config['LOG_LEVEL'])


def _register_blueprints(app):
    from examcore.routes import auth_bp, admin_bp, student_bp

    # Session identity (no prefix)
    app.register_blueprint(auth_bp)
    # Quiz-owner grading and analytics
    app.register_blueprint(admin_bp, url_prefix='/admin')
    # Attempt lifecycle
    app.register_blueprint(student_bp, url_prefix='/student')


def create_app(config_name=None, test_config=None):
    """
    Build the exam API
    config_name picks an entry of examcore.config.config; default follows FLASK_ENV
    test_config, when given, overrides individual settings after the class is loaded
    """
    app = Flask(__name__)
    app.config.from_object(config[config_name] if config_name else get_config())
    if test_config:
        app.config.update(test_config)

    # ProductionConfig has no fallback key
    if not app.config.get('SECRET_KEY'):
        raise RuntimeError("SECRET_KEY must be set for this configuration")

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['SOCKETIO_CORS_ALLOWED_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE']
    )

    register_error_handlers(app)
    _register_blueprints(app)

    # Proctor monitor events
    from examcore.sockets import register_socket_events
    register_socket_events()

    with app.app_context():
        if app.config['AUTO_CREATE_TABLES']:
            db.create_all()
            log.info("Database tables created/verified")

    log.info("Exam engine ready (%s)", config_name or 'env')
    return app
