"""
WSGI Entry Point
Serves the exam API and the live proctor monitor
"""
import logging
import os

from examcore import create_app
from examcore.extensions import socketio

log = logging.getLogger(__name__)

# Config chosen by FLASK_ENV (development | production | testing)
app = create_app()

if __name__ == '__main__':
    # Local runs only; in production: gunicorn -k gthread -w 1 wsgi:app
    host = os.getenv('HOST', '127.0.0.1')
    port = int(os.getenv('PORT', 5000))
    log.info("Exam engine listening on %s:%s", host, port)

    socketio.run(
        app,
        host=host,
        port=port,
        debug=app.config.get('DEBUG', False),
        use_reloader=False,
        allow_unsafe_werkzeug=app.config.get('DEBUG', False),
    )
