"""
Error Taxonomy
Exceptions raised by the exam services and their JSON rendering
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from examcore.extensions import db

log = logging.getLogger(__name__)


class ExamError(Exception):
    """Base class for every failure surfaced to the caller"""
    status_code = 400
    code = "exam_error"
    default_message = "Request failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class Unauthenticated(ExamError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Unauthorized"


class Forbidden(ExamError):
    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class InvalidInput(ExamError):
    status_code = 400
    code = "invalid_input"
    default_message = "Missing fields"


class InvalidPayload(InvalidInput):
    code = "invalid_payload"
    default_message = "Invalid payload"


class NotFound(ExamError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class AttemptNotFound(NotFound):
    code = "attempt_not_found"
    default_message = "Attempt not found"


class QuizNotFound(NotFound):
    code = "quiz_not_found"
    default_message = "Quiz not found"


class QuestionNotFound(NotFound):
    code = "question_not_found"
    default_message = "Question not found"


class AnswerNotFound(NotFound):
    code = "answer_not_found"
    default_message = "Answer not found"


class AlreadySubmittedOrNotFound(ExamError):
    """Terminal-state race outcome; the client should stop and reload"""
    status_code = 409
    code = "already_submitted_or_not_found"
    default_message = "Attempt not found or already submitted"


class AttemptStillInProgress(ExamError):
    status_code = 409
    code = "attempt_in_progress"
    default_message = "Attempt is still in progress"


class UsernameTaken(ExamError):
    status_code = 409
    code = "username_taken"
    default_message = "Username already exists"


def register_error_handlers(app):
    """Render exam errors (and anything unexpected) as JSON"""

    @app.errorhandler(ExamError)
    def handle_exam_error(error):
        log.warning("%s %s -> %s (%s)", error.status_code, error.code, error.message, type(error).__name__)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"error": error.description, "code": error.name.lower().replace(" ", "_")}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        log.exception("Unhandled error: %s", error)
        db.session.rollback()
        return jsonify({"error": "Unexpected error", "code": "internal_error"}), 500
