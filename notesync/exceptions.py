"""
NoteSync - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class NoteSyncException(Exception):
    """Base exception for NoteSync"""
    status_code = 400

    def __init__(self, message: str, code: str = "NOTESYNC_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'code': self.code,
            'success': False,
            'message': self.message
        }


class DatabaseException(NoteSyncException):
    """Storage-related exceptions"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, code="DATABASE_ERROR")
        logger.error(f"Database error: {message}")


class ValidationException(NoteSyncException):
    """Validation-related exceptions"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")
        logger.warning(f"Validation error: {message}")


class NotFoundException(NoteSyncException):
    """Entity absent, or owned by somebody else where ownership is hidden"""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, code="NOT_FOUND")
        logger.info(f"Not found: {message}")


class ConflictException(NoteSyncException):
    """Unique constraint violations (e.g. username already taken)"""
    status_code = 409

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message, code="CONFLICT")
        logger.warning(f"Conflict: {message}")


class AuthenticationException(NoteSyncException):
    """Authentication-related exceptions"""
    status_code = 401

    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Authentication required", code: str = "AUTH_ERROR"):
        super().__init__(message, code=code)
        logger.warning(f"Authentication error: {message}")


class AuthorizationException(NoteSyncException):
    """Authorization-related exceptions"""
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message, code="FORBIDDEN")
        logger.warning(f"Authorization error: {message}")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'code': e.name.upper().replace(' ', '_'),
            'success': False,
            'message': e.description
        }), e.code

    @app.errorhandler(NoteSyncException)
    def handle_notesync_exception(e):
        """Handle NoteSync custom exceptions"""
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'code': 'INTERNAL_ERROR',
            'success': False,
            'message': 'An unexpected error occurred'
        }), 500
