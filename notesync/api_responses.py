"""
API Response Utilities - Standardized error handling and responses
"""

from flask import jsonify
from functools import wraps
from sqlalchemy.exc import SQLAlchemyError
import logging

from notesync.exceptions import DatabaseException, NoteSyncException

logger = logging.getLogger("main")


# API Error Codes
class ErrorCode:
    SUCCESS = "SUCCESS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def success_response(data=None, message=None, status_code=200):
    """
    Standard success response format for API endpoints
    """
    response = {"code": ErrorCode.SUCCESS, "success": True}

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    return jsonify(response), status_code


def error_response(error_code, message, status_code=400):
    """
    Standard error response format for API endpoints
    """
    response = {"code": error_code, "success": False, "message": message}
    return jsonify(response), status_code


def handle_api_errors(f):
    """
    Decorator to standardize error handling for API endpoints
    Translates the NoteSync exception hierarchy and storage failures
    into consistent error responses
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except NoteSyncException as e:
            return error_response(e.code, message=e.message, status_code=e.status_code)
        except SQLAlchemyError as e:
            error = DatabaseException(f"Storage failure in {f.__name__}: {e}")
            return error_response(
                error.code,
                message="A storage error occurred",
                status_code=error.status_code,
            )
        except ValueError as e:
            return error_response(ErrorCode.VALIDATION_ERROR, message=str(e), status_code=400)
        except Exception as e:
            logger.error(f"Unhandled exception in {f.__name__}: {e}", exc_info=True)
            return error_response(
                ErrorCode.INTERNAL_ERROR,
                message="An unexpected error occurred",
                status_code=500,
            )

    return wrapper
