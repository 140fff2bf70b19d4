"""
User Routes - registration, login and token refresh
"""
import logging

from flask import Blueprint, current_app, request

from notesync.api_responses import success_response, handle_api_errors
from notesync.auth import register_user, login_user_with_password, refresh_tokens
from notesync.extensions import limiter
from notesync.utils import sanitize_sensitive_data

logger = logging.getLogger("main")

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return {}
    logger.debug(f"{request.path} payload: {sanitize_sensitive_data(data)}")
    return data


@users_bp.post("/register")
@handle_api_errors
def register_api():
    data = _body()
    user = register_user(data.get("username"), data.get("password"))
    return success_response(data=user.to_dict(), message="User registered successfully", status_code=201)


@users_bp.post("/login")
@limiter.limit(lambda: current_app.config["LOGIN_RATE_LIMIT"])
@handle_api_errors
def login_api():
    data = _body()
    tokens = login_user_with_password(data.get("username"), data.get("password"))
    return success_response(data=tokens)


@users_bp.post("/refresh")
@handle_api_errors
def refresh_api():
    tokens = refresh_tokens(_body().get("refreshToken"))
    return success_response(data=tokens)
