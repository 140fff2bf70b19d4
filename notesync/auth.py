"""
Authentication - password hashing, JWT access/refresh tokens and the
Flask-Login request loader that turns a bearer token into a User
"""
import re
import uuid
import logging
from datetime import timedelta

import jwt
from flask import current_app, g
from flask_login import LoginManager
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from notesync.constants import (
    EMAIL_PATTERN,
    JWT_ALGORITHM,
    PASSWORD_MIN_LENGTH,
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
)
from notesync.exceptions import AuthenticationException, ConflictException, ValidationException
from notesync.repositories.user_repository import UserRepository
from notesync.utils import now_utc

# Retrieve main logger
logger = logging.getLogger("main")

login_manager = LoginManager()


def _bearer_token(request):
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return ""
    return parts[1].strip()


def _secret_for(token_type):
    if token_type == TOKEN_TYPE_REFRESH:
        return current_app.config["JWT_REFRESH_SECRET"]
    return current_app.config["JWT_SECRET"]


def issue_token(user, token_type):
    """Sign a JWT for `user`. Access and refresh tokens use different secrets."""
    now = now_utc()
    if token_type == TOKEN_TYPE_REFRESH:
        lifetime = timedelta(days=current_app.config["REFRESH_TOKEN_DAYS"])
    else:
        lifetime = timedelta(minutes=current_app.config["ACCESS_TOKEN_MINUTES"])

    payload = {
        "sub": str(user.id),
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, _secret_for(token_type), algorithm=JWT_ALGORITHM)


def decode_token(token, token_type):
    """
    Verify signature, expiry and token type.
    Raises jwt.InvalidTokenError on any failure.
    """
    payload = jwt.decode(
        token,
        _secret_for(token_type),
        algorithms=[JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"Expected a {token_type} token")
    return payload


def user_id_from_token(token):
    """Resolve an access token to a user id, or None when it is not valid"""
    if not token:
        return None
    try:
        payload = decode_token(token, TOKEN_TYPE_ACCESS)
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, ValueError):
        return None
    return user_id if UserRepository.get_by_id(user_id) else None


@login_manager.user_loader
def load_user(user_id):
    """Load user for Flask-Login"""
    return UserRepository.get_by_id(int(user_id))


@login_manager.request_loader
def load_user_from_request(request):
    token = _bearer_token(request)
    if token is None:
        g.auth_error = AuthenticationException.MISSING_CREDENTIALS
        return None

    user_id = user_id_from_token(token)
    if user_id is None:
        g.auth_error = AuthenticationException.INVALID_CREDENTIALS
        return None
    return UserRepository.get_by_id(user_id)


@login_manager.unauthorized_handler
def unauthorized():
    if g.get("auth_error") == AuthenticationException.INVALID_CREDENTIALS:
        raise AuthenticationException("Invalid or expired token", code=AuthenticationException.INVALID_CREDENTIALS)
    raise AuthenticationException("Authentication required", code=AuthenticationException.MISSING_CREDENTIALS)


def register_user(username, password):
    """
    Create a new account with a hashed password.
    """
    if not isinstance(username, str) or not re.fullmatch(EMAIL_PATTERN, username.strip()):
        raise ValidationException(f"{username} invalid email!")
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationException(f"The password should be at least {PASSWORD_MIN_LENGTH} characters long")

    username = username.strip()
    if UserRepository.get_by_username(username):
        raise ConflictException(f"User {username} already exists")

    try:
        user = UserRepository.create(
            username=username,
            password=generate_password_hash(password, method="pbkdf2:sha256"),
        )
    except IntegrityError:
        raise ConflictException(f"User {username} already exists")

    logger.info(f"Created new user {username}")
    return user


def login_user_with_password(username, password):
    """
    Verify credentials and issue an access/refresh token pair.
    The new refresh token replaces whatever was stored before.
    """
    user = UserRepository.get_by_username(username.strip()) if isinstance(username, str) else None
    if not user or not isinstance(password, str) or not check_password_hash(user.password, password):
        logger.warning(f"Incorrect login for user {username}")
        raise AuthenticationException("Invalid credentials", code=AuthenticationException.INVALID_CREDENTIALS)

    access_token = issue_token(user, TOKEN_TYPE_ACCESS)
    refresh_token = issue_token(user, TOKEN_TYPE_REFRESH)
    UserRepository.update(user.id, refresh_token=refresh_token)

    logger.info(f"Successful login for user {username}")
    return {"accessToken": access_token, "refreshToken": refresh_token}


def refresh_tokens(refresh_token):
    """
    Exchange the currently stored refresh token for a new access token and
    rotate the refresh token.
    """
    if not refresh_token:
        raise AuthenticationException("Refresh token is required", code=AuthenticationException.MISSING_CREDENTIALS)

    try:
        payload = decode_token(refresh_token, TOKEN_TYPE_REFRESH)
        user = UserRepository.get_by_id(int(payload["sub"]))
    except (jwt.InvalidTokenError, ValueError):
        user = None

    if not user or user.refresh_token != refresh_token:
        raise AuthenticationException("Invalid refresh token", code=AuthenticationException.INVALID_CREDENTIALS)

    access_token = issue_token(user, TOKEN_TYPE_ACCESS)
    new_refresh_token = issue_token(user, TOKEN_TYPE_REFRESH)
    UserRepository.update(user.id, refresh_token=new_refresh_token)

    logger.info(f"Rotated refresh token for user {user.username}")
    return {"accessToken": access_token, "refreshToken": new_refresh_token}
