"""
NoteSync - Personal notes with realtime sync
Application factory and initialization
"""
import atexit
import logging
import os
import sys

import structlog
from flask import Flask, request

from notesync.auth import login_manager
from notesync.constants import BUILD_VERSION
from notesync.db import db, init_db
from notesync.events import EventBroadcaster
from notesync.exceptions import register_exception_handlers
from notesync.extensions import limiter
from notesync.jobs import JobScheduler, ReminderDispatcher
from notesync.routes import ALL_BLUEPRINTS
from notesync.services.note_service import NoteService
from notesync.services.tag_service import TagService
from notesync.settings import load_settings
from notesync.socket_server import init_socketio
from notesync.utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs, get_or_create_secret_key

logger = structlog.get_logger('main')


def configure_logging(level="INFO", log_format="console"):
    """Colored stdlib logging on stdout plus structlog on top of it"""
    formatter = ColoredFormatter(
        '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )

    json_logs = os.environ.get('LOG_FORMAT', log_format) == 'json'
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Apply filter to hide date from http access logs
    logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())
    logging.getLogger('apscheduler').setLevel(logging.WARNING)


def _settings_to_config(settings):
    auth = settings["auth"]
    realtime = settings["realtime"]
    reminders = settings["reminders"]
    return {
        "SQLALCHEMY_DATABASE_URI": settings["database"]["uri"],
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "JWT_SECRET": auth.get("jwt_secret"),
        "JWT_REFRESH_SECRET": auth.get("jwt_refresh_secret"),
        "ACCESS_TOKEN_MINUTES": auth["access_token_minutes"],
        "REFRESH_TOKEN_DAYS": auth["refresh_token_days"],
        "LOGIN_RATE_LIMIT": auth["login_rate_limit"],
        "REMINDERS_ENABLED": reminders["enabled"],
        "REMINDER_INTERVAL_SECONDS": reminders["interval_seconds"],
        "REALTIME_REQUIRE_AUTH": realtime["require_auth"],
        "SOCKETIO_CORS_ALLOWED_ORIGINS": realtime["cors_allowed_origins"],
        "SOCKETIO_ASYNC_MODE": realtime["async_mode"],
        "SOCKETIO_MESSAGE_QUEUE": realtime.get("message_queue"),
    }


def create_app(config_overrides=None):
    """Application factory"""
    settings = load_settings()
    configure_logging(settings["logging"]["level"], settings["logging"]["format"])

    app = Flask(__name__)
    app.config.update(_settings_to_config(settings))
    app.config.update(config_overrides or {})

    # Secrets not provided by settings/env/overrides are generated once and kept on disk
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = get_or_create_secret_key()
    if not app.config.get("JWT_SECRET"):
        app.config["JWT_SECRET"] = get_or_create_secret_key('.jwt_secret')
    if not app.config.get("JWT_REFRESH_SECRET"):
        app.config["JWT_REFRESH_SECRET"] = get_or_create_secret_key('.jwt_refresh_secret')

    # Initialize components
    db.init_app(app)
    login_manager.init_app(app)
    limiter.init_app(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    for blueprint in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint)

    @app.after_request
    def log_request(response):
        logging.getLogger('main').info(f"{request.method} {request.path} {response.status_code}")
        return response

    # Realtime fan-out and the services that publish into it
    broadcaster = EventBroadcaster()
    broadcaster.start()
    app.extensions["notesync.broadcaster"] = broadcaster
    app.extensions["notesync.notes"] = NoteService(broadcaster)
    app.extensions["notesync.tags"] = TagService()
    app.extensions["notesync.socketio"] = init_socketio(app, broadcaster)

    # Initialize database
    init_db(app)

    # Reminder scheduler runs for the lifetime of the process
    if app.config["REMINDERS_ENABLED"] and not app.testing:
        job_scheduler = JobScheduler(interval_seconds=app.config["REMINDER_INTERVAL_SECONDS"])
        job_scheduler.init_app(app, ReminderDispatcher(broadcaster))
        app.extensions["notesync.scheduler"] = job_scheduler
        atexit.register(job_scheduler.shutdown)
        atexit.register(broadcaster.stop)

    return app


if __name__ == '__main__':
    app = create_app()
    socketio = app.extensions["notesync.socketio"]
    port = int(os.environ.get('PORT', 5000))
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info(f'Starting server on port {port}...')
    socketio.run(app, debug=False, use_reloader=False, host="0.0.0.0", port=port, allow_unsafe_werkzeug=True)
    logger.info('Shutting down server...')
