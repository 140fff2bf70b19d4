import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_DIR = os.environ.get('NOTESYNC_CONFIG_DIR', os.path.join(os.getcwd(), 'config'))
CONFIG_FILE = os.environ.get('NOTESYNC_CONFIG', os.path.join(CONFIG_DIR, 'settings.yaml'))
DB_FILE = os.path.join(CONFIG_DIR, 'notesync.db')

NOTESYNC_DB = 'sqlite:///' + DB_FILE

BUILD_VERSION = '20261019_0900'

DEFAULT_NOTE_COLOR = '#ffffff'

# Socket.IO event names
EVENT_NOTE_UPDATED = 'noteUpdated'
EVENT_REMINDER = 'reminderNotification'

# noteUpdated actions
ACTION_CREATED = 'created'
ACTION_UPDATED = 'updated'
ACTION_DELETED = 'deleted'
ACTION_ARCHIVED = 'archived'
ACTION_ADD_CHECKLIST = 'addChecklist'
ACTION_REORDERED = 'reordered'

REMINDER_MESSAGE = 'Reminder: time to check your note!'

EMAIL_PATTERN = r'\S+@\S+\.\S+'
PASSWORD_MIN_LENGTH = 8

TOKEN_TYPE_ACCESS = 'access'
TOKEN_TYPE_REFRESH = 'refresh'
JWT_ALGORITHM = 'HS256'

DEFAULT_SETTINGS = {
    "database": {
        "uri": NOTESYNC_DB,
    },
    "auth": {
        "access_token_minutes": 60,
        "refresh_token_days": 7,
        "jwt_secret": None,
        "jwt_refresh_secret": None,
        "login_rate_limit": "20 per minute",
    },
    "reminders": {
        "enabled": True,
        "interval_seconds": 60,
    },
    "realtime": {
        "require_auth": True,
        "cors_allowed_origins": "*",
        "async_mode": "threading",
        "message_queue": None,
    },
    "logging": {
        "level": "INFO",
        "format": "console",
    },
}
