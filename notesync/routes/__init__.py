from notesync.routes.notes import notes_bp
from notesync.routes.tags import tags_bp
from notesync.routes.users import users_bp
from notesync.routes.system import system_bp

ALL_BLUEPRINTS = [notes_bp, tags_bp, users_bp, system_bp]
