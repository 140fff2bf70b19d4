from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
import logging

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()


def init_db(app):
    # Import models so every table is registered on the metadata
    import notesync.models  # noqa: F401

    with app.app_context():
        # Ensure foreign keys, WAL mode, and timeout are set when connection is opened
        @event.listens_for(db.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            import sqlite3
            if not isinstance(dbapi_connection, sqlite3.Connection):
                return

            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            # Enable WAL mode for better concurrent access
            cursor.execute("PRAGMA journal_mode=WAL;")
            # Increase timeout to 30 seconds to handle contention
            cursor.execute("PRAGMA busy_timeout=30000;")
            cursor.close()

        from sqlalchemy import inspect
        inspector = inspect(db.engine)
        if not inspector.has_table("notes"):
            logger.info("Initializing database tables...")
        db.create_all()
