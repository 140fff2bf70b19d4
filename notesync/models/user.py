"""
Model: User
"""

from flask_login import UserMixin

from notesync.db import db
from notesync.utils import now_utc


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    # Most recently issued refresh token; issuing a new one replaces it
    refresh_token = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    notes = db.relationship("Note", backref="user", lazy="dynamic", cascade="all, delete-orphan")
    tags = db.relationship("Tag", backref="user", lazy="dynamic", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
        }
