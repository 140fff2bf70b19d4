"""
Model: Note, with its embedded checklist items and tag entries
"""

from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import validates

from notesync.constants import DEFAULT_NOTE_COLOR
from notesync.db import db
from notesync.exceptions import ValidationException
from notesync.utils import now_utc, isoformat_utc


class ChecklistItem(db.Model):
    __tablename__ = "checklist_items"

    id = db.Column(db.Integer, primary_key=True)
    note_id = db.Column(db.Integer, db.ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    item = db.Column(db.Text, nullable=False)
    done = db.Column(db.Boolean, nullable=False, default=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    @validates("item")
    def validate_item(self, key, value):
        if not isinstance(value, str) or not value.strip():
            raise ValidationException("Checklist item text is required")
        return value

    def to_dict(self):
        return {
            "id": self.id,
            "item": self.item,
            "done": bool(self.done),
        }


class NoteTag(db.Model):
    """Free-text tag attached to a note. Not a foreign key to Tag."""
    __tablename__ = "note_tags"

    id = db.Column(db.Integer, primary_key=True)
    note_id = db.Column(db.Integer, db.ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)


class Note(db.Model):
    __tablename__ = "notes"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    # casefold() of title; SQLite lower() only folds ASCII
    title_key = db.Column(db.String(1024), nullable=False, default="")
    content = db.Column(db.Text)
    color = db.Column(db.String(20), nullable=False, default=DEFAULT_NOTE_COLOR)
    is_archived = db.Column(db.Boolean, nullable=False, default=False)
    is_pinned = db.Column(db.Boolean, nullable=False, default=False)
    order = db.Column("sort_order", db.Integer, nullable=False, default=0)
    reminder = db.Column(db.DateTime(timezone=True))
    notified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc)

    checklist = db.relationship(
        "ChecklistItem",
        order_by="ChecklistItem.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
        backref=db.backref("note", lazy="joined"),
    )
    tag_entries = db.relationship(
        "NoteTag",
        order_by="NoteTag.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tags = association_proxy("tag_entries", "name", creator=lambda name: NoteTag(name=name))

    __table_args__ = (
        # Listing sorts by pin flag then order within a user's notes
        db.Index("idx_notes_user_pinned_order", "user_id", "is_pinned", "sort_order"),
        # Due reminder scan
        db.Index("idx_notes_reminder_notified", "reminder", "notified"),
    )

    @validates("title")
    def validate_title(self, key, value):
        if not isinstance(value, str) or not value.strip():
            raise ValidationException("Note title is required")
        self.title_key = value.casefold()
        return value

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "color": self.color,
            "checklist": [item.to_dict() for item in self.checklist],
            "userId": self.user_id,
            "isArchived": bool(self.is_archived),
            "isPinned": bool(self.is_pinned),
            "order": self.order,
            "reminder": isoformat_utc(self.reminder),
            "notified": bool(self.notified),
            "createdAt": isoformat_utc(self.created_at),
            "updatedAt": isoformat_utc(self.updated_at),
        }
