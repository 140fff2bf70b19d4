"""
Repository for Note database operations, including the embedded
checklist items
"""

from sqlalchemy.exc import SQLAlchemyError

from notesync.db import db
from notesync.models.note import Note, ChecklistItem, NoteTag
from notesync.utils import now_utc


class NoteRepository:
    """Repository for Note database operations"""

    @staticmethod
    def get_by_user_and_id(user_id, id):
        """Get Note for a specific user and ID"""
        return Note.query.filter_by(user_id=user_id, id=id).first()

    @staticmethod
    def get_all_by_user(user_id, title=None, tag=None, done=None, is_archived=None):
        """
        Get a user's notes, pinned first then by order.

        title: case-insensitive substring, Unicode-aware
        tag: exact match against any of the note's tags
        done: at least one checklist item with that done value
        is_archived: exact match
        """
        query = Note.query.filter(Note.user_id == user_id)

        if title:
            query = query.filter(Note.title_key.contains(title.casefold(), autoescape=True))

        if tag:
            query = query.filter(Note.tag_entries.any(NoteTag.name == tag))

        if done is not None:
            query = query.filter(Note.checklist.any(ChecklistItem.done == done))

        if is_archived is not None:
            query = query.filter(Note.is_archived == is_archived)

        return query.order_by(Note.is_pinned.desc(), Note.order.asc(), Note.id.asc()).all()

    @staticmethod
    def get_due_reminders(now):
        """Notes whose reminder is at or before `now` and not yet delivered"""
        return (
            Note.query.filter(Note.reminder.isnot(None), Note.reminder <= now, Note.notified == False)  # noqa: E712
            .order_by(Note.reminder.asc())
            .all()
        )

    @staticmethod
    def create(**kwargs):
        """Create new Note record"""
        try:
            item = Note(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def update(id, **kwargs):
        """Update Note record"""
        item = db.session.get(Note, id)
        if not item:
            return None

        try:
            for key, value in kwargs.items():
                if hasattr(item, key):
                    setattr(item, key, value)
            item.updated_at = now_utc()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
        return item

    @staticmethod
    def set_order(user_id, id, order):
        """Set `order` on one note owned by the user. Returns False when no such note."""
        try:
            matched = Note.query.filter_by(user_id=user_id, id=id).update(
                {Note.order: order, Note.updated_at: now_utc()}, synchronize_session="fetch"
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
        return matched > 0

    @staticmethod
    def mark_notified(id):
        """Flag a note's reminder as delivered"""
        return NoteRepository.update(id, notified=True)

    @staticmethod
    def delete(id):
        """Delete Note record"""
        item = db.session.get(Note, id)
        if not item:
            return False

        try:
            db.session.delete(item)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
        return True

    # Checklist items

    @staticmethod
    def get_checklist_item(note_id, item_id):
        """Get a checklist item, only if it belongs to the given note"""
        return ChecklistItem.query.filter_by(note_id=note_id, id=item_id).first()

    @staticmethod
    def add_checklist_item(note, text, done=False):
        """Append an item to the end of the note's checklist"""
        try:
            item = ChecklistItem(item=text, done=done)
            note.checklist.append(item)
            note.updated_at = now_utc()
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def update_checklist_item(item, **kwargs):
        """Update a checklist item in place"""
        try:
            for key, value in kwargs.items():
                if hasattr(item, key):
                    setattr(item, key, value)
            item.note.updated_at = now_utc()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
        return item

    @staticmethod
    def remove_checklist_item(note, item):
        """Remove a checklist item from its note"""
        try:
            note.checklist.remove(item)
            note.updated_at = now_utc()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
        return True
