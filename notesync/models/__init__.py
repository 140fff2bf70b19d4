"""
Models package

All database models live in separate files:
- note.py (Note, ChecklistItem, NoteTag)
- tag.py
- user.py
"""

from .user import User
from .note import Note, ChecklistItem, NoteTag
from .tag import Tag

__all__ = [
    "User",
    "Note",
    "ChecklistItem",
    "NoteTag",
    "Tag",
]
