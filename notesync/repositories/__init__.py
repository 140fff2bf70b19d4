"""
Repositories package

Each repository encapsulates database operations for a model:
- note_repository.py (notes and their checklist items)
- tag_repository.py
- user_repository.py

Usage:
    from notesync.repositories.note_repository import NoteRepository
    notes = NoteRepository.get_all_by_user(user_id, tag="work")
"""
