"""
NoteSync - personal notes with checklists, reminders and realtime sync

Usage:
    from notesync.app import create_app
    app = create_app()
"""
