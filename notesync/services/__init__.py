from flask import current_app


def get_note_service():
    """NoteService bound to the current app's broadcaster"""
    return current_app.extensions["notesync.notes"]


def get_tag_service():
    return current_app.extensions["notesync.tags"]


def get_broadcaster():
    return current_app.extensions["notesync.broadcaster"]
