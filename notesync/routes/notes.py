"""
Note Routes - CRUD, filters, ordering, reminders and checklist of the
current user's notes
"""

from flask import Blueprint, request
from flask_login import current_user, login_required

from notesync.api_responses import success_response, handle_api_errors
from notesync.exceptions import ValidationException
from notesync.services import get_note_service
from notesync.services.note_service import parse_note_filters

notes_bp = Blueprint("notes", __name__, url_prefix="/api/notes")


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")
    return data


@notes_bp.post("")
@login_required
@handle_api_errors
def create_note_api():
    """Create a note"""
    note = get_note_service().create(current_user.id, _json_body())
    return success_response(data=note.to_dict(), status_code=201)


@notes_bp.get("")
@login_required
@handle_api_errors
def list_notes_api():
    """List notes, optionally filtered by title, tag, done and isArchived"""
    filters = parse_note_filters(request.args)
    notes = get_note_service().list(current_user.id, **filters)
    return success_response(data=[note.to_dict() for note in notes])


@notes_bp.patch("/reorder")
@login_required
@handle_api_errors
def reorder_notes_api():
    """Reorder notes from a list of IDs"""
    data = _json_body()
    reordered = get_note_service().reorder(current_user.id, data.get("orderedNotes"))
    return success_response(data={"reordered": reordered}, message="Notes ordered successfully.")


@notes_bp.get("/<int:note_id>")
@login_required
@handle_api_errors
def get_note_api(note_id):
    note = get_note_service().get(current_user.id, note_id)
    return success_response(data=note.to_dict())


@notes_bp.put("/<int:note_id>")
@login_required
@handle_api_errors
def update_note_api(note_id):
    """Update a note's mutable fields"""
    note = get_note_service().update(current_user.id, note_id, _json_body())
    return success_response(data=note.to_dict())


@notes_bp.delete("/<int:note_id>")
@login_required
@handle_api_errors
def delete_note_api(note_id):
    get_note_service().delete(current_user.id, note_id)
    return success_response(message="Deleted note successfully!")


@notes_bp.patch("/<int:note_id>/archive")
@login_required
@handle_api_errors
def toggle_archive_api(note_id):
    """Archive or unarchive a note"""
    note = get_note_service().toggle_archive(current_user.id, note_id)
    return success_response(data=note.to_dict())


@notes_bp.patch("/<int:note_id>/pin")
@login_required
@handle_api_errors
def toggle_pin_api(note_id):
    """Pin or unpin a note"""
    note = get_note_service().toggle_pin(current_user.id, note_id)
    message = "Note pinned successfully." if note.is_pinned else "Note unpinned successfully."
    return success_response(data=note.to_dict(), message=message)


@notes_bp.patch("/<int:note_id>/reminder")
@login_required
@handle_api_errors
def set_reminder_api(note_id):
    data = _json_body()
    note = get_note_service().set_reminder(current_user.id, note_id, data.get("reminder"))
    return success_response(data=note.to_dict(), message="Reminder set successfully.")


@notes_bp.post("/<int:note_id>/checklist")
@login_required
@handle_api_errors
def add_checklist_item_api(note_id):
    data = _json_body()
    note = get_note_service().add_checklist_item(current_user.id, note_id, data.get("item"))
    return success_response(data=note.to_dict(), status_code=201)


@notes_bp.get("/<int:note_id>/checklist")
@login_required
@handle_api_errors
def get_checklist_items_api(note_id):
    items = get_note_service().get_checklist_items(current_user.id, note_id)
    return success_response(data=[item.to_dict() for item in items])


@notes_bp.patch("/<int:note_id>/checklist/<int:item_id>")
@login_required
@handle_api_errors
def toggle_checklist_item_api(note_id, item_id):
    note = get_note_service().toggle_checklist_item(current_user.id, note_id, item_id)
    return success_response(data=note.to_dict())


@notes_bp.delete("/<int:note_id>/checklist/<int:item_id>")
@login_required
@handle_api_errors
def remove_checklist_item_api(note_id, item_id):
    note = get_note_service().remove_checklist_item(current_user.id, note_id, item_id)
    return success_response(data=note.to_dict())
