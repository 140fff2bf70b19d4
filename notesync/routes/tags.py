"""
Tag Routes - the current user's tags
"""

from flask import Blueprint, request
from flask_login import current_user, login_required

from notesync.api_responses import success_response, handle_api_errors
from notesync.services import get_tag_service

tags_bp = Blueprint("tags", __name__, url_prefix="/api/tags")


def _name_from_body():
    data = request.get_json(silent=True) or {}
    return data.get("name") if isinstance(data, dict) else None


@tags_bp.post("")
@login_required
@handle_api_errors
def create_tag_api():
    tag = get_tag_service().create(current_user.id, _name_from_body())
    return success_response(data=tag.to_dict(), status_code=201)


@tags_bp.get("")
@login_required
@handle_api_errors
def list_tags_api():
    tags = get_tag_service().list(current_user.id)
    return success_response(data=[tag.to_dict() for tag in tags])


@tags_bp.get("/<tag_id>")
@login_required
@handle_api_errors
def get_tag_api(tag_id):
    tag = get_tag_service().get_by_id(current_user.id, tag_id)
    return success_response(data=tag.to_dict())


@tags_bp.put("/<tag_id>")
@login_required
@handle_api_errors
def update_tag_api(tag_id):
    tag = get_tag_service().update(current_user.id, tag_id, _name_from_body())
    return success_response(data=tag.to_dict())


@tags_bp.delete("/<tag_id>")
@login_required
@handle_api_errors
def delete_tag_api(tag_id):
    get_tag_service().delete(current_user.id, tag_id)
    return success_response(message="Tag deleted successfully")
