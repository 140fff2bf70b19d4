"""Per-user tag CRUD. Tags are matched to notes by name only."""
import logging

from notesync.exceptions import AuthorizationException, NotFoundException, ValidationException
from notesync.repositories.tag_repository import TagRepository
from notesync.utils import parse_id

logger = logging.getLogger('main')


def _clean_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValidationException("Tag name is required")
    return name.strip()


def _coerce_tag_id(tag_id):
    parsed = parse_id(tag_id)
    if parsed is None:
        raise NotFoundException(f"Tag with ID '{tag_id}' not found")
    return parsed


class TagService:

    def create(self, user_id, name):
        tag = TagRepository.create(name=_clean_name(name), user_id=user_id)
        logger.info(f"Tag created for user {user_id}")
        return tag

    def list(self, user_id):
        return TagRepository.get_all_by_user(user_id)

    def get_by_id(self, user_id, tag_id):
        """Unlike notes, a tag owned by another user is reported as forbidden"""
        tag = TagRepository.get_by_id(_coerce_tag_id(tag_id))
        if tag is None:
            raise NotFoundException(f"Tag with ID '{tag_id}' not found")
        if tag.user_id != user_id:
            raise AuthorizationException("Access denied")
        logger.info(f"Tag {tag.id} is found for user {user_id}")
        return tag

    def _get_owned(self, user_id, tag_id):
        tag = TagRepository.get_by_user_and_id(user_id, _coerce_tag_id(tag_id))
        if tag is None:
            raise NotFoundException("Tag not found or not authorized")
        return tag

    def update(self, user_id, tag_id, name):
        name = _clean_name(name)
        tag = self._get_owned(user_id, tag_id)
        tag = TagRepository.update(tag.id, name=name)
        logger.info(f"Tag {tag.id} updated for user {user_id}")
        return tag

    def delete(self, user_id, tag_id):
        tag = self._get_owned(user_id, tag_id)
        TagRepository.delete(tag.id)
        logger.info(f"Tag {tag_id} deleted for user {user_id}")
        return True
