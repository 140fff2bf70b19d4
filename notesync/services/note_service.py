"""Note lifecycle service.

Owns every operation on a user's notes: creation with defaults, filtered
listing, partial updates, archive/pin toggles, batch reordering, reminders and
the embedded checklist. Each operation is scoped to the requesting user; a
note owned by somebody else is reported exactly like a missing one.

Mutating operations publish a ``noteUpdated`` event (with an ``action``
discriminator) to the injected broadcaster, scoped to the note's owner.

Toggles are plain read-modify-write pairs without a version column. Two
concurrent toggles of the same note can lose one flip; the final state is
whichever write lands last.
"""
import logging

from notesync.constants import (
    ACTION_ADD_CHECKLIST,
    ACTION_ARCHIVED,
    ACTION_CREATED,
    ACTION_DELETED,
    ACTION_REORDERED,
    ACTION_UPDATED,
    EVENT_NOTE_UPDATED,
)
from notesync.exceptions import NotFoundException, ValidationException
from notesync.models.note import ChecklistItem
from notesync.repositories.note_repository import NoteRepository
from notesync.utils import ensure_utc, parse_bool, parse_id

logger = logging.getLogger('main')

# Wire name -> model attribute for fields a client may write
WRITABLE_FIELDS = {
    'title': 'title',
    'content': 'content',
    'tags': 'tags',
    'color': 'color',
    'checklist': 'checklist',
    'isArchived': 'is_archived',
    'is_archived': 'is_archived',
    'isPinned': 'is_pinned',
    'is_pinned': 'is_pinned',
    'order': 'order',
    'reminder': 'reminder',
}


def _coerce_id(value, label):
    parsed = parse_id(value)
    if parsed is None:
        raise NotFoundException(f"{label} with ID '{value}' not found")
    return parsed


def parse_reminder(value):
    reminder = ensure_utc(value)
    if reminder is None:
        raise ValidationException(f"Invalid reminder date-time: {value!r}")
    return reminder


def _clean_title(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationException("Note title is required")
    return value


def _clean_tags(value):
    if not isinstance(value, list):
        raise ValidationException("tags must be a list of strings")
    tags = []
    for tag in value:
        if not isinstance(tag, str):
            raise ValidationException("tags must be a list of strings")
        tag = tag.strip()
        if tag:
            tags.append(tag)
    return tags


def _clean_checklist(value):
    if not isinstance(value, list):
        raise ValidationException("checklist must be a list of items")
    items = []
    for position, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise ValidationException("checklist entries must be objects with an 'item' field")
        done = entry.get('done', False)
        if not isinstance(done, bool):
            raise ValidationException("checklist 'done' must be a boolean")
        items.append(ChecklistItem(item=entry.get('item'), done=done, position=position))
    return items


def _clean_bool(name, value):
    if not isinstance(value, bool):
        raise ValidationException(f"{name} must be a boolean")
    return value


def _clean_field(attr, value):
    if attr == 'title':
        return _clean_title(value)
    if attr == 'content':
        if value is not None and not isinstance(value, str):
            raise ValidationException("content must be a string")
        return value
    if attr == 'tags':
        return _clean_tags(value)
    if attr == 'color':
        if not isinstance(value, str) or not value.strip():
            raise ValidationException("color must be a non-empty string")
        return value.strip()
    if attr == 'checklist':
        return _clean_checklist(value)
    if attr in ('is_archived', 'is_pinned'):
        return _clean_bool(attr, value)
    if attr == 'order':
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationException("order must be an integer")
        return value
    if attr == 'reminder':
        return None if value is None else parse_reminder(value)
    return value


def normalize_note_fields(fields):
    """Map wire-format fields onto model attributes, validating each one"""
    if not isinstance(fields, dict):
        raise ValidationException("Request body must be a JSON object")
    values = {}
    for key, value in fields.items():
        attr = WRITABLE_FIELDS.get(key)
        if attr is None:
            continue
        values[attr] = _clean_field(attr, value)
    return values


def parse_note_filters(args):
    """Translate query-string filters (title, tag, done, isArchived) for listing"""
    filters = {}
    title = args.get('title')
    if title and title.strip():
        filters['title'] = title.strip()
    tag = args.get('tag')
    if tag and tag.strip():
        filters['tag'] = tag.strip()
    try:
        if args.get('done') not in (None, ''):
            filters['done'] = parse_bool(args.get('done'))
        archived = args.get('isArchived', args.get('archived'))
        if archived not in (None, ''):
            filters['is_archived'] = parse_bool(archived)
    except ValueError as e:
        raise ValidationException(str(e))
    return filters


class NoteService:
    """User-scoped note operations that keep connected clients in sync"""

    def __init__(self, broadcaster):
        self.broadcaster = broadcaster

    def _get_owned(self, user_id, note_id):
        note_id = _coerce_id(note_id, 'Note')
        note = NoteRepository.get_by_user_and_id(user_id, note_id)
        if note is None:
            raise NotFoundException(f"Note with ID '{note_id}' not found")
        return note

    def _emit(self, action, user_id, note=None, **extra):
        payload = {'action': action}
        if note is not None:
            payload['note'] = note.to_dict()
        payload.update(extra)
        self.broadcaster.publish(EVENT_NOTE_UPDATED, payload, user_id=user_id)

    def create(self, user_id, fields):
        values = normalize_note_fields(fields)
        if 'title' not in values:
            raise ValidationException("Note title is required")

        note = NoteRepository.create(user_id=user_id, **values)
        logger.info(f"Created note with ID: {note.id} for user {user_id}")
        self._emit(ACTION_CREATED, user_id, note)
        return note

    def list(self, user_id, title=None, tag=None, done=None, is_archived=None):
        notes = NoteRepository.get_all_by_user(user_id, title=title, tag=tag, done=done, is_archived=is_archived)
        logger.debug(f"Listed {len(notes)} notes for user {user_id}")
        return notes

    def get(self, user_id, note_id):
        return self._get_owned(user_id, note_id)

    def update(self, user_id, note_id, patch):
        note = self._get_owned(user_id, note_id)
        values = normalize_note_fields(patch)
        if 'reminder' in values:
            # A new reminder has not been delivered yet
            values['notified'] = False

        note = NoteRepository.update(note.id, **values)
        logger.info(f"Updated note with ID: {note.id} for user {user_id}")
        self._emit(ACTION_UPDATED, user_id, note)
        return note

    def delete(self, user_id, note_id):
        note = self._get_owned(user_id, note_id)
        deleted_id = note.id
        NoteRepository.delete(deleted_id)
        logger.info(f"Deleted note with ID: {deleted_id} for user {user_id}")
        self._emit(ACTION_DELETED, user_id, noteId=deleted_id)
        return deleted_id

    def toggle_archive(self, user_id, note_id):
        note = self._get_owned(user_id, note_id)
        note = NoteRepository.update(note.id, is_archived=not note.is_archived)
        logger.info(f"Note {note.id} archived={note.is_archived} for user {user_id}")
        self._emit(ACTION_ARCHIVED, user_id, note)
        return note

    def toggle_pin(self, user_id, note_id):
        note = self._get_owned(user_id, note_id)
        note = NoteRepository.update(note.id, is_pinned=not note.is_pinned)
        logger.info(f"Note {note.id} pinned={note.is_pinned} for user {user_id}")
        self._emit(ACTION_UPDATED, user_id, note)
        return note

    def reorder(self, user_id, ordered_note_ids):
        """
        Assign order = index to each listed note the user owns.

        Ids the user does not own (or that do not exist) are skipped. Every
        note is written on its own, so a failure part way leaves earlier notes
        reordered; repeating the call converges to the same result.

        Returns:
            int: number of notes reordered
        """
        if not isinstance(ordered_note_ids, list):
            raise ValidationException("orderedNotes must be a list of note IDs")

        reordered = []
        for index, raw_id in enumerate(ordered_note_ids):
            try:
                note_id = _coerce_id(raw_id, 'Note')
            except NotFoundException:
                continue
            if NoteRepository.set_order(user_id, note_id, index):
                reordered.append(note_id)

        logger.info(f"Reordered {len(reordered)} notes for user {user_id}")
        self._emit(ACTION_REORDERED, user_id, noteIds=reordered)
        return len(reordered)

    def set_reminder(self, user_id, note_id, reminder):
        reminder = parse_reminder(reminder)
        note = self._get_owned(user_id, note_id)
        note = NoteRepository.update(note.id, reminder=reminder, notified=False)
        logger.info(f"Reminder set for note {note.id} at {reminder.isoformat()}")
        self._emit(ACTION_UPDATED, user_id, note)
        return note

    # Checklist

    def add_checklist_item(self, user_id, note_id, item):
        if not isinstance(item, str) or not item.strip():
            raise ValidationException("Checklist item text is required")
        note = self._get_owned(user_id, note_id)
        NoteRepository.add_checklist_item(note, item)
        logger.info(f"Added checklist item to note {note.id}")
        self._emit(ACTION_ADD_CHECKLIST, user_id, note)
        return note

    def get_checklist_items(self, user_id, note_id):
        return list(self._get_owned(user_id, note_id).checklist)

    def _get_item(self, note, item_id):
        item_id = _coerce_id(item_id, 'Checklist item')
        item = NoteRepository.get_checklist_item(note.id, item_id)
        if item is None:
            raise NotFoundException(f"Checklist item with ID '{item_id}' not found")
        return item

    def toggle_checklist_item(self, user_id, note_id, item_id):
        note = self._get_owned(user_id, note_id)
        item = self._get_item(note, item_id)
        NoteRepository.update_checklist_item(item, done=not item.done)
        logger.info(f"Checklist item {item.id} of note {note.id} done={item.done}")
        self._emit(ACTION_UPDATED, user_id, note)
        return note

    def remove_checklist_item(self, user_id, note_id, item_id):
        note = self._get_owned(user_id, note_id)
        item = self._get_item(note, item_id)
        NoteRepository.remove_checklist_item(note, item)
        logger.info(f"Removed checklist item {item_id} from note {note.id}")
        self._emit(ACTION_UPDATED, user_id, note)
        return note
