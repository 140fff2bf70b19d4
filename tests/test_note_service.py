"""
Tests for the note lifecycle service
"""
from types import SimpleNamespace

import pytest
from datetime import datetime, timedelta, timezone

from notesync.exceptions import NotFoundException, ValidationException
from notesync.models import ChecklistItem, NoteTag
from notesync.repositories.note_repository import NoteRepository
from notesync.services.note_service import normalize_note_fields, parse_note_filters
from notesync.utils import ensure_utc


class TestCreateNote:
    """Tests for note creation"""

    def test_create_applies_defaults(self, notes, user):
        """Test a note created with only a title gets the default values"""
        note = notes.create(user.id, {'title': 'Groceries'})
        data = note.to_dict()

        assert data['title'] == 'Groceries'
        assert data['userId'] == user.id
        assert data['color'] == '#ffffff'
        assert data['isArchived'] is False
        assert data['isPinned'] is False
        assert data['order'] == 0
        assert data['notified'] is False
        assert data['reminder'] is None
        assert data['tags'] == []
        assert data['checklist'] == []
        assert data['createdAt'] is not None

    def test_create_with_tags_and_checklist(self, notes, user):
        """Test tags and checklist are stored in the given order"""
        note = notes.create(user.id, {
            'title': 'Trip',
            'tags': ['travel', 'summer'],
            'checklist': [{'item': 'passport'}, {'item': 'tickets', 'done': True}],
        })

        data = note.to_dict()
        assert data['tags'] == ['travel', 'summer']
        assert [(i['item'], i['done']) for i in data['checklist']] == [('passport', False), ('tickets', True)]

    def test_create_requires_title(self, notes, user):
        """Test missing or blank title is rejected"""
        with pytest.raises(ValidationException):
            notes.create(user.id, {'content': 'no title'})
        with pytest.raises(ValidationException):
            notes.create(user.id, {'title': '   '})

    def test_create_emits_created(self, notes, user, recorder):
        """Test creation publishes a noteUpdated event with the note"""
        note = notes.create(user.id, {'title': 'Hello'})

        events = recorder.of('noteUpdated')
        assert len(events) == 1
        assert events[0]['action'] == 'created'
        assert events[0]['note']['id'] == note.id

    def test_client_cannot_choose_owner(self, notes, user, other_user):
        """Test userId in the body is ignored"""
        note = notes.create(user.id, {'title': 'Mine', 'userId': other_user.id})
        assert note.user_id == user.id


class TestListNotes:
    """Tests for listing and filtering"""

    @pytest.fixture
    def seeded(self, notes, user):
        shopping = notes.create(user.id, {
            'title': 'Shopping List',
            'tags': ['home'],
            'checklist': [{'item': 'milk', 'done': True}, {'item': 'bread'}],
        })
        work = notes.create(user.id, {'title': 'Work plan', 'tags': ['work'], 'checklist': [{'item': 'mail'}]})
        old = notes.create(user.id, {'title': 'Old stuff', 'isArchived': True})
        return shopping, work, old

    def test_title_filter_is_case_insensitive_substring(self, notes, user, seeded):
        """Test title filter matches anywhere, ignoring case"""
        result = notes.list(user.id, title='LIST')
        assert [n.title for n in result] == ['Shopping List']

    def test_title_filter_folds_non_ascii_case(self, notes, user):
        """Test accented and special letters match regardless of case"""
        notes.create(user.id, {'title': 'Éxito na REUNIÃO'})
        notes.create(user.id, {'title': 'Große Straße'})

        assert [n.title for n in notes.list(user.id, title='reunião')] == ['Éxito na REUNIÃO']
        assert [n.title for n in notes.list(user.id, title='éxito')] == ['Éxito na REUNIÃO']
        assert [n.title for n in notes.list(user.id, title='STRASSE')] == ['Große Straße']

    def test_title_filter_follows_renames(self, notes, user):
        note = notes.create(user.id, {'title': 'Draft'})
        notes.update(user.id, note.id, {'title': 'ÁRVORE'})

        assert [n.id for n in notes.list(user.id, title='árvore')] == [note.id]
        assert notes.list(user.id, title='draft') == []

    def test_title_filter_escapes_wildcards(self, notes, user, seeded):
        """Test % in the title filter is matched literally"""
        assert notes.list(user.id, title='%') == []

    def test_tag_filter(self, notes, user, seeded):
        """Test tag filter requires an exact tag"""
        assert [n.title for n in notes.list(user.id, tag='work')] == ['Work plan']
        assert notes.list(user.id, tag='wor') == []

    def test_done_filter_matches_any_item(self, notes, user, seeded):
        """Test done filter matches notes with at least one item in that state"""
        done_titles = {n.title for n in notes.list(user.id, done=True)}
        not_done_titles = {n.title for n in notes.list(user.id, done=False)}

        assert done_titles == {'Shopping List'}
        assert not_done_titles == {'Shopping List', 'Work plan'}

    def test_archived_filter(self, notes, user, seeded):
        """Test isArchived filter"""
        assert [n.title for n in notes.list(user.id, is_archived=True)] == ['Old stuff']
        assert len(notes.list(user.id, is_archived=False)) == 2

    def test_no_filter_returns_all(self, notes, user, seeded):
        """Test archived notes are included when no filter is given"""
        assert len(notes.list(user.id)) == 3

    def test_pinned_first_then_order(self, notes, user):
        """Test pinned notes come first, each group sorted by order"""
        a = notes.create(user.id, {'title': 'a', 'order': 2})
        b = notes.create(user.id, {'title': 'b', 'order': 1})
        c = notes.create(user.id, {'title': 'c', 'order': 5, 'isPinned': True})
        d = notes.create(user.id, {'title': 'd', 'order': 0, 'isPinned': True})

        assert [n.id for n in notes.list(user.id)] == [d.id, c.id, b.id, a.id]

    def test_other_users_notes_not_listed(self, notes, user, other_user, seeded):
        """Test listing is scoped to the requesting user"""
        notes.create(other_user.id, {'title': 'Shopping for Bob'})

        assert len(notes.list(other_user.id)) == 1
        assert all(n.user_id == user.id for n in notes.list(user.id, title='shopping'))


class TestFilterParsing:
    """Tests for query-string filter parsing"""

    def test_parses_all_filters(self):
        filters = parse_note_filters({'title': ' plan ', 'tag': 'work', 'done': 'true', 'isArchived': 'false'})
        assert filters == {'title': 'plan', 'tag': 'work', 'done': True, 'is_archived': False}

    def test_empty_values_are_ignored(self):
        assert parse_note_filters({'title': '', 'tag': '  ', 'done': ''}) == {}

    def test_bad_boolean_rejected(self):
        with pytest.raises(ValidationException):
            parse_note_filters({'done': 'maybe'})


class TestFieldNormalization:
    """Tests for wire-format field validation"""

    def test_unknown_fields_dropped(self):
        assert normalize_note_fields({'title': 'x', 'id': 99, 'notified': True}) == {'title': 'x'}

    def test_snake_and_camel_keys(self):
        values = normalize_note_fields({'isPinned': True, 'is_archived': True})
        assert values == {'is_pinned': True, 'is_archived': True}

    @pytest.mark.parametrize('fields', [
        {'tags': 'work'},
        {'tags': ['ok', 3]},
        {'checklist': ['milk']},
        {'checklist': [{'item': 'milk', 'done': 'yes'}]},
        {'isPinned': 'true'},
        {'order': '1'},
        {'reminder': 'tomorrow'},
        {'color': ''},
    ])
    def test_invalid_values_rejected(self, fields):
        with pytest.raises(ValidationException):
            normalize_note_fields(fields)


class TestOwnership:
    """Tests that a note owned by another user looks missing"""

    def test_get_update_delete_hidden(self, notes, user, other_user):
        note = notes.create(user.id, {'title': 'Private'})

        with pytest.raises(NotFoundException):
            notes.get(other_user.id, note.id)
        with pytest.raises(NotFoundException):
            notes.update(other_user.id, note.id, {'title': 'Hacked'})
        with pytest.raises(NotFoundException):
            notes.delete(other_user.id, note.id)
        with pytest.raises(NotFoundException):
            notes.toggle_pin(other_user.id, note.id)
        with pytest.raises(NotFoundException):
            notes.set_reminder(other_user.id, note.id, '2030-01-01T00:00:00Z')

        assert notes.get(user.id, note.id).title == 'Private'

    def test_invalid_id_is_not_found(self, notes, user):
        with pytest.raises(NotFoundException):
            notes.get(user.id, 'abc')
        with pytest.raises(NotFoundException):
            notes.get(user.id, 12345)


class TestUpdateNote:
    """Tests for partial updates"""

    def test_update_changes_only_given_fields(self, notes, user, recorder):
        note = notes.create(user.id, {'title': 'Draft', 'content': 'body', 'color': '#000000'})
        recorder.clear()

        updated = notes.update(user.id, note.id, {'title': 'Final'})

        assert updated.title == 'Final'
        assert updated.content == 'body'
        assert updated.color == '#000000'
        assert recorder.actions() == ['updated']

    def test_update_replaces_tags_and_checklist(self, notes, user):
        note = notes.create(user.id, {'title': 'x', 'tags': ['a', 'b'], 'checklist': [{'item': 'one'}]})

        notes.update(user.id, note.id, {'tags': ['c'], 'checklist': [{'item': 'two', 'done': True}]})

        data = notes.get(user.id, note.id).to_dict()
        assert data['tags'] == ['c']
        assert [(i['item'], i['done']) for i in data['checklist']] == [('two', True)]
        assert NoteTag.query.count() == 1
        assert ChecklistItem.query.count() == 1

    def test_new_reminder_resets_notified(self, notes, user):
        note = notes.create(user.id, {'title': 'x', 'reminder': '2020-01-01T00:00:00Z'})
        from notesync.repositories.note_repository import NoteRepository
        NoteRepository.mark_notified(note.id)
        assert notes.get(user.id, note.id).notified is True

        updated = notes.update(user.id, note.id, {'reminder': '2031-05-01T08:30:00+02:00'})

        assert updated.notified is False
        assert ensure_utc(updated.reminder) == datetime(2031, 5, 1, 6, 30, tzinfo=timezone.utc)

    def test_update_rejects_blank_title(self, notes, user):
        note = notes.create(user.id, {'title': 'x'})
        with pytest.raises(ValidationException):
            notes.update(user.id, note.id, {'title': ''})
        assert notes.get(user.id, note.id).title == 'x'


class TestDeleteNote:

    def test_delete_removes_note_and_children(self, notes, user, recorder):
        note = notes.create(user.id, {'title': 'x', 'tags': ['t'], 'checklist': [{'item': 'i'}]})
        note_id = note.id
        recorder.clear()

        assert notes.delete(user.id, note_id) == note_id

        with pytest.raises(NotFoundException):
            notes.get(user.id, note_id)
        assert ChecklistItem.query.count() == 0
        assert NoteTag.query.count() == 0
        assert recorder.of('noteUpdated') == [{'action': 'deleted', 'noteId': note_id}]


class TestToggles:
    """Tests for archive and pin toggles"""

    def test_archive_toggles_back_and_forth(self, notes, user, recorder):
        note = notes.create(user.id, {'title': 'x'})
        recorder.clear()

        assert notes.toggle_archive(user.id, note.id).is_archived is True
        assert notes.toggle_archive(user.id, note.id).is_archived is False
        assert recorder.actions() == ['archived', 'archived']

    def test_pin_toggles(self, notes, user, recorder):
        note = notes.create(user.id, {'title': 'x'})
        recorder.clear()

        assert notes.toggle_pin(user.id, note.id).is_pinned is True
        assert notes.toggle_pin(user.id, note.id).is_pinned is False
        assert recorder.actions() == ['updated', 'updated']

    def test_concurrent_toggles_from_stale_reads_last_write_wins(self, notes, user, monkeypatch):
        """
        Test two toggles that both read the note before either wrote.

        Each toggle writes the flipped value it computed from its own read, so
        the later write wins and one flip is lost: the note ends up pinned
        instead of back to unpinned. Rejecting the second write would need a
        version column (or ETag) checked in the UPDATE.
        """
        note = notes.create(user.id, {'title': 'x'})
        stale = SimpleNamespace(id=note.id, is_pinned=False, is_archived=False)

        with monkeypatch.context() as m:
            m.setattr(NoteRepository, 'get_by_user_and_id', staticmethod(lambda user_id, id: stale))
            first = notes.toggle_pin(user.id, note.id)
            second = notes.toggle_pin(user.id, note.id)

        assert first.is_pinned is True
        assert second.is_pinned is True
        assert notes.get(user.id, note.id).is_pinned is True


class TestReorder:
    """Tests for batch reordering"""

    def test_order_follows_list_position(self, notes, user, recorder):
        a = notes.create(user.id, {'title': 'a'})
        b = notes.create(user.id, {'title': 'b'})
        c = notes.create(user.id, {'title': 'c'})
        recorder.clear()

        assert notes.reorder(user.id, [c.id, a.id, b.id]) == 3

        assert [n.id for n in notes.list(user.id)] == [c.id, a.id, b.id]
        assert [notes.get(user.id, i).order for i in (c.id, a.id, b.id)] == [0, 1, 2]
        assert recorder.of('noteUpdated') == [{'action': 'reordered', 'noteIds': [c.id, a.id, b.id]}]

    def test_reorder_is_idempotent(self, notes, user):
        a = notes.create(user.id, {'title': 'a'})
        b = notes.create(user.id, {'title': 'b'})

        notes.reorder(user.id, [b.id, a.id])
        first = [(n.id, n.order) for n in notes.list(user.id)]
        notes.reorder(user.id, [b.id, a.id])

        assert [(n.id, n.order) for n in notes.list(user.id)] == first

    def test_foreign_and_invalid_ids_skipped(self, notes, user, other_user):
        mine = notes.create(user.id, {'title': 'mine'})
        theirs = notes.create(other_user.id, {'title': 'theirs', 'order': 7})

        assert notes.reorder(user.id, [theirs.id, 'junk', 999, mine.id]) == 1

        assert notes.get(user.id, mine.id).order == 3
        assert notes.get(other_user.id, theirs.id).order == 7

    def test_reorder_requires_list(self, notes, user):
        with pytest.raises(ValidationException):
            notes.reorder(user.id, 'not-a-list')

    def test_fractional_ids_are_not_truncated(self, notes, user):
        note = notes.create(user.id, {'title': 'x', 'order': 5})

        assert notes.reorder(user.id, [note.id + 0.7, f"{note.id}.0", True]) == 0
        assert notes.get(user.id, note.id).order == 5

    def test_digit_string_ids_accepted(self, notes, user):
        a = notes.create(user.id, {'title': 'a'})
        b = notes.create(user.id, {'title': 'b'})

        assert notes.reorder(user.id, [str(b.id), str(a.id)]) == 2
        assert [n.id for n in notes.list(user.id)] == [b.id, a.id]

    def test_get_rejects_non_integer_id(self, notes, user):
        note = notes.create(user.id, {'title': 'x'})

        with pytest.raises(NotFoundException):
            notes.get(user.id, f"{note.id}.0")
        with pytest.raises(NotFoundException):
            notes.get(user.id, float(note.id))


class TestReminder:

    def test_set_reminder(self, notes, user, recorder):
        note = notes.create(user.id, {'title': 'x'})
        when = datetime.now(timezone.utc) + timedelta(hours=1)
        recorder.clear()

        updated = notes.set_reminder(user.id, note.id, when.isoformat())

        assert ensure_utc(updated.reminder) == when
        assert updated.notified is False
        assert recorder.actions() == ['updated']

    @pytest.mark.parametrize('value', [None, '', 'next tuesday', 42])
    def test_invalid_reminder_rejected(self, notes, user, value):
        note = notes.create(user.id, {'title': 'x'})
        with pytest.raises(ValidationException):
            notes.set_reminder(user.id, note.id, value)


class TestChecklist:
    """Tests for the embedded checklist"""

    def test_add_appends_item(self, notes, user, recorder):
        note = notes.create(user.id, {'title': 'x', 'checklist': [{'item': 'first'}]})
        recorder.clear()

        note = notes.add_checklist_item(user.id, note.id, 'second')

        assert [i.item for i in note.checklist] == ['first', 'second']
        assert note.checklist[1].done is False
        assert recorder.actions() == ['addChecklist']

    def test_add_requires_text(self, notes, user):
        note = notes.create(user.id, {'title': 'x'})
        with pytest.raises(ValidationException):
            notes.add_checklist_item(user.id, note.id, '  ')

    def test_toggle_and_remove(self, notes, user):
        note = notes.create(user.id, {'title': 'x', 'checklist': [{'item': 'a'}, {'item': 'b'}]})
        first_id, second_id = [i.id for i in note.checklist]

        note = notes.toggle_checklist_item(user.id, note.id, first_id)
        assert [i.done for i in note.checklist] == [True, False]

        note = notes.remove_checklist_item(user.id, note.id, first_id)
        assert [i.id for i in note.checklist] == [second_id]
        assert [i.item for i in notes.get_checklist_items(user.id, note.id)] == ['b']

    def test_item_of_another_note_not_found(self, notes, user):
        first = notes.create(user.id, {'title': 'x', 'checklist': [{'item': 'a'}]})
        second = notes.create(user.id, {'title': 'y'})

        with pytest.raises(NotFoundException):
            notes.toggle_checklist_item(user.id, second.id, first.checklist[0].id)

    def test_checklist_of_foreign_note_not_found(self, notes, user, other_user):
        note = notes.create(user.id, {'title': 'x'})
        with pytest.raises(NotFoundException):
            notes.add_checklist_item(other_user.id, note.id, 'sneaky')
        with pytest.raises(NotFoundException):
            notes.get_checklist_items(other_user.id, note.id)
