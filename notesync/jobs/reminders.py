"""
Reminder job - finds due reminders and notifies the note owner
"""
import logging

from notesync.constants import EVENT_REMINDER, REMINDER_MESSAGE
from notesync.db import db
from notesync.metrics import reminders_sent_total, reminder_failures_total
from notesync.repositories.note_repository import NoteRepository
from notesync.utils import now_utc, isoformat_utc

logger = logging.getLogger('jobs')


class ReminderDispatcher:
    """One reminder tick, callable directly or from the job scheduler.

    Args:
        broadcaster: EventBroadcaster receiving reminderNotification events
        due_query: callable(now) -> notes with a due, undelivered reminder
        mark_notified: callable(note_id) flagging a reminder as delivered
        clock: callable returning the current aware UTC datetime
    """

    def __init__(self, broadcaster, due_query=None, mark_notified=None, clock=None):
        self.broadcaster = broadcaster
        self.due_query = due_query or NoteRepository.get_due_reminders
        self.mark_notified = mark_notified or NoteRepository.mark_notified
        self.clock = clock or now_utc

    def run_once(self, now=None):
        """
        Emit one reminderNotification per due note, then mark it notified.

        A failing due-set query abandons this tick only. A failure marking one
        note is logged and does not stop the others.

        Returns:
            int: number of reminders delivered and marked
        """
        now = now or self.clock()
        try:
            notes = self.due_query(now)
        except Exception as e:
            logger.error(f"Error fetching notes with reminders: {e}")
            db.session.rollback()
            return 0

        sent = 0
        for note in notes:
            note_id = note.id
            payload = {
                'noteId': note_id,
                'title': note.title,
                'content': note.content,
                'reminderTime': isoformat_utc(note.reminder),
                'message': REMINDER_MESSAGE,
            }
            self.broadcaster.publish(EVENT_REMINDER, payload, user_id=note.user_id)
            reminders_sent_total.inc()
            logger.info(f"Reminder notification sent for note with ID: {note_id}")

            try:
                self.mark_notified(note_id)
            except Exception as e:
                reminder_failures_total.inc()
                logger.error(f"Error marking note with ID {note_id} as notified: {e}")
                continue
            sent += 1

        if notes:
            logger.info(f"Reminder tick processed {len(notes)} due notes, {sent} marked notified")
        return sent
