"""
Jobs package - background tasks and scheduling
"""
from notesync.jobs.reminders import ReminderDispatcher
from notesync.jobs.scheduler import JobScheduler

__all__ = ['ReminderDispatcher', 'JobScheduler']
