"""
Background Jobs - scheduling of recurring tasks
"""
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
import logging

logger = logging.getLogger('main')

REMINDER_JOB_ID = 'check_reminders'


class JobScheduler:
    """Owns the background scheduler and its recurring jobs"""

    def __init__(self, interval_seconds=60):
        self.scheduler = BackgroundScheduler(timezone='UTC')
        self.interval_seconds = interval_seconds
        self._jobs_registered = False

    @property
    def running(self):
        return self.scheduler.running

    def init_app(self, app, dispatcher):
        """Register jobs against the Flask app and start running them"""
        self._register_jobs(app, dispatcher)
        self.start()
        logger.info("Job scheduler initialized")

    def _register_jobs(self, app, dispatcher):
        """Register all scheduled jobs"""
        if self._jobs_registered:
            return

        # Due reminder scan (every interval_seconds, default 60)
        self.scheduler.add_job(
            func=self._check_reminders_job,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=REMINDER_JOB_ID,
            name='Check due reminders',
            args=[app, dispatcher],
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

        self._jobs_registered = True
        logger.info(f"Background jobs registered (reminders every {self.interval_seconds}s)")

    def _check_reminders_job(self, app, dispatcher):
        """Reminder tick inside an application context"""
        with app.app_context():
            dispatcher.run_once()

    def start(self):
        if not self.scheduler.running:
            self.scheduler.start()

    def shutdown(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Job scheduler shutdown")
