"""
Event Broadcaster - process-wide fan-out of note events to connected subscribers

Subscribers are plain callables ``deliver(event, payload)``. The Socket.IO
transport registers one per connected socket; tests register recorders.
Nothing is queued or replayed across restarts: an event reaches only the
subscribers that are registered when it is published.

Each subscriber owns a queue drained by its own daemon thread, so ``publish``
only enqueues and a slow or stuck subscriber never holds up the caller (a
request handler or the reminder tick) nor the other subscribers.
"""
import logging
import queue
import threading
import time
import uuid

from notesync.metrics import events_published_total, event_delivery_failures_total, realtime_subscribers

logger = logging.getLogger('main')

# Seconds stop() waits for each delivery thread to finish
STOP_JOIN_TIMEOUT = 2.0

_CLOSE = object()


class Subscription:
    """One subscriber plus the worker thread that delivers to it"""

    def __init__(self, id, deliver, user_id=None):
        self.id = id
        self.deliver = deliver
        self.user_id = user_id
        self.queue = queue.Queue()
        self._thread = threading.Thread(target=self._delivery_loop, daemon=True, name=f"subscriber-{id[:8]}")

    def accepts(self, user_id):
        # Anonymous subscribers only exist when realtime auth is disabled; they see everything
        return user_id is None or self.user_id is None or self.user_id == user_id

    def start(self):
        self._thread.start()

    def enqueue(self, event, payload):
        self.queue.put((event, payload))

    def close(self):
        """Let the worker finish what is queued, then exit"""
        self.queue.put(_CLOSE)

    def join(self, timeout=None):
        self._thread.join(timeout=timeout)

    def wait_idle(self, deadline):
        """Block until every queued event was handled or `deadline` (monotonic) passes"""
        with self.queue.all_tasks_done:
            while self.queue.unfinished_tasks:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self.queue.all_tasks_done.wait(remaining)
        return True

    def _delivery_loop(self):
        while True:
            item = self.queue.get()
            try:
                if item is _CLOSE:
                    return
                event, payload = item
                try:
                    self.deliver(event, payload)
                except Exception as e:
                    event_delivery_failures_total.labels(event=event).inc()
                    logger.error(f"Delivery of '{event}' to subscriber {self.id} failed: {e}")
            finally:
                self.queue.task_done()


class EventBroadcaster:
    """Publish/subscribe service with an explicit start/stop lifecycle"""

    def __init__(self):
        self._subscriptions = {}
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self):
        return self._running

    @property
    def subscriber_count(self):
        with self._lock:
            return len(self._subscriptions)

    def start(self):
        self._running = True
        logger.info("Event broadcaster started")

    def stop(self):
        """Stop delivering, drop every subscriber and join their delivery threads"""
        with self._lock:
            self._running = False
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        realtime_subscribers.set(0)

        for subscription in subscriptions:
            subscription.close()
        for subscription in subscriptions:
            subscription.join(timeout=STOP_JOIN_TIMEOUT)
        logger.info("Event broadcaster stopped")

    def subscribe(self, deliver, user_id=None):
        subscription_id = uuid.uuid4().hex
        subscription = Subscription(subscription_id, deliver, user_id)
        subscription.start()
        with self._lock:
            self._subscriptions[subscription_id] = subscription
            count = len(self._subscriptions)
        realtime_subscribers.set(count)
        logger.debug(f"Subscriber {subscription_id} joined (user={user_id}, total={count})")
        return subscription_id

    def unsubscribe(self, subscription_id):
        with self._lock:
            removed = self._subscriptions.pop(subscription_id, None)
            count = len(self._subscriptions)
        realtime_subscribers.set(count)
        if removed:
            removed.close()
            logger.debug(f"Subscriber {subscription_id} left (total={count})")
        return removed is not None

    def publish(self, event, payload, user_id=None):
        """
        Queue `event` for every matching subscriber connected right now.

        When `user_id` is given only that user's subscribers receive it.
        Never raises and never waits on a subscriber: delivery happens on
        each subscriber's own thread, failures there are logged and counted.

        Returns:
            int: number of subscribers the event was queued for
        """
        if not self._running:
            logger.debug(f"Broadcaster stopped, dropping '{event}'")
            return 0

        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.accepts(user_id)]

        events_published_total.labels(event=event).inc()
        for subscription in targets:
            subscription.enqueue(event, payload)

        logger.debug(f"Published '{event}' to {len(targets)} subscribers")
        return len(targets)

    def flush(self, timeout=5.0):
        """
        Wait until every subscriber has handled what was queued so far.

        Returns:
            bool: False when `timeout` expired first
        """
        deadline = time.monotonic() + timeout
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        return all(subscription.wait_idle(deadline) for subscription in subscriptions)
