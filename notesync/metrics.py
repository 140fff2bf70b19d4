from prometheus_client import Counter, Gauge, generate_latest, CONTENT_TYPE_LATEST

# Realtime Metrics
events_published_total = Counter(
    "notesync_events_published_total", "Events handed to the broadcaster", ["event"]
)

event_delivery_failures_total = Counter(
    "notesync_event_delivery_failures_total", "Deliveries that raised in a subscriber", ["event"]
)

realtime_subscribers = Gauge("notesync_realtime_subscribers", "Currently connected realtime subscribers")

# Reminder Metrics
reminders_sent_total = Counter("notesync_reminders_sent_total", "Reminder notifications emitted")

reminder_failures_total = Counter(
    "notesync_reminder_failures_total", "Due reminders that could not be marked as notified"
)


def metrics_payload():
    """Prometheus exposition body and content type"""
    return generate_latest(), CONTENT_TYPE_LATEST
