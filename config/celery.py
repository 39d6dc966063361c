import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("hostbook")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Confirmed bookings whose end has passed -> completed, every 15 minutes
    "complete-finished-bookings": {
        "task": "bookings.complete_finished_bookings",
        "schedule": crontab(minute="*/15"),
    },
    # Rebuild the derived booked_ranges cache, nightly
    "rebuild-booked-ranges": {
        "task": "bookings.rebuild_booked_ranges",
        "schedule": crontab(minute=30, hour=3),
    },
}
