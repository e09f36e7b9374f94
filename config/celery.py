import os

from celery import Celery
from celery.schedules import crontab  # type: ignore
from celery.signals import worker_ready  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("inhalestays")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Expire finished paid bookings and hide stale unpaid ones - every 10 minutes
    "expire-completed-bookings": {
        "task": "bookings.expire_completed_bookings",
        "schedule": crontab(minute="*/10"),
    },
    # Roll back bookings left unpaid for too long - every minute
    "rollback-unpaid-bookings": {
        "task": "bookings.rollback_unpaid_bookings",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
    # Release hostel beds whose 10 minute hold ran out - every minute
    "release-expired-bed-reservations": {
        "task": "bookings.release_expired_bed_reservations",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
}

app.conf.timezone = "Asia/Kolkata"


@worker_ready.connect
def run_booking_jobs_on_startup(sender, **kwargs):  # type: ignore
    """Run both booking jobs once when a worker comes up."""
    sender.app.send_task("bookings.expire_completed_bookings")
    sender.app.send_task("bookings.rollback_unpaid_bookings")
