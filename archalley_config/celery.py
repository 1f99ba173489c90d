"""
archalley_config/celery.py
─────────────────────────────────────────────────────────────────────
Celery application configuration + beat schedule
"""
import os

from celery import Celery
from celery.schedules import crontab

# Read from the environment; development is the default
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "archalley_config.settings.development")

app = Celery("archalley")

# Read config from Django settings (CELERY_* keys)
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks in all INSTALLED_APPS
app.autodiscover_tasks()


# ── Periodic Task Schedule ────────────────────────────────────────────
app.conf.beat_schedule = {
    # Carts past their expiry → EXPIRED, every 10 minutes
    "expire-stale-carts": {
        "task":     "archalley.tasks.expire_stale_carts_task",
        "schedule": crontab(minute="*/10"),
    },
    # Submission deadline reminders, every day at 09:00
    "submission-reminders-daily": {
        "task":     "archalley.tasks.send_submission_reminders_task",
        "schedule": crontab(hour=9, minute=0),
    },
    # Card payments never confirmed by PayHere, every night
    "cleanup-abandoned-payments-nightly": {
        "task":     "archalley.tasks.cleanup_abandoned_payments_task",
        "schedule": crontab(hour=2, minute=0),
    },
}
