"""
archalley_config/settings/development.py
─────────────────────────────────────────────────────────────────────
Local development and test settings
"""
from .base import *  # noqa: F401, F403

DEBUG = True

ALLOWED_HOSTS = ["*"]

# ── Database ──────────────────────────────────────────────────────────
import os
if os.environ.get("DATABASE_URL"):
    import dj_database_url
    DATABASES = {"default": dj_database_url.config(conn_max_age=600)}
# otherwise the SQLite database from base.py is used

# ── Session: DB-backed, Redis may not be running ─────────────────────
SESSION_ENGINE = "django.contrib.sessions.backends.db"

# ── Cache: in-process memory ──────────────────────────────────────────
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# ── Celery: run tasks inline ──────────────────────────────────────────
CELERY_TASK_ALWAYS_EAGER = True

# ── Email: print to console ───────────────────────────────────────────
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

# ── Static files served by Django in dev ──────────────────────────────
STORAGES = {
    "default":     {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

# ── Logging: show everything in development ───────────────────────────
LOGGING["root"]["level"] = "DEBUG"  # noqa: F405
