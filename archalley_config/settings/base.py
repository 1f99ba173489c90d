"""
archalley_config/settings/base.py
─────────────────────────────────────────────────────────────────────
Settings shared by every environment (dev / production)
"""
import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────────────
# BASE_DIR = .../archalley_project/
BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.environ.get("SECRET_KEY", "django-insecure-change-this-in-production")
DEBUG      = os.environ.get("DEBUG", "False") == "True"

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")


# ── Application Definition ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "django_celery_beat",
    "django_celery_results",
    # Our app - must use ArchalleyConfig to register signals
    "archalley.apps.ArchalleyConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",   # static files in production
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "archalley_config.urls"

# ── Templates ─────────────────────────────────────────────────────────
# Only the Django admin renders HTML; the API answers JSON.
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS":    [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "archalley_config.wsgi.application"


# ── Database ──────────────────────────────────────────────────────────
# Development uses SQLite; Production overrides this via DATABASE_URL
DATABASES = {
    "default": {
        "ENGINE":  "django.db.backends.sqlite3",
        "NAME":    BASE_DIR / "db.sqlite3",
    }
}


# ── Auth ──────────────────────────────────────────────────────────────
AUTH_USER_MODEL = "archalley.CustomUser"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LOGIN_URL = "/admin/login/"


# ── Internationalization ──────────────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE     = "Asia/Colombo"
USE_I18N      = True
USE_TZ        = True


# ── Static ────────────────────────────────────────────────────────────
STATIC_URL  = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"        # ← collectstatic output (gitignored)

STORAGES = {
    "default":     {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}


# ── Default PK ────────────────────────────────────────────────────────
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ── Celery ────────────────────────────────────────────────────────────
CELERY_BROKER_URL         = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND     = "django-db"
CELERY_BEAT_SCHEDULER     = "django_celery_beat.schedulers:DatabaseScheduler"
CELERY_TIMEZONE           = TIME_ZONE
CELERY_TASK_SERIALIZER    = "json"
CELERY_RESULT_SERIALIZER  = "json"
CELERY_ACCEPT_CONTENT     = ["json"]


# ── Cache (Redis) ─────────────────────────────────────────────────────
CACHES = {
    "default": {
        "BACKEND":  "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ.get("REDIS_URL", "redis://localhost:6379/1"),
    }
}


# ── Session ───────────────────────────────────────────────────────────
SESSION_ENGINE         = "django.contrib.sessions.backends.cache"
SESSION_CACHE_ALIAS    = "default"
SESSION_COOKIE_AGE     = 86400 * 7   # 7 days


# ── Registration cart ─────────────────────────────────────────────────
CART_EXPIRY_MINUTES  = int(os.environ.get("CART_EXPIRY_MINUTES", "30"))
CART_EXPIRY_DISABLED = os.environ.get("CART_EXPIRY_DISABLED", "False") == "True"


# ── PayHere ───────────────────────────────────────────────────────────
PAYHERE_MERCHANT_ID     = os.environ.get("PAYHERE_MERCHANT_ID", "")
PAYHERE_MERCHANT_SECRET = os.environ.get("PAYHERE_MERCHANT_SECRET", "")
PAYHERE_SANDBOX         = os.environ.get("PAYHERE_SANDBOX", "True") == "True"
PAYHERE_CURRENCY        = os.environ.get("PAYHERE_CURRENCY", "LKR")
SITE_URL                = os.environ.get("SITE_URL", "http://localhost:8000")


# ── Submissions ───────────────────────────────────────────────────────
SUBMISSION_REMINDER_DAYS = (7, 3, 1)


# ── WordPress ─────────────────────────────────────────────────────────
WORDPRESS_API_URL       = os.environ.get("WORDPRESS_API_URL", "https://archalley.com/wp-json/wp/v2")
WORDPRESS_TIMEOUT       = 10
WORDPRESS_CACHE_SECONDS = 300


# ── Logging ───────────────────────────────────────────────────────────
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "{levelname} {asctime} {module} {message}", "style": "{"},
        "simple":  {"format": "{levelname} {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
        "file":    {
            "class":     "logging.handlers.RotatingFileHandler",
            "filename":  LOG_DIR / "django.log",
            "maxBytes":  1024 * 1024 * 10,  # 10 MB
            "backupCount": 5,
            "formatter": "verbose",
        },
    },
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": {
        "django":    {"handlers": ["console", "file"], "level": "WARNING", "propagate": False},
        "archalley": {"handlers": ["console", "file"], "level": "INFO",    "propagate": False},
    },
}
