"""
Base Django settings for ShiftDesk.

All environment-specific settings (local.py, production.py, test.py) extend this module.
Values that MUST be overridden per environment are marked with # REQUIRED OVERRIDE.
"""

from pathlib import Path

import environ

# ---------------------------------------------------------------------------
# Path configuration
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# django-environ reads from .env file or OS environment
env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, []),
)

environ.Env.read_env(BASE_DIR / ".env")

# ---------------------------------------------------------------------------
# Security
# ---------------------------------------------------------------------------
SECRET_KEY = env("SECRET_KEY")  # REQUIRED OVERRIDE
DEBUG = env("DEBUG")
ALLOWED_HOSTS = env("ALLOWED_HOSTS")

# ---------------------------------------------------------------------------
# Application definition
# ---------------------------------------------------------------------------
DJANGO_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

THIRD_PARTY_APPS = [
    "channels",
    "django_celery_beat",
]

LOCAL_APPS = [
    "apps.accounts",
    "apps.scheduling",
    "apps.events",
    "apps.tools",
    "apps.courses",
    "apps.notifications",
    "apps.audit",
    "core",
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "shiftdesk.urls"

# ---------------------------------------------------------------------------
# Templates (Django admin only; the app itself speaks JSON)
# ---------------------------------------------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
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

# ---------------------------------------------------------------------------
# ASGI / Channels
# ---------------------------------------------------------------------------
ASGI_APPLICATION = "shiftdesk.asgi.application"

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels_redis.core.RedisChannelLayer",
        "CONFIG": {
            "hosts": [env("REDIS_URL", default="redis://localhost:6379/0")],
        },
    },
}

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL", default="postgres://localhost:5432/shiftdesk"),
}

DATABASES["default"]["ATOMIC_REQUESTS"] = True  # Wrap every request in a transaction

# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------
AUTH_USER_MODEL = "accounts.User"

DEFAULT_FROM_EMAIL = env("DEFAULT_FROM_EMAIL", default="ShiftDesk <noreply@shiftdesk.local>")

LOGIN_URL = "/accounts/login/"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# ---------------------------------------------------------------------------
# Internationalization & Timezone
# ---------------------------------------------------------------------------
LANGUAGE_CODE = "en-us"
# Shift times are wall-clock times of the business
TIME_ZONE = env("TIME_ZONE", default="Europe/Berlin")
USE_I18N = True
USE_TZ = True

# ---------------------------------------------------------------------------
# Static files
# ---------------------------------------------------------------------------
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ---------------------------------------------------------------------------
# Celery
# ---------------------------------------------------------------------------
CELERY_BROKER_URL = env("REDIS_URL", default="redis://localhost:6379/0")
CELERY_RESULT_BACKEND = env("REDIS_URL", default="redis://localhost:6379/0")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULER = "django_celery_beat.schedulers:DatabaseScheduler"

CELERY_BEAT_SCHEDULE = {
    "expire-stale-assignments": {
        "task": "scheduling.expire_stale_assignments",
        "schedule": 60 * 60,
    },
    "mark-overdue-rentals": {
        "task": "tools.mark_overdue_rentals",
        "schedule": 60 * 60 * 6,
    },
}

# ---------------------------------------------------------------------------
# ShiftDesk Business Rules (override in settings if needed)
# ---------------------------------------------------------------------------
SHIFTDESK = {
    # Horizontal gap between neighbouring calendar boxes, in pixels
    "LAYOUT_PADDING_PX": 5,
    # Workers may edit their own assignment only this long before the shift
    "WORKER_EDIT_CUTOFF_HOURS": 48,
    # Tool rentals carry no time of day; show them in this window
    "RENTAL_DISPLAY_START": "09:00",
    "RENTAL_DISPLAY_END": "17:00",
    # Events without times
    "DEFAULT_EVENT_START": "09:00",
    "DEFAULT_EVENT_END": "17:00",
    # Days after the shift date before an unanswered assignment expires
    "PENDING_EXPIRY_GRACE_DAYS": 0,
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
