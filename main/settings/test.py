"""
Test settings: SQLite, eager Celery, quiet logging.
"""

from .base import *

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test.sqlite3",
        "TEST": {"NAME": ":memory:"},
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.db.DatabaseCache",
        "LOCATION": "test_cache_table",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# Generous defaults so ordinary tests never trip the limiter.
RATE_LIMITS = {
    "standard": {"limit": 10000, "interval": 60},
    "strict": {"limit": 10000, "interval": 60},
}

LOGGING["handlers"]["console"]["level"] = "WARNING"
LOGGING["handlers"]["file"] = {
    "level": "CRITICAL",
    "class": "logging.NullHandler",
}

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "TEST_REQUEST_DEFAULT_FORMAT": "json",
}
