"""
Production settings for the BrewDesk API.
"""

import os
from .base import *

# Production specific settings
DEBUG = False
CELERY_TASK_ALWAYS_EAGER = False

# Security settings
SECURE_SSL_REDIRECT = True
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "strict-origin-when-cross-origin"
X_FRAME_OPTIONS = "DENY"

# Session security
SESSION_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_AGE = 3600  # 1 hour

# CSRF security
CSRF_COOKIE_SECURE = True
CSRF_COOKIE_HTTPONLY = True

# Database connection pooling
DATABASES["default"]["CONN_MAX_AGE"] = 60

# Static files - Use WhiteNoise for serving static files
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}

# CORS - Restrict origins in production
CORS_ALLOW_ALL_ORIGINS = False
cors_origins = os.environ.get("CORS_ALLOWED_ORIGINS", "")
CORS_ALLOWED_ORIGINS = [
    origin.strip() for origin in cors_origins.split(",") if origin.strip()
]

# Logging - Log to files in production
LOG_DIR = os.environ.get("LOG_DIR", "/var/log/brewdesk")
LOGGING["handlers"]["file"]["filename"] = f"{LOG_DIR}/django.log"
LOGGING["handlers"]["error_file"] = {
    "level": "ERROR",
    "class": "logging.FileHandler",
    "filename": f"{LOG_DIR}/django_error.log",
    "formatter": "verbose",
}
LOGGING["loggers"]["django"]["handlers"] = ["file", "error_file"]
LOGGING["loggers"]["apps"]["handlers"] = ["file", "error_file"]

# Cache - Use database cache
CACHES["default"]["KEY_PREFIX"] = "brewdesk_prod"

# Rate limit counters in Redis, where incr is atomic
if os.environ.get("RATE_LIMIT_REDIS_URL"):
    CACHES["ratelimit"] = {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ["RATE_LIMIT_REDIS_URL"],
        "KEY_PREFIX": "brewdesk_ratelimit",
    }
    RATE_LIMIT_CACHE_ALIAS = "ratelimit"
