"""
Development settings for the BrewDesk API.
"""

from .base import *

# Development-specific settings
DEBUG = True

CORS_ALLOW_ALL_ORIGINS = True

# Configure logging for development
LOGGING["handlers"]["console"]["level"] = "DEBUG"
LOGGING["loggers"]["apps"]["level"] = "DEBUG"

# Add django.db.backends logger for database query logging
LOGGING["loggers"]["django.db.backends"] = {
    "handlers": ["console"],
    "level": "INFO",
    "propagate": False,
}
