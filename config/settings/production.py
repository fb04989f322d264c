"""
Production settings for the Whisky Catalog service.

Requires DATABASE_URL to point at a relational server (MySQL/MariaDB or PostgreSQL).
"""

import os
from django.core.exceptions import ImproperlyConfigured
from config.database import database_from_url, is_relational_url
from .base import *

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = False

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "").split(",")

if not is_relational_url(DATABASE_URL):
    raise ImproperlyConfigured(
        "DATABASE_URL must be a mysql://, mariadb:// or postgresql:// URL in production"
    )

DATABASES = {
    "default": {
        **database_from_url(DATABASE_URL),
        "CONN_MAX_AGE": 60,
    }
}

# Production Cache - Redis
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.getenv("REDIS_URL", "redis://localhost:6379/2"),
    }
}

# Production logging
LOGGING["loggers"]["django"]["level"] = "WARNING"
LOGGING["loggers"]["catalog"]["level"] = "INFO"

# Security settings
SECURE_BROWSER_XSS_FILTER = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True

# Rebuild related whiskies on the Celery "related" queue, off the request path
WHISKY_RELATED_ASYNC = os.getenv("WHISKY_RELATED_ASYNC", "True") == "True"
