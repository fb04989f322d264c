"""
Django settings module loader for the Whisky Catalog.

Picks the settings module from the DJANGO_ENV environment variable:
- "production" / "prod": relational DATABASE_URL required, async rebuilds
- "test": in-memory SQLite, eager Celery
- anything else: development (SQLite file unless DATABASE_URL says otherwise)
"""

import os

env = os.getenv("DJANGO_ENV", "development").strip().lower()

if env in ("production", "prod"):
    from .production import *
elif env == "test":
    from .test import *
else:
    from .development import *
