"""
Celery configuration for the Whisky Catalog service.

Related-whisky rebuilds run on their own "related" queue so that
full-catalog maintenance never blocks request-triggered rebuilds
queued on "default".
"""

import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("whisky_catalog")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.task_queues = {
    "related": {
        "exchange": "related",
        "routing_key": "related",
    },
    "default": {
        "exchange": "default",
        "routing_key": "default",
    },
}

# Default task routing
app.conf.task_default_queue = "default"
app.conf.task_default_exchange = "default"
app.conf.task_default_routing_key = "default"

app.conf.task_routes = {
    "catalog.tasks.rebuild_whisky_related": {"queue": "related"},
    "catalog.tasks.rebuild_whisky_related_cluster": {"queue": "related"},
    "catalog.tasks.rebuild_whisky_related_many": {"queue": "related"},
    "catalog.tasks.rebuild_whisky_related_all": {"queue": "related"},
}

# Nightly full rebuild catches anything a missed trigger left stale
app.conf.beat_schedule = {
    "rebuild-whisky-related-nightly": {
        "task": "catalog.tasks.rebuild_whisky_related_all",
        "schedule": crontab(hour=4, minute=15),
    },
}
