"""
Celery application configuration.

This is the main Celery app for the Siteledger backend.
It runs batch WIP recalculation and other background jobs.

Usage:
    # Start worker
    celery -A siteledger_backend worker -l INFO

    # Start worker with embedded beat (development only)
    celery -A siteledger_backend worker -B -l INFO
"""
import os

from celery import Celery

# Set default Django settings
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "siteledger_backend.settings")

# Create Celery app
app = Celery("siteledger_backend")

# Load config from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()
