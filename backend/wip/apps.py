# wip/apps.py
"""WIP app configuration."""

from django.apps import AppConfig


class WipConfig(AppConfig):
    """Configuration for the WIP app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "wip"
    verbose_name = "Work In Progress"
