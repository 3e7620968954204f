"""Ops app configuration."""
from django.apps import AppConfig


class OpsConfig(AppConfig):
    """Configuration for ops app (audit trail)."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.ops'
    verbose_name = 'Operations & Audit'
