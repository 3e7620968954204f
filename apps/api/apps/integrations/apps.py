"""Integrations app configuration."""
from django.apps import AppConfig


class IntegrationsConfig(AppConfig):
    """Configuration for integrations app (scheduling + notification adapters)."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.integrations'
    verbose_name = 'External Integrations'
