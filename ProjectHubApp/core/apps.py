"""Core app configuration and startup checks (like libmagic availability)."""

import magic
from django.apps import AppConfig
from django.core.checks import register, Error

class CoreConfig(AppConfig):
    """AppConfig registering a system check for libmagic presence."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "ProjectHubApp.core"

    def ready(self):
        """Register a Django system check to ensure libmagic is operational (import uploads use it)."""
        @register()
        def libmagic_check(app_configs, **kwargs):
            try:
                magic.from_buffer(b'{"users": []}', mime=True)
            except Exception as exc:
                return [Error(f"libmagic not available: {exc}", id="core.E001")]
            return []
