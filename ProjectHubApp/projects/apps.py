"""Projects app configuration (registers signal handlers)."""

from django.apps import AppConfig

class ProjectsConfig(AppConfig):
    """AppConfig for allocation, evaluation and milestones."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "ProjectHubApp.projects"

    def ready(self):
        """Import signal handlers to connect Django model signals."""
        from ProjectHubApp.projects import signals  # noqa: F401
