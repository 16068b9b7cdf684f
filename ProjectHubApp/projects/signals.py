"""Signal handlers for projects (keep status in step with progress)."""

from typing import Any

from django.db.models.signals import pre_save
from django.dispatch import receiver

from ProjectHubApp.core.choices import ProjectStatus
from ProjectHubApp.projects.models import StudentProject

@receiver(pre_save, sender=StudentProject)
def sync_status_with_progress(
    sender: type[StudentProject],
    instance: StudentProject,
    **kwargs: Any,
) -> None:
    """A project at 100% is completed; lowering progress reopens it."""
    instance.status = (
        ProjectStatus.COMPLETED if instance.progress >= 100 else ProjectStatus.IN_PROGRESS
    )
