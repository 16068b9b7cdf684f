"""Topic domain model: ProjectTopic and its review lifecycle."""

from django.db import models
from django.conf import settings

from simple_history.models import HistoricalRecords

from ProjectHubApp.core.choices import TopicStatus, Complexity
from ProjectHubApp.topics.querysets import TopicQuerySet


User = settings.AUTH_USER_MODEL

class ProjectTopic(models.Model):
    """A project subject proposed by a teacher and reviewed by a coordinator.

    Fields:
        title / description / technology: Required descriptive fields.
        project_type: Free-form category (e.g. "Web", "Research").
        estimated_complexity: Complexity value, defaults to Medium.
        submitted_by: Teacher who proposed the topic and later evaluates it.
        status: TopicStatus; changes once, pending -> approved | rejected.
        feedback: Reviewer note stored with the decision.
        reviewed_by / reviewed_at: Who decided and when.
        history: Audit history (django-simple-history).
    """
    title = models.CharField(max_length=255)
    description = models.TextField()
    technology = models.CharField(max_length=255)
    project_type = models.CharField(max_length=100, blank=True)
    estimated_complexity = models.CharField(
        max_length=16, choices=Complexity.choices, default=Complexity.MEDIUM
    )
    submitted_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="submitted_topics")
    status = models.CharField(max_length=16, choices=TopicStatus.choices, default=TopicStatus.PENDING)
    feedback = models.TextField(blank=True, null=True)
    reviewed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="reviewed_topics"
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = TopicQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]

    @property
    def is_pending(self) -> bool:
        return self.status == TopicStatus.PENDING

    def __str__(self) -> str:
        return f"{self.title} (#{self.pk}, {self.status})"
