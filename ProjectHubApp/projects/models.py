"""Allocation and evaluation models: StudentProject, ProjectAssessment, ProjectMilestone."""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

from simple_history.models import HistoricalRecords

from ProjectHubApp.core.choices import ProjectStatus, MilestoneStatus
from ProjectHubApp.groups.models import StudentGroup
from ProjectHubApp.projects.querysets import ProjectQuerySet
from ProjectHubApp.topics.models import ProjectTopic

User = settings.AUTH_USER_MODEL

class StudentProject(models.Model):
    """Binding of a student (optionally on behalf of their group) to one approved topic.

    Constraints:
        topic is one-to-one: a topic is claimed by at most one project.
        uq_project_student: a student selects at most one project.
        uq_project_group: a group holds at most one project.
    The database enforces these; the allocation service relies on them
    instead of reading first.
    """
    topic = models.OneToOneField(ProjectTopic, on_delete=models.PROTECT, related_name="project")
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="selected_projects")
    group = models.ForeignKey(
        StudentGroup, on_delete=models.SET_NULL, null=True, blank=True, related_name="projects"
    )
    progress = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    status = models.CharField(max_length=16, choices=ProjectStatus.choices, default=ProjectStatus.IN_PROGRESS)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = ProjectQuerySet.as_manager()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["student"], name="uq_project_student"),
            models.UniqueConstraint(
                fields=["group"], condition=models.Q(group__isnull=False), name="uq_project_group"
            ),
        ]

    def participant_ids(self) -> list[int]:
        """Ids of the students working on the project (accepted group members, or the selector)."""
        if self.group_id:
            ids = list(self.group.memberships.accepted().values_list("user_id", flat=True))
            return ids or [self.student_id]
        return [self.student_id]

    def __str__(self) -> str:
        return f"Project #{self.pk}: {self.topic_id} <- {self.student_id}"


class ProjectAssessment(models.Model):
    """A teacher's evaluation (0-100) of a project; one per (project, faculty)."""
    project = models.ForeignKey(StudentProject, on_delete=models.CASCADE, related_name="assessments")
    faculty = models.ForeignKey(User, on_delete=models.PROTECT, related_name="given_assessments")
    score = models.PositiveSmallIntegerField(validators=[MinValueValidator(0), MaxValueValidator(100)])
    feedback = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["project", "faculty"], name="uq_assessment_project_faculty"),
        ]


class ProjectMilestone(models.Model):
    """A dated checkpoint on a project. Informational; never gates allocation."""
    project = models.ForeignKey(StudentProject, on_delete=models.CASCADE, related_name="milestones")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    due_date = models.DateTimeField()
    status = models.CharField(max_length=16, choices=MilestoneStatus.choices, default=MilestoneStatus.PENDING)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["due_date", "id"]
