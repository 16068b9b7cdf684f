"""Domain service functions for assessments, milestones and project reports."""

import logging
from datetime import datetime
from typing import Any

from django.db import transaction
from django.db.models import QuerySet, Value
from django.db.models.functions import Concat
from django.utils import timezone

from ProjectHubApp.core.access import can_view_project, is_project_participant, is_staff_role, is_topic_owner
from ProjectHubApp.core.capabilities import Capability, ensure_capability
from ProjectHubApp.core.choices import MilestoneStatus, ProjectStatus
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError, NotFoundError, ConflictError
from ProjectHubApp.core.validators import validate_percentage
from ProjectHubApp.domain.services import notification_service
from ProjectHubApp.domain.services.allocation_service import get_project
from ProjectHubApp.projects.models import StudentProject, ProjectAssessment, ProjectMilestone
from ProjectHubApp.users.models import User

logger = logging.getLogger(__name__)


@transaction.atomic
def evaluate(teacher: User, project_id: int, score: int, feedback: str = "") -> ProjectAssessment:
    """Record (or replace) the teacher's assessment of a project.

    Raises:
        AuthorizationError: If the actor did not originate the project's topic.
        NotFoundError: Unknown project.
        ValidationError: Score outside [0, 100].
    """
    ensure_capability(teacher, Capability.EVALUATE)
    score = validate_percentage(score, "marks")
    project = get_project(project_id)
    if not is_topic_owner(teacher, project):
        raise AuthorizationError("Only the topic's teacher can evaluate this project")

    assessment, created = ProjectAssessment.objects.update_or_create(
        project=project, faculty=teacher, defaults={"score": score, "feedback": feedback or ""}
    )
    notification_service.notify_many(
        project.participant_ids(),
        "Project evaluated",
        f'Your project "{project.topic.title}" received {score}/100.',
    )
    logger.info(
        "Project %s %s assessment %s by %s", project.pk, "created" if created else "updated", score, teacher.pk
    )
    return assessment


def list_assessments(actor: User, project_id: int) -> QuerySet[ProjectAssessment]:
    project = get_project(project_id)
    if not can_view_project(actor, project):
        raise AuthorizationError("You cannot view this project's assessments")
    return project.assessments.select_related("faculty").order_by("id")


@transaction.atomic
def add_milestone(
    teacher: User, project_id: int, title: str, due_date: datetime, description: str = ""
) -> ProjectMilestone:
    """Add a dated checkpoint to a project built on the teacher's topic."""
    ensure_capability(teacher, Capability.MANAGE_MILESTONES)
    project = get_project(project_id)
    if not is_topic_owner(teacher, project):
        raise AuthorizationError("Only the topic's teacher can add milestones")
    title = (title or "").strip()
    if not title:
        raise ValidationError("Milestone title is required")
    if due_date is None:
        raise ValidationError("Milestone due date is required")

    milestone = ProjectMilestone.objects.create(
        project=project, title=title, description=description or "", due_date=due_date
    )
    notification_service.notify_many(
        project.participant_ids(), "New milestone", f'"{title}" is due {due_date:%Y-%m-%d}.'
    )
    logger.info("Milestone %s added to project %s", milestone.pk, project.pk)
    return milestone


@transaction.atomic
def complete_milestone(actor: User, milestone_id: int) -> ProjectMilestone:
    """Mark a milestone completed (topic teacher or a student on the project).

    Raises:
        NotFoundError: Unknown milestone.
        AuthorizationError: Actor neither owns the topic nor works on the project.
        ConflictError: Milestone already completed.
    """
    try:
        milestone = (
            ProjectMilestone.objects.select_for_update(of=("self",))
            .select_related("project", "project__topic")
            .get(pk=milestone_id)
        )
    except ProjectMilestone.DoesNotExist:
        raise NotFoundError("Milestone not found")
    if not (is_topic_owner(actor, milestone) or is_project_participant(actor, milestone)):
        raise AuthorizationError("You cannot complete this milestone")
    if milestone.status == MilestoneStatus.COMPLETED:
        raise ConflictError("Milestone is already completed")
    milestone.status = MilestoneStatus.COMPLETED
    milestone.completed_at = timezone.now()
    milestone.save(update_fields=["status", "completed_at", "updated_at"])
    logger.info("Milestone %s completed by %s", milestone.pk, actor.pk)
    return milestone


def list_milestones(actor: User, project_id: int) -> QuerySet[ProjectMilestone]:
    project = get_project(project_id)
    if not can_view_project(actor, project):
        raise AuthorizationError("You cannot view this project's milestones")
    return project.milestones.all()


def project_report(actor: User, project_id: int) -> dict[str, Any]:
    """Everything known about one project, for the teacher or staff."""
    ensure_capability(actor, Capability.VIEW_REPORTS)
    project = get_project(project_id)
    if not (is_staff_role(actor) or is_topic_owner(actor, project)):
        raise AuthorizationError("You cannot view this project's report")
    return {
        "project": project,
        "topic": project.topic,
        "student": project.student,
        "faculty": project.topic.submitted_by,
        "milestones": list(project.milestones.all()),
        "assessments": list(project.assessments.select_related("faculty").order_by("id")),
        "generated_at": timezone.now(),
    }


def search_projects(actor: User, criteria: dict[str, Any] | None = None) -> QuerySet[StudentProject]:
    """Staff search over all projects.

    Criteria (all optional, combined with AND):
        project_name: topic title substring
        faculty_name: substring of the topic teacher's full name
        student_name: substring of the selecting student's full name
        enrollment_number: substring of the student's enrollment number
        status: exact project status
    Text matches are case-insensitive.
    """
    ensure_capability(actor, Capability.SEARCH_PROJECTS)
    criteria = criteria or {}
    qs = StudentProject.objects.with_related().annotate(
        student_name=Concat("student__first_name", Value(" "), "student__last_name"),
        faculty_name=Concat("topic__submitted_by__first_name", Value(" "), "topic__submitted_by__last_name"),
    )
    if criteria.get("project_name"):
        qs = qs.filter(topic__title__icontains=criteria["project_name"])
    if criteria.get("faculty_name"):
        qs = qs.filter(faculty_name__icontains=criteria["faculty_name"])
    if criteria.get("student_name"):
        qs = qs.filter(student_name__icontains=criteria["student_name"])
    if criteria.get("enrollment_number"):
        qs = qs.filter(student__enrollment_number__icontains=criteria["enrollment_number"])
    if criteria.get("status"):
        if criteria["status"] not in ProjectStatus.values:
            raise ValidationError(f"Unknown project status: {criteria['status']}")
        qs = qs.filter(status=criteria["status"])
    return qs.order_by("id")
