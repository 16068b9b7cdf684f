"""Role & object access helpers."""

from typing import Any

from ProjectHubApp.core.choices import UserRole, MembershipStatus
from ProjectHubApp.groups.models import StudentGroupMember
from ProjectHubApp.projects.models import StudentProject, ProjectAssessment, ProjectMilestone
from ProjectHubApp.topics.models import ProjectTopic


def topic_from(obj: Any) -> ProjectTopic | None:
    if obj is None:
        return None
    if isinstance(obj, ProjectTopic):
        return obj
    if isinstance(obj, StudentProject):
        return obj.topic
    if isinstance(obj, (ProjectAssessment, ProjectMilestone)):
        return obj.project.topic
    return getattr(obj, "topic", None)


def project_from(obj: Any) -> StudentProject | None:
    if isinstance(obj, StudentProject):
        return obj
    if isinstance(obj, (ProjectAssessment, ProjectMilestone)):
        return obj.project
    return getattr(obj, "project", None)


def is_staff_role(user) -> bool:
    """Admins and coordinators oversee every topic and project."""
    return bool(user and user.role in (UserRole.ADMIN, UserRole.COORDINATOR))


def is_topic_owner(user, obj: Any) -> bool:
    topic = topic_from(obj)
    return bool(user and topic and topic.submitted_by_id == user.id)


def membership_of(user) -> StudentGroupMember | None:
    """The user's single group membership row (pending or accepted), if any."""
    if not user:
        return None
    return StudentGroupMember.objects.select_related("group").filter(user=user).first()


def is_project_participant(user, obj: Any) -> bool:
    """User selected the project or is an accepted member of the group holding it."""
    project = project_from(obj)
    if not (user and project):
        return False
    if project.student_id == user.id:
        return True
    if project.group_id is None:
        return False
    return StudentGroupMember.objects.filter(
        group_id=project.group_id, user=user, status=MembershipStatus.ACCEPTED
    ).exists()


def can_view_project(user, obj: Any) -> bool:
    """Admins/coordinators, the topic's teacher, or a participant."""
    return is_staff_role(user) or is_topic_owner(user, obj) or is_project_participant(user, obj)
