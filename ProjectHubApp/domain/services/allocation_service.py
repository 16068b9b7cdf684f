"""Domain service functions for topic allocation and progress.

A student (alone, or as leader of their group) claims one approved topic.
Uniqueness of the claim is owned by the database: StudentProject.topic is
one-to-one, and student / group are unique. ``select_topic`` therefore
inserts directly inside a savepoint and turns an IntegrityError into a
ConflictError; it never asks "is this topic taken?" before inserting, so two
concurrent selections of one topic end in exactly one success.
"""

import logging

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from ProjectHubApp.core.access import membership_of
from ProjectHubApp.core.capabilities import Capability, ensure_capability
from ProjectHubApp.core.choices import TopicStatus, MembershipStatus
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError, NotFoundError, ConflictError
from ProjectHubApp.core.validators import validate_percentage
from ProjectHubApp.domain.services import notification_service
from ProjectHubApp.projects.models import StudentProject
from ProjectHubApp.topics.models import ProjectTopic
from ProjectHubApp.users.models import User

logger = logging.getLogger(__name__)


def _get_project(project_id: int, lock: bool = False) -> StudentProject:
    qs = StudentProject.objects.with_related()
    if lock:
        qs = qs.select_for_update(of=("self",))
    try:
        return qs.get(pk=project_id)
    except StudentProject.DoesNotExist:
        raise NotFoundError("Project not found")


def _conflict_reason(topic: ProjectTopic, student: User, group_id: int | None) -> str:
    """Explain which uniqueness rule an insert tripped over (read after the failed insert)."""
    if StudentProject.objects.filter(topic=topic).exists():
        return "This topic has already been selected by another student/group"
    if group_id and StudentProject.objects.filter(group_id=group_id).exists():
        return "Your group already has a project"
    return "You already have a project"


@transaction.atomic
def select_topic(student: User, topic_id: int) -> StudentProject:
    """Bind the student (or the group they lead) to an approved topic.

    Raises:
        AuthorizationError: Not a student, or a group member who is not the leader.
        NotFoundError: Unknown topic.
        ConflictError: Topic not approved, already claimed, the student/group
            already holds a project, or the student has an unanswered invite.
    """
    ensure_capability(student, Capability.SELECT_TOPIC)
    if topic_id is None:
        raise ValidationError("topicId is required")

    try:
        topic = ProjectTopic.objects.get(pk=topic_id)
    except ProjectTopic.DoesNotExist:
        raise NotFoundError("Topic not found")
    if topic.status != TopicStatus.APPROVED:
        logger.warning("Student %s tried to select %s topic %s", student.pk, topic.status, topic.pk)
        raise ConflictError("Selected topic is not approved")

    membership = membership_of(student)
    group = None
    if membership is not None:
        if membership.status == MembershipStatus.PENDING:
            raise ConflictError("Accept or decline your pending group invitation first")
        group = membership.group
        if group.created_by_id != student.id:
            raise AuthorizationError("Only the group leader can select a project topic")
        member_ids = list(group.memberships.accepted().values_list("user_id", flat=True))
        if StudentProject.objects.filter(student_id__in=member_ids).exclude(group=group).exists():
            raise ConflictError("A group member already has a project assigned")

    try:
        with transaction.atomic():
            project = StudentProject(topic=topic, student=student, group=group)
            project._history_user = student
            project.save()
    except IntegrityError:
        reason = _conflict_reason(topic, student, group.id if group else None)
        logger.warning("Allocation of topic %s to student %s refused: %s", topic.pk, student.pk, reason)
        raise ConflictError(reason)

    notification_service.notify(
        topic.submitted_by_id,
        "Topic selected",
        f'Your topic "{topic.title}" was selected by {group.name if group else student.username}.',
    )
    logger.info(
        "Topic %s allocated to student %s%s", topic.pk, student.pk, f" (group {group.pk})" if group else ""
    )
    return project


@transaction.atomic
def update_progress(actor: User, project_id: int, progress: int) -> StudentProject:
    """Set progress (0-100) on a project built on the actor's topic.

    Raises:
        AuthorizationError: Not a teacher, or not the topic's teacher.
        NotFoundError: Unknown project.
        ValidationError: progress outside [0, 100] or not an integer.
    """
    ensure_capability(actor, Capability.UPDATE_PROGRESS)
    progress = validate_percentage(progress, "progress")
    project = _get_project(project_id, lock=True)
    if project.topic.submitted_by_id != actor.id:
        raise AuthorizationError("Only the topic's teacher can update progress")
    project.progress = progress
    project._history_user = actor
    project.save()
    logger.info("Project %s progress set to %s by %s", project.pk, progress, actor.pk)
    return project


def get_project(project_id: int) -> StudentProject:
    return _get_project(project_id)


def list_my_projects(student: User) -> QuerySet[StudentProject]:
    return StudentProject.objects.for_student(student).with_related()


def list_teacher_projects(teacher: User) -> QuerySet[StudentProject]:
    ensure_capability(teacher, Capability.UPDATE_PROGRESS)
    return StudentProject.objects.for_teacher(teacher).with_related()


def list_all_projects(actor: User) -> QuerySet[StudentProject]:
    ensure_capability(actor, Capability.VIEW_ALL_PROJECTS)
    return StudentProject.objects.with_related()
