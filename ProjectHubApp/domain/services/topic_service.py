"""Domain service functions for the topic review lifecycle.

Rules:
- Only teachers submit topics; only the submitting teacher edits or deletes,
  and only while the topic is pending.
- Coordinators and admins decide a pending topic exactly once:
    PENDING -> APPROVED | REJECTED (both terminal).
Re-deciding an already decided topic is a ConflictError.
"""

import logging
from typing import Any

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from ProjectHubApp.core.capabilities import Capability, ensure_capability, has_capability
from ProjectHubApp.core.choices import TopicStatus, Complexity
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError, NotFoundError, ConflictError
from ProjectHubApp.domain.services import notification_service
from ProjectHubApp.projects.models import StudentProject
from ProjectHubApp.topics.models import ProjectTopic
from ProjectHubApp.users.models import User

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "technology")
EDITABLE_FIELDS = ("title", "description", "technology", "project_type", "estimated_complexity")


def _clean_fields(fields: dict[str, Any], partial: bool = False) -> dict[str, Any]:
    """Keep editable fields, strip strings and enforce required ones."""
    data = {k: fields[k] for k in EDITABLE_FIELDS if k in fields}
    for key, value in data.items():
        if isinstance(value, str):
            data[key] = value.strip()
    required = [f for f in REQUIRED_FIELDS if f in data] if partial else REQUIRED_FIELDS
    missing = [f for f in required if not data.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    complexity = data.get("estimated_complexity")
    if complexity is not None and complexity not in Complexity.values:
        raise ValidationError(f"estimated_complexity must be one of: {', '.join(Complexity.values)}")
    if data.get("project_type") is None:
        data.pop("project_type", None)
    return data


def _get_topic(topic_id: int, lock: bool = False) -> ProjectTopic:
    qs = ProjectTopic.objects.select_related("submitted_by")
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=topic_id)
    except ProjectTopic.DoesNotExist:
        raise NotFoundError("Topic not found")


def _ensure_editable_by(teacher: User, topic: ProjectTopic) -> None:
    """Only the submitting teacher may change a topic, and only before review."""
    if topic.submitted_by_id != teacher.id:
        raise AuthorizationError("You can only change your own topics")
    if topic.status != TopicStatus.PENDING:
        raise AuthorizationError("You can only change pending topics")


@transaction.atomic
def submit_topic(teacher: User, fields: dict[str, Any]) -> ProjectTopic:
    """Create a pending topic owned by the teacher.

    Raises:
        AuthorizationError: If the actor is not a teacher.
        ValidationError: If title, description or technology is missing.
    """
    ensure_capability(teacher, Capability.SUBMIT_TOPIC)
    data = _clean_fields(fields)
    topic = ProjectTopic(submitted_by=teacher, status=TopicStatus.PENDING, **data)
    topic._history_user = teacher
    topic.save()
    logger.info("Topic %s submitted by teacher %s", topic.pk, teacher.pk)
    return topic


@transaction.atomic
def edit_topic(teacher: User, topic_id: int, fields: dict[str, Any]) -> ProjectTopic:
    """Update a pending topic (submitting teacher only)."""
    ensure_capability(teacher, Capability.EDIT_TOPIC)
    topic = _get_topic(topic_id, lock=True)
    _ensure_editable_by(teacher, topic)
    data = _clean_fields(fields, partial=True)
    for key, value in data.items():
        setattr(topic, key, value)
    topic._history_user = teacher
    topic.save()
    return topic


@transaction.atomic
def delete_topic(teacher: User, topic_id: int) -> None:
    """Delete a pending topic (submitting teacher only)."""
    ensure_capability(teacher, Capability.EDIT_TOPIC)
    topic = _get_topic(topic_id, lock=True)
    _ensure_editable_by(teacher, topic)
    topic._history_user = teacher
    topic.delete()
    logger.info("Topic %s deleted by teacher %s", topic_id, teacher.pk)


def _decide(actor: User, topic_id: int, status: str, feedback: str | None) -> ProjectTopic:
    ensure_capability(actor, Capability.REVIEW_TOPIC)
    topic = _get_topic(topic_id, lock=True)
    if topic.status != TopicStatus.PENDING:
        logger.warning(
            "Refused %s of topic %s: already %s", status, topic.pk, topic.status
        )
        raise ConflictError(f"Topic has already been {topic.status}")
    topic.status = status
    topic.feedback = feedback
    topic.reviewed_by = actor
    topic.reviewed_at = timezone.now()
    topic._history_user = actor
    topic.save()
    logger.info("Topic %s %s by %s", topic.pk, status, actor.pk)

    verdict = "approved" if status == TopicStatus.APPROVED else "rejected"
    message = f'Your topic "{topic.title}" was {verdict}.'
    if feedback:
        message = f"{message} Feedback: {feedback}"
    notification_service.notify(topic.submitted_by_id, f"Topic {verdict}", message)
    return topic


@transaction.atomic
def approve_topic(actor: User, topic_id: int, feedback: str | None = None) -> ProjectTopic:
    """Approve a pending topic (coordinator/admin).

    Raises:
        AuthorizationError: If the actor cannot review topics.
        NotFoundError: If the topic does not exist.
        ConflictError: If the topic is no longer pending.
    """
    return _decide(actor, topic_id, TopicStatus.APPROVED, feedback)


@transaction.atomic
def reject_topic(actor: User, topic_id: int, feedback: str | None = None) -> ProjectTopic:
    """Reject a pending topic (coordinator/admin). Same errors as approve_topic."""
    return _decide(actor, topic_id, TopicStatus.REJECTED, feedback)


def list_by_status(actor: User, status: str, filters: dict[str, Any] | None = None) -> QuerySet[ProjectTopic]:
    """Read-only projection of topics in one status.

    Pending and rejected topics are restricted to coordinators/admins;
    approved topics are visible to any authenticated user.
    """
    if status not in TopicStatus.values:
        raise ValidationError(f"Unknown topic status: {status}")
    if status != TopicStatus.APPROVED:
        ensure_capability(actor, Capability.VIEW_UNAPPROVED_TOPICS)
    return (
        ProjectTopic.objects.filter(status=status)
        .filtered(filters)
        .select_related("submitted_by", "reviewed_by")
    )


def get_visible_topic(user: User, topic_id: int) -> ProjectTopic:
    """Approved topics are public to signed-in users; others only to staff and the submitter."""
    topic = _get_topic(topic_id)
    if topic.status != TopicStatus.APPROVED and not (
        has_capability(user, Capability.VIEW_UNAPPROVED_TOPICS) or topic.submitted_by_id == user.id
    ):
        raise NotFoundError("Topic not found")
    return topic


def list_my_topics(teacher: User) -> QuerySet[ProjectTopic]:
    ensure_capability(teacher, Capability.SUBMIT_TOPIC)
    return ProjectTopic.objects.by_teacher(teacher).select_related("submitted_by", "reviewed_by")


def categorize_for_student(student: User, filters: dict[str, Any] | None = None) -> dict[str, Any]:
    """Split approved topics into the student's own, available and taken.

    The student's own topic is the one held by their project (selected by
    them or by the leader of their group).
    """
    approved = list(list_by_status(student, TopicStatus.APPROVED, filters))
    my_project = StudentProject.objects.for_student(student).first()
    my_topic_id = my_project.topic_id if my_project else None
    taken_ids = set(
        StudentProject.objects.filter(topic__in=approved).values_list("topic_id", flat=True)
    )
    taken_ids.discard(my_topic_id)
    return {
        "has_selected_topic": my_project is not None,
        "my_topic": next((t for t in approved if t.id == my_topic_id), None),
        "available_topics": [t for t in approved if t.id not in taken_ids and t.id != my_topic_id],
        "taken_topics": [t for t in approved if t.id in taken_ids],
    }


def wants_categorized_view(user: User) -> bool:
    """Students get the approved list split into own, available and taken topics."""
    return has_capability(user, Capability.SELECT_TOPIC)
