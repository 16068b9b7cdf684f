"""Domain service functions for invite-based group formation.

A student leader creates a group naming a faculty mentor and the enrollment
numbers of the students to invite. The leader holds an accepted membership
from the start; every invitee holds a pending one until they accept.

Size rule: leader + invitees <= max_size at creation time, so pending invites
reserve their slot and accepting can never overflow the group.

A user holds at most one membership row (database constraint), which is how
"already in a group" is enforced under concurrent invitations.
"""

import logging
from typing import Any, Iterable

from django.conf import settings
from django.db import transaction, IntegrityError

from ProjectHubApp.core.capabilities import Capability, ensure_capability
from ProjectHubApp.core.choices import MembershipStatus, UserRole
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError, NotFoundError, ConflictError
from ProjectHubApp.domain.services import notification_service
from ProjectHubApp.groups.models import StudentGroup, StudentGroupMember
from ProjectHubApp.projects.models import StudentProject
from ProjectHubApp.users.models import User

logger = logging.getLogger(__name__)


def _normalize_enrollments(leader: User, enrollment_numbers: Iterable[str] | None) -> list[str]:
    """Strip, de-duplicate (order kept) and drop the leader's own number."""
    seen: list[str] = []
    for raw in enrollment_numbers or []:
        number = str(raw).strip()
        if not number or number == leader.enrollment_number or number in seen:
            continue
        seen.append(number)
    return seen


def _resolve_invitees(numbers: list[str]) -> list[User]:
    students = {u.enrollment_number: u for u in User.objects.students().filter(enrollment_number__in=numbers)}
    unknown = [n for n in numbers if n not in students]
    if unknown:
        raise ValidationError(f"Invalid student enrollment number: {', '.join(unknown)}")
    return [students[n] for n in numbers]


def _get_group(group_id: int, lock: bool = False) -> StudentGroup:
    qs = StudentGroup.objects.all()
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=group_id)
    except StudentGroup.DoesNotExist:
        raise NotFoundError("Group not found")


@transaction.atomic
def create_group(
    leader: User,
    name: str,
    faculty_id: int,
    enrollment_numbers: Iterable[str] | None = None,
    description: str = "",
    max_size: int | None = None,
) -> StudentGroup:
    """Create a group led by ``leader`` and invite students by enrollment number.

    Raises:
        AuthorizationError: If the leader is not a student.
        ValidationError: Blank name, unknown mentor, unknown enrollment numbers,
            or more invitees than the group can hold.
        ConflictError: If the leader or an invitee already belongs to a group.
    """
    ensure_capability(leader, Capability.FORM_GROUP)
    name = (name or "").strip()
    if not name:
        raise ValidationError("Group name is required")
    max_size = max_size or settings.PROJECTHUB["MAX_GROUP_SIZE"]

    faculty = User.objects.filter(pk=faculty_id, role=UserRole.TEACHER).first() if faculty_id else None
    if faculty is None:
        raise ValidationError("Invalid faculty mentor")

    numbers = _normalize_enrollments(leader, enrollment_numbers)
    if len(numbers) + 1 > max_size:
        raise ValidationError(
            f"A group holds at most {max_size} students including the leader; {len(numbers) + 1} requested"
        )
    invitees = _resolve_invitees(numbers)

    busy = StudentGroupMember.objects.filter(user__in=[leader, *invitees]).select_related("user")
    if busy:
        names = ", ".join(m.user.username for m in busy)
        raise ConflictError(f"Already in a group: {names}")

    group = StudentGroup.objects.create(
        name=name, description=description or "", faculty=faculty, created_by=leader, max_size=max_size
    )
    rows = [StudentGroupMember(group=group, user=leader, status=MembershipStatus.ACCEPTED)]
    rows += [StudentGroupMember(group=group, user=u, status=MembershipStatus.PENDING) for u in invitees]
    try:
        with transaction.atomic():
            StudentGroupMember.objects.bulk_create(rows)
    except IntegrityError:
        logger.warning("Group %s lost an invitee to a concurrent invitation", group.pk)
        raise ConflictError("A student joined another group meanwhile; try again")

    notification_service.notify_many(
        [u.id for u in invitees],
        "Group Invitation",
        f'You have been invited to join group "{group.name}".',
    )
    logger.info("Group %s created by %s with %s invitees", group.pk, leader.pk, len(invitees))
    return group


@transaction.atomic
def accept_invite(user: User, group_id: int) -> StudentGroupMember:
    """Accept the caller's pending invitation into ``group_id``.

    Raises:
        NotFoundError: If the group does not exist.
        AuthorizationError: If the caller is not a student or was never invited to this group.
        ConflictError: If the group is full or both the caller and the group
            already hold a project.
    """
    ensure_capability(user, Capability.FORM_GROUP)
    group = _get_group(group_id, lock=True)
    try:
        membership = StudentGroupMember.objects.select_for_update().get(group=group, user=user)
    except StudentGroupMember.DoesNotExist:
        raise AuthorizationError("You were not invited to this group")
    if membership.status == MembershipStatus.ACCEPTED:
        return membership

    accepted = group.memberships.accepted().count()
    if accepted + 1 > group.max_size:
        raise ConflictError("Group is full")

    own_project = StudentProject.objects.filter(student=user).first()
    if own_project and group.projects.exists():
        raise ConflictError("You already hold a project and so does this group")
    if own_project and own_project.group_id is None:
        own_project.group = group
        own_project.save(update_fields=["group", "updated_at"])

    membership.status = MembershipStatus.ACCEPTED
    membership.save(update_fields=["status", "updated_at"])
    notification_service.notify(
        group.created_by_id, "Invitation accepted", f'{user.username} joined "{group.name}".'
    )
    logger.info("User %s accepted invite to group %s", user.pk, group.pk)
    return membership


@transaction.atomic
def reject_invite(user: User, group_id: int) -> None:
    """Decline a pending invitation (the membership row is removed)."""
    ensure_capability(user, Capability.FORM_GROUP)
    group = _get_group(group_id)
    deleted, _ = StudentGroupMember.objects.filter(
        group=group, user=user, status=MembershipStatus.PENDING
    ).delete()
    if not deleted:
        raise AuthorizationError("You have no pending invitation to this group")
    logger.info("User %s declined invite to group %s", user.pk, group.pk)


@transaction.atomic
def leave_group(user: User, group_id: int) -> None:
    """Leave a group as a non-leader member.

    Raises:
        NotFoundError: If the group does not exist.
        AuthorizationError: If the caller is not a member.
        ConflictError: If the caller leads the group.
    """
    group = _get_group(group_id, lock=True)
    if group.created_by_id == user.id:
        raise ConflictError("The group leader cannot leave the group")
    # a project the member brought in on acceptance leaves with them
    StudentProject.objects.filter(student=user, group=group).update(group=None)
    deleted, _ = StudentGroupMember.objects.filter(group=group, user=user).delete()
    if not deleted:
        raise AuthorizationError("You are not a member of this group")
    logger.info("User %s left group %s", user.pk, group.pk)


def pending_invites(user: User):
    return StudentGroupMember.objects.pending().for_user(user).select_related("group", "group__created_by")


def get_my_group(user: User) -> dict[str, Any]:
    """The caller's group with their status, members and mentor.

    Raises:
        NotFoundError: If the caller is not in a group.
    """
    membership = StudentGroupMember.objects.select_related("group", "group__faculty").filter(user=user).first()
    if membership is None:
        raise NotFoundError("You are not in a group")
    group = membership.group
    members = group.memberships.select_related("user").order_by("id")
    return {
        "group": group,
        "my_status": membership.status,
        "members": [m for m in members],
        "faculty": group.faculty,
    }
