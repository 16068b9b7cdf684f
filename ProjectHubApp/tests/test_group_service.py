import pytest

from ProjectHubApp.core.choices import MembershipStatus, UserRole
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError, NotFoundError, ConflictError
from ProjectHubApp.domain.services import allocation_service, group_service
from ProjectHubApp.groups.models import StudentGroup, StudentGroupMember
from ProjectHubApp.notifications.models import Notification
from ProjectHubApp.tests.helpers import make_user, make_topic

pytestmark = pytest.mark.django_db


def test_create_group_leader_accepted_invitees_pending(student, other_student, third_student, teacher):
    group = group_service.create_group(student, "Team A", teacher.id, ["S002", "S003"])
    statuses = dict(group.memberships.values_list("user_id", "status"))
    assert statuses == {
        student.id: MembershipStatus.ACCEPTED,
        other_student.id: MembershipStatus.PENDING,
        third_student.id: MembershipStatus.PENDING,
    }
    assert group.created_by == student
    assert group.faculty == teacher
    assert Notification.objects.filter(user=other_student, title="Group Invitation").exists()


def test_create_group_ignores_duplicates_and_own_number(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, [" S002", "S002", "S001"])
    assert group.memberships.count() == 2


def test_create_group_validation(student, teacher, coordinator):
    with pytest.raises(ValidationError):
        group_service.create_group(student, "  ", teacher.id)
    with pytest.raises(ValidationError):
        group_service.create_group(student, "Team", coordinator.id)
    with pytest.raises(ValidationError):
        group_service.create_group(student, "Team", teacher.id, ["NOPE"])
    assert not StudentGroup.objects.exists()


def test_create_group_requires_student(teacher):
    with pytest.raises(AuthorizationError):
        group_service.create_group(teacher, "Team", teacher.id)


def test_create_group_too_many_members(student, teacher):
    for n in range(2, 7):
        make_user(UserRole.STUDENT, enrollment_number=f"S00{n}")
    with pytest.raises(ValidationError):
        group_service.create_group(student, "Big", teacher.id, [f"S00{n}" for n in range(2, 7)], max_size=5)


def test_student_cannot_be_in_two_groups(student, other_student, third_student, teacher):
    group_service.create_group(student, "Team A", teacher.id, ["S002"])
    with pytest.raises(ConflictError):
        group_service.create_group(third_student, "Team B", teacher.id, ["S002"])
    with pytest.raises(ConflictError):
        group_service.create_group(student, "Team C", teacher.id)
    assert StudentGroup.objects.count() == 1


def test_accept_invite(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    membership = group_service.accept_invite(other_student, group.id)
    assert membership.status == MembershipStatus.ACCEPTED
    assert Notification.objects.filter(user=student, title="Invitation accepted").exists()
    # accepting again is a no-op
    assert group_service.accept_invite(other_student, group.id).status == MembershipStatus.ACCEPTED


def test_accept_invite_requires_invitation(student, third_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id)
    with pytest.raises(AuthorizationError):
        group_service.accept_invite(third_student, group.id)
    with pytest.raises(NotFoundError):
        group_service.accept_invite(third_student, 999999)


def test_accept_invite_full_group(student, other_student, third_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002", "S003"], max_size=3)
    group_service.accept_invite(other_student, group.id)
    group.max_size = 2
    group.save()
    with pytest.raises(ConflictError):
        group_service.accept_invite(third_student, group.id)
    assert group.memberships.accepted().count() == 2


def test_accept_attaches_individual_project(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    # the invitee already picked a topic on their own before answering
    StudentGroupMember.objects.filter(user=other_student).delete()
    project = allocation_service.select_topic(other_student, make_topic(teacher).id)
    StudentGroupMember.objects.create(group=group, user=other_student)

    group_service.accept_invite(other_student, group.id)
    project.refresh_from_db()
    assert project.group == group


def test_reject_invite_removes_membership(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    group_service.reject_invite(other_student, group.id)
    assert not StudentGroupMember.objects.filter(user=other_student).exists()
    with pytest.raises(AuthorizationError):
        group_service.reject_invite(other_student, group.id)


def test_leave_group(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    group_service.accept_invite(other_student, group.id)
    with pytest.raises(ConflictError):
        group_service.leave_group(student, group.id)
    group_service.leave_group(other_student, group.id)
    assert group.memberships.count() == 1
    with pytest.raises(AuthorizationError):
        group_service.leave_group(other_student, group.id)


def test_leaving_member_takes_their_project_along(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    StudentGroupMember.objects.filter(user=other_student).delete()
    solo = allocation_service.select_topic(other_student, make_topic(teacher, title="Solo").id)
    StudentGroupMember.objects.create(group=group, user=other_student)
    group_service.accept_invite(other_student, group.id)

    group_service.leave_group(other_student, group.id)
    solo.refresh_from_db()
    assert solo.group is None
    assert list(allocation_service.list_my_projects(student)) == []
    project = allocation_service.select_topic(student, make_topic(teacher, title="Team topic").id)
    assert project.group == group


def test_pending_invites_and_my_group(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    invites = list(group_service.pending_invites(other_student))
    assert [i.group_id for i in invites] == [group.id]

    view = group_service.get_my_group(other_student)
    assert view["group"] == group
    assert view["my_status"] == MembershipStatus.PENDING
    assert view["faculty"] == teacher
    assert {m.user_id for m in view["members"]} == {student.id, other_student.id}


def test_my_group_not_found(third_student):
    with pytest.raises(NotFoundError):
        group_service.get_my_group(third_student)


def test_only_students_answer_invites(student, teacher):
    group = group_service.create_group(student, "Team", teacher.id)
    with pytest.raises(AuthorizationError):
        group_service.accept_invite(teacher, group.id)
    with pytest.raises(AuthorizationError):
        group_service.reject_invite(teacher, group.id)
