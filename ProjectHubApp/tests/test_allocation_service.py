import threading

import pytest
from django.db import connection

from ProjectHubApp.core.choices import TopicStatus, ProjectStatus
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError, NotFoundError, ConflictError
from ProjectHubApp.domain.services import allocation_service, group_service
from ProjectHubApp.notifications.models import Notification
from ProjectHubApp.projects.models import StudentProject
from ProjectHubApp.tests.helpers import make_topic

pytestmark = pytest.mark.django_db


def test_individual_selection(student, teacher):
    topic = make_topic(teacher)
    project = allocation_service.select_topic(student, topic.id)
    assert project.student == student
    assert project.group is None
    assert project.progress == 0
    assert project.status == ProjectStatus.IN_PROGRESS
    assert Notification.objects.filter(user=teacher, title="Topic selected").exists()


def test_claimed_topic_cannot_be_selected_twice(student, other_student, teacher):
    topic = make_topic(teacher)
    allocation_service.select_topic(student, topic.id)
    with pytest.raises(ConflictError):
        allocation_service.select_topic(other_student, topic.id)
    assert StudentProject.objects.filter(topic=topic).count() == 1


@pytest.mark.parametrize("status", [TopicStatus.PENDING, TopicStatus.REJECTED])
def test_unapproved_topic_cannot_be_selected(student, teacher, status):
    topic = make_topic(teacher, status=status)
    with pytest.raises(ConflictError):
        allocation_service.select_topic(student, topic.id)
    assert not StudentProject.objects.exists()


def test_student_holds_one_project(student, teacher):
    allocation_service.select_topic(student, make_topic(teacher, title="A").id)
    with pytest.raises(ConflictError):
        allocation_service.select_topic(student, make_topic(teacher, title="B").id)
    assert StudentProject.objects.count() == 1


def test_selection_errors(student, teacher):
    with pytest.raises(NotFoundError):
        allocation_service.select_topic(student, 999999)
    with pytest.raises(ValidationError):
        allocation_service.select_topic(student, None)
    with pytest.raises(AuthorizationError):
        allocation_service.select_topic(teacher, make_topic(teacher).id)


def test_group_leader_selects_for_group(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    group_service.accept_invite(other_student, group.id)
    project = allocation_service.select_topic(student, make_topic(teacher).id)
    assert project.group == group
    assert set(project.participant_ids()) == {student.id, other_student.id}
    assert list(allocation_service.list_my_projects(other_student)) == [project]


def test_group_member_cannot_select(student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    group_service.accept_invite(other_student, group.id)
    with pytest.raises(AuthorizationError):
        allocation_service.select_topic(other_student, make_topic(teacher).id)


def test_pending_invitee_cannot_select(student, other_student, teacher):
    group_service.create_group(student, "Team", teacher.id, ["S002"])
    with pytest.raises(ConflictError):
        allocation_service.select_topic(other_student, make_topic(teacher).id)


def test_two_groups_race_for_one_topic(student, other_student, teacher):
    topic = make_topic(teacher)
    group_service.create_group(student, "Team A", teacher.id)
    group_service.create_group(other_student, "Team B", teacher.id)
    allocation_service.select_topic(student, topic.id)
    with pytest.raises(ConflictError) as exc:
        allocation_service.select_topic(other_student, topic.id)
    assert "already been selected" in str(exc.value.detail)


def test_update_progress_completes_and_reopens(student, teacher):
    project = allocation_service.select_topic(student, make_topic(teacher).id)
    project = allocation_service.update_progress(teacher, project.id, 100)
    assert project.status == ProjectStatus.COMPLETED
    project = allocation_service.update_progress(teacher, project.id, 40)
    assert project.status == ProjectStatus.IN_PROGRESS
    assert project.progress == 40


@pytest.mark.parametrize("value", [-1, 101, "50", None, True])
def test_update_progress_rejects_out_of_range(student, teacher, value):
    project = allocation_service.select_topic(student, make_topic(teacher).id)
    with pytest.raises(ValidationError):
        allocation_service.update_progress(teacher, project.id, value)


def test_update_progress_topic_owner_only(student, teacher, other_teacher):
    project = allocation_service.select_topic(student, make_topic(teacher).id)
    with pytest.raises(AuthorizationError):
        allocation_service.update_progress(other_teacher, project.id, 10)
    with pytest.raises(AuthorizationError):
        allocation_service.update_progress(student, project.id, 10)


def test_project_listings(student, other_student, teacher, other_teacher, coordinator):
    p1 = allocation_service.select_topic(student, make_topic(teacher).id)
    p2 = allocation_service.select_topic(other_student, make_topic(other_teacher).id)
    assert list(allocation_service.list_teacher_projects(teacher)) == [p1]
    assert list(allocation_service.list_all_projects(coordinator)) == [p1, p2]
    with pytest.raises(AuthorizationError):
        allocation_service.list_all_projects(student)


def _select_in_thread(student, topic_id, start, outcomes):
    try:
        start.wait()
        allocation_service.select_topic(student, topic_id)
        outcomes.append("ok")
    except ConflictError:
        outcomes.append("conflict")
    except Exception as exc:
        outcomes.append(repr(exc))
    finally:
        connection.close()


@pytest.mark.django_db(transaction=True)
def test_concurrent_selections_of_one_topic(student, other_student, teacher):
    topic = make_topic(teacher)
    group_service.create_group(student, "Team A", teacher.id)
    group_service.create_group(other_student, "Team B", teacher.id)
    start = threading.Barrier(2)
    outcomes = []
    threads = [
        threading.Thread(target=_select_in_thread, args=(s, topic.id, start, outcomes))
        for s in (student, other_student)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["conflict", "ok"]
    assert StudentProject.objects.filter(topic=topic).count() == 1
