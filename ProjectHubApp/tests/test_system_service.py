import pytest
from django.conf import settings

from ProjectHubApp.core.choices import UserRole
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError
from ProjectHubApp.domain.services import (
    allocation_service,
    evaluation_service,
    group_service,
    system_service,
)
from ProjectHubApp.groups.models import StudentGroup, StudentGroupMember
from ProjectHubApp.projects.models import StudentProject, ProjectAssessment
from ProjectHubApp.tests.helpers import make_topic, PASSWORD
from ProjectHubApp.topics.models import ProjectTopic
from ProjectHubApp.users.models import User

pytestmark = pytest.mark.django_db


@pytest.fixture
def populated(admin, student, other_student, teacher):
    group = group_service.create_group(student, "Team", teacher.id, ["S002"])
    group_service.accept_invite(other_student, group.id)
    topic = make_topic(teacher, title="Drone")
    make_topic(teacher, title="Spare")
    project = allocation_service.select_topic(student, topic.id)
    allocation_service.update_progress(teacher, project.id, 80)
    evaluation_service.evaluate(teacher, project.id, 88, "solid")
    return project


def _snapshot():
    return {
        "users": sorted(User.objects.exclude(role=UserRole.ADMIN).values_list("id", "username", "role")),
        "groups": sorted(StudentGroup.objects.values_list("id", "name", "created_by_id", "faculty_id")),
        "members": sorted(StudentGroupMember.objects.values_list("id", "group_id", "user_id", "status")),
        "topics": sorted(ProjectTopic.objects.values_list("id", "title", "status", "submitted_by_id")),
        "projects": sorted(StudentProject.objects.values_list("id", "topic_id", "student_id", "group_id", "progress")),
        "assessments": sorted(ProjectAssessment.objects.values_list("id", "project_id", "faculty_id", "score")),
    }


def test_export_import_round_trip(populated):
    before = _snapshot()
    document = system_service.export_state()
    assert set(system_service.TABLES) <= set(document)
    assert "timestamp" in document

    system_service.reset_state()
    assert not StudentProject.objects.exists()

    counts = system_service.import_state(document)
    assert counts["student_projects"] == 1
    assert _snapshot() == before


def test_imported_users_can_log_in(populated, student):
    document = system_service.export_state()
    system_service.import_state(document)
    assert User.objects.get(pk=student.pk).check_password(PASSWORD)


def test_import_keeps_existing_admins(populated, admin):
    document = system_service.export_state()
    system_service.import_state(document)
    assert User.objects.filter(pk=admin.pk, role=UserRole.ADMIN).exists()


@pytest.mark.parametrize("document", [
    [],
    {"timestamp": "now"},
    {"users": "nope"},
    {"users": [{"username": "no-id"}]},
])
def test_import_rejects_malformed_documents(admin, document):
    with pytest.raises(ValidationError):
        system_service.import_state(document)


def test_import_rejects_dangling_reference_and_rolls_back(populated):
    document = system_service.export_state()
    document["student_projects"][0]["topic_id"] = 999999
    before = _snapshot()
    with pytest.raises(ValidationError):
        system_service.import_state(document)
    assert _snapshot() == before


def test_import_rejects_bad_enum(populated):
    document = system_service.export_state()
    document["project_topics"][0]["status"] = "maybe"
    with pytest.raises(ValidationError):
        system_service.import_state(document)


def test_reset_restores_seed_state(populated, admin):
    system_service.reset_state()
    assert set(User.objects.values_list("role", flat=True)) == {UserRole.ADMIN.value}
    admin.refresh_from_db()
    assert admin.check_password(settings.PROJECTHUB["DEFAULT_ADMIN_PASSWORD"])
    assert User.objects.filter(username=settings.PROJECTHUB["DEFAULT_ADMIN_USERNAME"]).exists()
    assert not ProjectTopic.objects.exists()


def test_export_report_rows(populated, teacher):
    [row] = system_service.export_report()
    assert row["Project Title"] == "Drone"
    assert row["Group Details"] == "Team (2 members)"
    assert row["Progress (%)"] == 80
    assert row["Average Marks"] == "88.00"
    assert row["Faculty Assigned"] == teacher.full_name
    assert row["Submission Status"] == "On Track"


@pytest.mark.parametrize("progress,label", [(100, "Completed"), (75, "On Track"), (74, "At Risk")])
def test_submission_status_labels(progress, label):
    assert system_service._submission_status(progress) == label


def test_confirm_password(admin, teacher):
    system_service.confirm_password(admin, PASSWORD)
    with pytest.raises(AuthorizationError):
        system_service.confirm_password(admin, "wrong")
    with pytest.raises(AuthorizationError):
        system_service.confirm_password(teacher, PASSWORD)


def test_ensure_default_admin_is_idempotent():
    first = system_service.ensure_default_admin()
    second = system_service.ensure_default_admin()
    assert first.pk == second.pk
    assert first.role == UserRole.ADMIN
    assert first.is_superuser
