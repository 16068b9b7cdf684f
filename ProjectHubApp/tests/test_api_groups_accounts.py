import json

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from ProjectHubApp.core.choices import UserRole, MembershipStatus
from ProjectHubApp.domain.services import system_service
from ProjectHubApp.projects.models import StudentProject
from ProjectHubApp.tests.helpers import login, make_topic, PASSWORD
from ProjectHubApp.users.models import User

pytestmark = pytest.mark.django_db


def test_group_invitation_flow(student, other_student, teacher):
    leader = login(student)
    created = leader.post(
        "/api/student-groups",
        {"name": "Team", "description": "", "facultyId": teacher.id, "enrollmentNumbers": ["S002"]},
        format="json",
    )
    assert created.status_code == 201
    group_id = created.data["id"]

    invitee = login(other_student)
    invites = invitee.get("/api/groups/invite").data
    assert [i["group"]["id"] for i in invites] == [group_id]
    accepted = invitee.post(f"/api/groups/invite/{group_id}/accept")
    assert accepted.status_code == 200
    assert accepted.data["status"] == MembershipStatus.ACCEPTED

    my_group = invitee.get("/api/student-groups/my-group").data
    assert my_group["group"]["id"] == group_id
    assert {m["user"]["id"] for m in my_group["members"]} == {student.id, other_student.id}

    assert invitee.post(f"/api/student-groups/{group_id}/leave").status_code == 204
    assert leader.post(f"/api/student-groups/{group_id}/leave").status_code == 409


def test_group_with_unknown_enrollment_number(student, teacher):
    resp = login(student).post(
        "/api/student-groups",
        {"name": "Team", "facultyId": teacher.id, "enrollmentNumbers": ["X999"]},
        format="json",
    )
    assert resp.status_code == 400
    assert resp.data["error"] == "validation"


def test_reject_invite(student, other_student, teacher):
    group_id = login(student).post(
        "/api/student-groups", {"name": "Team", "facultyId": teacher.id, "enrollmentNumbers": ["S002"]}, format="json"
    ).data["id"]
    client = login(other_student)
    assert client.post(f"/api/groups/invite/{group_id}/reject").status_code == 200
    assert client.get("/api/groups/invite").data == []


def test_register_student_and_login():
    resp = APIClient().post(
        "/api/auth/register",
        {"username": "newbie", "email": "newbie@example.com", "password": "secret12", "enrollmentNumber": "E-1"},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.data["role"] == UserRole.STUDENT
    token = APIClient().post("/api/auth/token", {"username": "newbie", "password": "secret12"}, format="json")
    assert "access" in token.data


def test_anonymous_cannot_register_teacher():
    resp = APIClient().post(
        "/api/auth/register",
        {"username": "t", "email": "t@example.com", "password": "secret12", "role": "teacher"},
        format="json",
    )
    assert resp.status_code == 403


def test_admin_registers_teacher(admin):
    resp = login(admin).post(
        "/api/auth/register",
        {"username": "prof", "email": "prof@example.com", "password": "secret12", "role": "teacher"},
        format="json",
    )
    assert resp.status_code == 201
    assert [t["username"] for t in APIClient().get("/api/teachers").data] == ["prof"]


def test_profile_update_keeps_role(student):
    client = login(student)
    resp = client.put("/api/profile", {"firstName": "Grace", "role": "admin"}, format="json")
    assert resp.status_code == 200
    assert resp.data["first_name"] == "Grace"
    assert resp.data["role"] == UserRole.STUDENT


def test_admin_cannot_change_role(admin, student, coordinator):
    client = login(coordinator)
    assert client.patch(f"/api/admin/users/{student.id}", {"role": "teacher"}, format="json").status_code == 400
    resp = client.patch(f"/api/admin/users/{student.id}", {"lastName": "Hopper"}, format="json")
    assert resp.status_code == 200
    assert resp.data["last_name"] == "Hopper"
    assert len(client.get("/api/users").data) == User.objects.count()
    assert login(student).get("/api/users").status_code == 403


def test_notifications_endpoints(teacher, coordinator):
    topic = make_topic(teacher, status="pending")
    login(coordinator).post(f"/api/topics/{topic.id}/approve", {}, format="json")
    client = login(teacher)
    [note] = client.get("/api/notifications").data
    assert note["title"] == "Topic approved"
    assert client.post(f"/api/notifications/{note['id']}/read").data["is_read"] is True
    assert client.post("/api/notifications/read-all").data == {"updated": 0}
    assert login(coordinator).post(f"/api/notifications/{note['id']}/read").status_code == 404


def test_stats(teacher, student, other_student):
    make_topic(teacher, status="pending")
    topic = make_topic(teacher)
    login(student).post("/api/projects", {"topicId": topic.id}, format="json")
    stats = login(student).get("/api/stats").data
    assert stats["total_projects"] == 1
    assert stats["approved_topics"] == 1
    assert stats["pending_topics"] == 1
    assert stats["unassigned_students"] == 1
    assert stats["project_phases"]["topic_selection"] == 50


def test_admin_export_and_import(admin, teacher, student):
    topic = make_topic(teacher)
    login(student).post("/api/projects", {"topicId": topic.id}, format="json")
    client = login(admin)

    exported = client.post("/api/admin/export")
    assert exported.status_code == 200
    document = json.loads(exported.content)
    assert len(document["student_projects"]) == 1

    rows = client.post("/api/admin/export-excel").data["data"]
    assert rows[0]["Project Title"] == topic.title

    denied = client.post("/api/admin/import", {"password": "wrong", "data": document}, format="json")
    assert denied.status_code == 403

    StudentProject.objects.all().delete()
    restored = client.post("/api/admin/import", {"password": PASSWORD, "data": document}, format="json")
    assert restored.status_code == 200
    assert StudentProject.objects.filter(topic_id=topic.id, student_id=student.id).exists()


def test_admin_import_file_upload(admin, teacher):
    make_topic(teacher)
    document = system_service.export_state()
    upload = SimpleUploadedFile("export.json", json.dumps(document, default=str).encode(), content_type="application/json")
    resp = login(admin).post("/api/admin/import", {"password": PASSWORD, "file": upload}, format="multipart")
    assert resp.status_code == 200
    assert resp.data["imported"]["project_topics"] == 1


def test_admin_import_rejects_garbage_document(admin):
    resp = login(admin).post("/api/admin/import", {"password": PASSWORD, "data": {"nothing": []}}, format="json")
    assert resp.status_code == 400
    assert resp.data["error"] == "validation"


def test_admin_reset(admin, teacher, coordinator):
    make_topic(teacher)
    client = login(admin)
    assert client.post("/api/admin/reset", {"password": "nope"}, format="json").status_code == 403
    assert client.post("/api/admin/reset", {"password": PASSWORD}, format="json").status_code == 200
    assert set(User.objects.values_list("role", flat=True)) == {UserRole.ADMIN.value}


def test_admin_endpoints_are_admin_only(coordinator):
    client = login(coordinator)
    assert client.post("/api/admin/export").status_code == 403
    assert client.post("/api/admin/reset", {"password": PASSWORD}, format="json").status_code == 403


def test_teacher_cannot_answer_invites(student, teacher):
    group_id = login(student).post(
        "/api/student-groups", {"name": "Team", "facultyId": teacher.id}, format="json"
    ).data["id"]
    resp = login(teacher).post(f"/api/groups/invite/{group_id}/accept")
    assert resp.status_code == 403
    assert resp.data["error"] == "authorization"


def test_change_password(student):
    client = login(student)
    wrong = client.post(
        "/api/user/change-password", {"currentPassword": "nope", "newPassword": "fresh-secret"}, format="json"
    )
    assert wrong.status_code == 400
    assert wrong.data["error"] == "validation"

    resp = client.post(
        "/api/user/change-password", {"currentPassword": PASSWORD, "newPassword": "fresh-secret"}, format="json"
    )
    assert resp.status_code == 200
    student.refresh_from_db()
    assert student.check_password("fresh-secret")
    assert APIClient().post("/api/user/change-password", {}, format="json").status_code == 401


def test_report_search(teacher, student, coordinator):
    topic = make_topic(teacher, title="Drone swarm")
    login(student).post("/api/projects", {"topicId": topic.id}, format="json")
    client = login(coordinator)
    found = client.get("/api/reports/search", {"projectName": "drone", "enrollmentNumber": "S001"}).data
    assert [p["topic"]["id"] for p in found] == [topic.id]
    assert client.get("/api/reports/search", {"status": "completed"}).data == []
    assert client.get("/api/reports/search", {"status": "bogus"}).status_code == 400
    assert login(teacher).get("/api/reports/search").status_code == 403
