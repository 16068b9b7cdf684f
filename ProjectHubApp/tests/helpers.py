from model_bakery import baker
from rest_framework.test import APIClient

from ProjectHubApp.core.choices import TopicStatus

PASSWORD = "pass1234"


def make_user(role, **kwargs):
    u = baker.make("users.User", role=role, **kwargs)
    u.set_password(PASSWORD); u.save()
    return u


def login(user):
    client = APIClient()
    token = client.post("/api/auth/token", {"username": user.username, "password": PASSWORD}, format="json").data["access"]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


def make_topic(teacher, status=TopicStatus.APPROVED, **kwargs):
    fields = {"title": "Topic", "description": "Desc", "technology": "Python"}
    fields.update(kwargs)
    return baker.make("topics.ProjectTopic", submitted_by=teacher, status=status, **fields)
