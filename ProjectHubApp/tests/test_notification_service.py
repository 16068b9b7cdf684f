import pytest

from ProjectHubApp.core.exceptions import NotFoundError
from ProjectHubApp.domain.services import notification_service

pytestmark = pytest.mark.django_db


def test_notify_and_list(student):
    notification_service.notify(student, "Hello", "first")
    notification_service.notify(student.id, "Again", "second")
    titles = [n.title for n in notification_service.list_notifications(student)]
    assert titles == ["Again", "Hello"]


def test_notify_many_deduplicates(student, other_student):
    created = notification_service.notify_many([student.id, other_student.id, student.id], "T", "M")
    assert len(created) == 2


def test_mark_read_own_only(student, other_student):
    n = notification_service.notify(student, "Hello", "msg")
    with pytest.raises(NotFoundError):
        notification_service.mark_read(other_student, n.id)
    assert notification_service.mark_read(student, n.id).is_read is True
    assert not notification_service.list_notifications(student, unread_only=True).exists()


def test_mark_all_read(student, other_student):
    for i in range(3):
        notification_service.notify(student, f"N{i}", "msg")
    notification_service.notify(other_student, "Keep", "msg")
    assert notification_service.mark_all_read(student) == 3
    assert notification_service.list_notifications(other_student, unread_only=True).count() == 1
