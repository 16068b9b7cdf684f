import pytest

from ProjectHubApp.core.choices import TopicStatus, Complexity
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError, NotFoundError, ConflictError
from ProjectHubApp.domain.services import topic_service
from ProjectHubApp.notifications.models import Notification
from ProjectHubApp.tests.helpers import make_topic

pytestmark = pytest.mark.django_db

FIELDS = {"title": "Compiler", "description": "Build one", "technology": "Rust"}


def test_submit_topic_starts_pending(teacher):
    topic = topic_service.submit_topic(teacher, {**FIELDS, "project_type": "Systems"})
    assert topic.status == TopicStatus.PENDING
    assert topic.submitted_by == teacher
    assert topic.estimated_complexity == Complexity.MEDIUM
    assert topic.history.count() == 1


def test_submit_topic_requires_teacher(student, coordinator):
    for user in (student, coordinator):
        with pytest.raises(AuthorizationError):
            topic_service.submit_topic(user, FIELDS)


def test_submit_topic_missing_fields(teacher):
    with pytest.raises(ValidationError):
        topic_service.submit_topic(teacher, {"title": "Only title"})
    with pytest.raises(ValidationError):
        topic_service.submit_topic(teacher, {**FIELDS, "technology": "   "})


def test_submit_topic_rejects_unknown_complexity(teacher):
    with pytest.raises(ValidationError):
        topic_service.submit_topic(teacher, {**FIELDS, "estimated_complexity": "Extreme"})


def test_approve_sets_feedback_reviewer_and_notifies(teacher, coordinator):
    topic = topic_service.submit_topic(teacher, FIELDS)
    topic = topic_service.approve_topic(coordinator, topic.id, "Good")
    assert topic.status == TopicStatus.APPROVED
    assert topic.feedback == "Good"
    assert topic.reviewed_by == coordinator
    assert topic.reviewed_at is not None
    assert Notification.objects.filter(user=teacher, title="Topic approved").exists()


def test_reject_with_feedback(teacher, admin):
    topic = topic_service.submit_topic(teacher, FIELDS)
    topic = topic_service.reject_topic(admin, topic.id, "Too broad")
    assert topic.status == TopicStatus.REJECTED
    assert topic.feedback == "Too broad"


def test_decided_topic_cannot_be_decided_again(teacher, coordinator):
    topic = topic_service.submit_topic(teacher, FIELDS)
    topic_service.approve_topic(coordinator, topic.id)
    with pytest.raises(ConflictError):
        topic_service.reject_topic(coordinator, topic.id)
    with pytest.raises(ConflictError):
        topic_service.approve_topic(coordinator, topic.id)
    topic.refresh_from_db()
    assert topic.status == TopicStatus.APPROVED


def test_only_reviewers_decide(teacher, student):
    topic = topic_service.submit_topic(teacher, FIELDS)
    for user in (teacher, student):
        with pytest.raises(AuthorizationError):
            topic_service.approve_topic(user, topic.id)


def test_decide_unknown_topic(coordinator):
    with pytest.raises(NotFoundError):
        topic_service.approve_topic(coordinator, 999999)


def test_edit_and_delete_only_own_pending(teacher, other_teacher, coordinator):
    topic = topic_service.submit_topic(teacher, FIELDS)
    edited = topic_service.edit_topic(teacher, topic.id, {"title": "Better compiler"})
    assert edited.title == "Better compiler"
    assert edited.description == FIELDS["description"]

    with pytest.raises(AuthorizationError):
        topic_service.edit_topic(other_teacher, topic.id, {"title": "Mine now"})

    topic_service.approve_topic(coordinator, topic.id)
    with pytest.raises(AuthorizationError):
        topic_service.edit_topic(teacher, topic.id, {"title": "Too late"})
    with pytest.raises(AuthorizationError):
        topic_service.delete_topic(teacher, topic.id)


def test_delete_pending_topic(teacher):
    topic = topic_service.submit_topic(teacher, FIELDS)
    topic_service.delete_topic(teacher, topic.id)
    with pytest.raises(NotFoundError):
        topic_service.edit_topic(teacher, topic.id, {"title": "x"})


def test_list_by_status_visibility(teacher, coordinator, student):
    pending = topic_service.submit_topic(teacher, FIELDS)
    approved = make_topic(teacher, title="Approved one")

    assert list(topic_service.list_by_status(coordinator, TopicStatus.PENDING)) == [pending]
    assert list(topic_service.list_by_status(student, TopicStatus.APPROVED)) == [approved]
    with pytest.raises(AuthorizationError):
        topic_service.list_by_status(student, TopicStatus.PENDING)
    with pytest.raises(ValidationError):
        topic_service.list_by_status(coordinator, "archived")


def test_list_filters(teacher, coordinator):
    make_topic(teacher, title="Web shop", technology="Django")
    make_topic(teacher, title="Chat bot", technology="Python")
    titles = [t.title for t in topic_service.list_by_status(coordinator, TopicStatus.APPROVED, {"technology": "django"})]
    assert titles == ["Web shop"]
    titles = [t.title for t in topic_service.list_by_status(coordinator, TopicStatus.APPROVED, {"search": "bot"})]
    assert titles == ["Chat bot"]


def test_get_visible_topic_hides_unapproved(teacher, other_teacher, student, coordinator):
    topic = topic_service.submit_topic(teacher, FIELDS)
    assert topic_service.get_visible_topic(teacher, topic.id) == topic
    assert topic_service.get_visible_topic(coordinator, topic.id) == topic
    for user in (other_teacher, student):
        with pytest.raises(NotFoundError):
            topic_service.get_visible_topic(user, topic.id)


def test_categorize_for_student(teacher, student, other_student):
    from ProjectHubApp.domain.services import allocation_service

    mine = make_topic(teacher, title="Mine")
    taken = make_topic(teacher, title="Taken")
    free = make_topic(teacher, title="Free")
    allocation_service.select_topic(student, mine.id)
    allocation_service.select_topic(other_student, taken.id)

    view = topic_service.categorize_for_student(student)
    assert view["has_selected_topic"] is True
    assert view["my_topic"] == mine
    assert view["available_topics"] == [free]
    assert view["taken_topics"] == [taken]
