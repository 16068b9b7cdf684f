"""Notification helpers: create, list and mark user notifications."""

import logging
from typing import Iterable

from django.db import transaction
from django.db.models import QuerySet

from ProjectHubApp.core.exceptions import NotFoundError
from ProjectHubApp.notifications.models import Notification
from ProjectHubApp.users.models import User

logger = logging.getLogger(__name__)


def notify(user: User | int, title: str, message: str) -> Notification:
    """Queue a notification for one user (accepts a user or a user id)."""
    user_id = user if isinstance(user, int) else user.id
    return Notification.objects.create(user_id=user_id, title=title, message=message)

def notify_many(user_ids: Iterable[int], title: str, message: str) -> list[Notification]:
    return Notification.objects.bulk_create(
        [Notification(user_id=uid, title=title, message=message) for uid in set(user_ids)]
    )

def list_notifications(user: User, unread_only: bool = False) -> QuerySet[Notification]:
    qs = Notification.objects.filter(user=user)
    if unread_only:
        qs = qs.filter(is_read=False)
    return qs

@transaction.atomic
def mark_read(user: User, notification_id: int) -> Notification:
    """Mark one of the user's notifications as read.

    Raises:
        NotFoundError: If the notification does not exist or belongs to someone else.
    """
    try:
        notification = Notification.objects.select_for_update().get(pk=notification_id, user=user)
    except Notification.DoesNotExist:
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=["is_read", "updated_at"])
    return notification

@transaction.atomic
def mark_all_read(user: User) -> int:
    updated = Notification.objects.filter(user=user, is_read=False).update(is_read=True)
    logger.info("Marked %s notifications read for user %s", updated, user.id)
    return updated
