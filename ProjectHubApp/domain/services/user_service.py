"""Account registration, profile and user administration."""

import logging
from typing import Any

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import QuerySet

from ProjectHubApp.core.capabilities import Capability, ensure_capability, has_capability
from ProjectHubApp.core.choices import UserRole
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError, NotFoundError
from ProjectHubApp.users.models import User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("first_name", "last_name", "email")
ADMIN_EDITABLE_FIELDS = PROFILE_FIELDS + ("username", "enrollment_number", "is_active")


@transaction.atomic
def register(actor: User | None, data: dict[str, Any]) -> User:
    """Create an account.

    Anonymous callers and non-admins may only register students; an admin may
    create any role. Students must supply an enrollment number.
    """
    role = data.get("role") or UserRole.STUDENT
    if role != UserRole.STUDENT and not has_capability(actor, Capability.ADMINISTER_SYSTEM):
        raise AuthorizationError("Only an admin can create non-student accounts")
    if role == UserRole.STUDENT and not data.get("enrollment_number"):
        raise ValidationError("Students must provide an enrollment number")

    user = User(
        username=data["username"],
        email=data["email"],
        first_name=data.get("first_name", ""),
        last_name=data.get("last_name", ""),
        role=role,
        enrollment_number=data.get("enrollment_number") or None,
        is_staff=role == UserRole.ADMIN,
    )
    user.set_password(data["password"])
    user.save()
    logger.info("Registered %s account %s", role, user.pk)
    return user


@transaction.atomic
def update_profile(user: User, data: dict[str, Any]) -> User:
    """Update the caller's names and email. Role is never changed here."""
    changed = [f for f in PROFILE_FIELDS if f in data]
    for field in changed:
        setattr(user, field, data[field])
    if changed:
        user.save(update_fields=[*changed, "updated_at"])
    return user


@transaction.atomic
def change_password(user: User, current_password: str, new_password: str) -> None:
    """Replace the caller's password after checking the current one.

    Raises:
        ValidationError: Wrong current password, or a new password the
            configured validators reject.
    """
    if not current_password or not user.check_password(current_password):
        logger.warning("Password change refused for user %s", user.pk)
        raise ValidationError("Current password is incorrect")
    try:
        validate_password(new_password, user)
    except DjangoValidationError as exc:
        raise ValidationError(exc.messages)
    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])
    logger.info("User %s changed their password", user.pk)


def list_users(actor: User) -> QuerySet[User]:
    ensure_capability(actor, Capability.MANAGE_USERS)
    return User.objects.order_by("id")


def list_teachers() -> QuerySet[User]:
    return User.objects.teachers().filter(is_active=True).order_by("last_name", "first_name", "id")


@transaction.atomic
def admin_update_user(actor: User, user_id: int, data: dict[str, Any]) -> User:
    """Edit another account (admin/coordinator). Roles are fixed at creation.

    Raises:
        AuthorizationError: Actor cannot manage users.
        NotFoundError: Unknown user.
        ValidationError: Attempt to change the role.
    """
    ensure_capability(actor, Capability.MANAGE_USERS)
    try:
        user = User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        raise NotFoundError("User not found")
    if "role" in data and data["role"] != user.role:
        raise ValidationError("Role cannot be changed after account creation")

    changed = [f for f in ADMIN_EDITABLE_FIELDS if f in data]
    for field in changed:
        setattr(user, field, data[field])
    if data.get("password"):
        user.set_password(data["password"])
        changed.append("password")
    if changed:
        user.save(update_fields=[*changed, "updated_at"])
    logger.info("User %s updated by %s: %s", user.pk, actor.pk, ", ".join(changed) or "no changes")
    return user
