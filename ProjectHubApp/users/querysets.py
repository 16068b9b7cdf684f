"""Manager and queryset helpers for portal users."""

from typing import Self

from django.contrib.auth.models import UserManager
from django.db.models import QuerySet

from ProjectHubApp.core.choices import UserRole


class UserQuerySet(QuerySet):
    def students(self) -> Self:
        return self.filter(role=UserRole.STUDENT)

    def teachers(self) -> Self:
        return self.filter(role=UserRole.TEACHER)

    def admins(self) -> Self:
        return self.filter(role=UserRole.ADMIN)


class PortalUserManager(UserManager.from_queryset(UserQuerySet)):
    """UserManager that gives superusers the admin role."""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", UserRole.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)
