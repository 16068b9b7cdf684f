from django.contrib.auth.models import AbstractUser
from django.db import models

from ProjectHubApp.core.choices import UserRole
from ProjectHubApp.users.querysets import PortalUserManager

class User(AbstractUser):
    """Portal account. ``role`` is fixed at creation; students carry an enrollment number."""
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=UserRole.choices)
    enrollment_number = models.CharField(max_length=32, unique=True, null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PortalUserManager()

    REQUIRED_FIELDS = ["email"]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"
