"""Group domain models: StudentGroup and StudentGroupMember."""

from django.db import models
from django.conf import settings

from simple_history.models import HistoricalRecords

from ProjectHubApp.core.choices import MembershipStatus
from ProjectHubApp.groups.querysets import MemberQuerySet


User = settings.AUTH_USER_MODEL

def default_max_size() -> int:
    return settings.PROJECTHUB["MAX_GROUP_SIZE"]

class StudentGroup(models.Model):
    """A leader-created set of students mentored by one teacher.

    Fields:
        name / description: Display fields.
        faculty: Teacher mentoring the group.
        created_by: Leader; fixed at creation and the only member allowed to select a topic.
        max_size: Upper bound on members including the leader.
        history: Audit history.
    """
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    faculty = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="mentored_groups"
    )
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="led_groups")
    max_size = models.PositiveSmallIntegerField(default=default_max_size)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    def __str__(self) -> str:
        return f"{self.name} (#{self.pk})"


class StudentGroupMember(models.Model):
    """Invitation/membership of a user in a group.

    Constraints:
        uq_group_member_user: a user holds at most one membership row across all
        groups, so a student cannot be invited into two groups at once.
    """
    group = models.ForeignKey(StudentGroup, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="group_memberships")
    status = models.CharField(
        max_length=16, choices=MembershipStatus.choices, default=MembershipStatus.PENDING
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MemberQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user"], name="uq_group_member_user"),
        ]

    def __str__(self) -> str:
        return f"{self.user} -> {self.group} ({self.status})"
