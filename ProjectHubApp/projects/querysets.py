"""Querysets for role-based project listings."""

from typing import Self

from django.db.models import QuerySet, Q

from ProjectHubApp.core.choices import MembershipStatus


class ProjectQuerySet(QuerySet):
    """QuerySet helpers for filtering projects by participant."""

    def with_related(self) -> Self:
        return self.select_related("topic", "topic__submitted_by", "student", "group")

    def for_teacher(self, user) -> Self:
        """Projects built on topics the teacher submitted."""
        return self.filter(topic__submitted_by=user)

    def for_student(self, user) -> Self:
        """Projects the student selected or holds through an accepted group membership."""
        return self.filter(
            Q(student=user) |
            Q(group__memberships__user=user,
              group__memberships__status=MembershipStatus.ACCEPTED)
        ).distinct()
