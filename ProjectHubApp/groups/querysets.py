"""Querysets for group membership lookups."""

from typing import Self

from django.db.models import QuerySet

from ProjectHubApp.core.choices import MembershipStatus


class MemberQuerySet(QuerySet):
    def accepted(self) -> Self:
        return self.filter(status=MembershipStatus.ACCEPTED)

    def pending(self) -> Self:
        return self.filter(status=MembershipStatus.PENDING)

    def for_user(self, user) -> Self:
        return self.filter(user=user)
