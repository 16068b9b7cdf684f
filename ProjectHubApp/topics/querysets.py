"""Custom querysets for topic status projections and filtering."""

from typing import Any, Self

from django.db.models import QuerySet

from ProjectHubApp.core.choices import TopicStatus


class TopicQuerySet(QuerySet):
    """QuerySet with status projections used by the review and selection views."""

    def pending(self) -> Self:
        return self.filter(status=TopicStatus.PENDING)

    def approved(self) -> Self:
        return self.filter(status=TopicStatus.APPROVED)

    def rejected(self) -> Self:
        return self.filter(status=TopicStatus.REJECTED)

    def by_teacher(self, user) -> Self:
        """Topics submitted by the given teacher."""
        return self.filter(submitted_by=user)

    def filtered(self, filters: dict[str, Any] | None) -> Self:
        """Apply optional listing filters:
        - technology / project_type: case-insensitive exact match
        - submitted_by: teacher id
        - search: case-insensitive title substring
        """
        qs = self
        if not filters:
            return qs
        if filters.get("technology"):
            qs = qs.filter(technology__iexact=filters["technology"])
        if filters.get("project_type"):
            qs = qs.filter(project_type__iexact=filters["project_type"])
        if filters.get("submitted_by"):
            qs = qs.filter(submitted_by_id=filters["submitted_by"])
        if filters.get("search"):
            qs = qs.filter(title__icontains=filters["search"])
        return qs
