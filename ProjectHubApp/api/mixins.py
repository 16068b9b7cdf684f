"""View mixins shared by the API viewsets."""

from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from ProjectHubApp.core.permissions import requires

class PaginationMixin:
    """Shared helper to reduce pagination boilerplate."""

    def paginate_and_respond(self, queryset, serializer_cls, many=True):
        page = self.paginate_queryset(queryset)
        serializer = serializer_cls(page if page is not None else queryset, many=many)
        if page is not None:
            return self.get_paginated_response(serializer.data)
        return Response(serializer.data)


class CapabilityPermissionsMixin:
    """Resolve per-action permissions from ``action_capabilities``.

    Actions without an entry fall back to the view's ``permission_classes``.
    """
    action_capabilities: dict = {}

    def get_permissions(self) -> list:
        capability = self.action_capabilities.get(self.action)
        if capability is not None:
            return [IsAuthenticated(), requires(capability)()]
        return super().get_permissions()
