"""Custom DRF permission classes built on the capability table."""

from typing import Any

from rest_framework.permissions import BasePermission
from rest_framework.request import Request

from ProjectHubApp.core.capabilities import Capability, has_capability


class HasCapability(BasePermission):
    """Allow access if the requesting user's role grants ``capability``."""
    capability: Capability | None = None
    message = "Your role does not allow this action."

    def has_permission(self, request: Request, view: Any) -> bool:
        if self.capability is None:
            return bool(request.user and request.user.is_authenticated)
        return has_capability(request.user, self.capability)


def requires(capability: Capability) -> type[HasCapability]:
    """Build a HasCapability subclass bound to one capability."""
    return type(f"Requires{capability.name.title().replace('_', '')}", (HasCapability,), {"capability": capability})
