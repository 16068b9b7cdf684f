"""Capability table: which roles may perform which operation.

Role checks go through ``ensure_capability`` instead of comparing role strings
at call sites. Ownership rules (e.g. "only the submitting teacher") are layered
on top by the services.
"""

from enum import Enum

from ProjectHubApp.core.choices import UserRole
from ProjectHubApp.core.exceptions import AuthorizationError


class Capability(str, Enum):
    SUBMIT_TOPIC = "submit_topic"
    EDIT_TOPIC = "edit_topic"
    REVIEW_TOPIC = "review_topic"
    VIEW_UNAPPROVED_TOPICS = "view_unapproved_topics"
    FORM_GROUP = "form_group"
    SELECT_TOPIC = "select_topic"
    UPDATE_PROGRESS = "update_progress"
    EVALUATE = "evaluate"
    MANAGE_MILESTONES = "manage_milestones"
    VIEW_ALL_PROJECTS = "view_all_projects"
    VIEW_REPORTS = "view_reports"
    SEARCH_PROJECTS = "search_projects"
    MANAGE_USERS = "manage_users"
    ADMINISTER_SYSTEM = "administer_system"


def _roles(*roles: UserRole) -> frozenset[str]:
    return frozenset(role.value for role in roles)


CAPABILITIES: dict[Capability, frozenset[str]] = {
    Capability.SUBMIT_TOPIC: _roles(UserRole.TEACHER),
    Capability.EDIT_TOPIC: _roles(UserRole.TEACHER),
    Capability.REVIEW_TOPIC: _roles(UserRole.COORDINATOR, UserRole.ADMIN),
    Capability.VIEW_UNAPPROVED_TOPICS: _roles(UserRole.COORDINATOR, UserRole.ADMIN),
    Capability.FORM_GROUP: _roles(UserRole.STUDENT),
    Capability.SELECT_TOPIC: _roles(UserRole.STUDENT),
    Capability.UPDATE_PROGRESS: _roles(UserRole.TEACHER),
    Capability.EVALUATE: _roles(UserRole.TEACHER),
    Capability.MANAGE_MILESTONES: _roles(UserRole.TEACHER),
    Capability.VIEW_ALL_PROJECTS: _roles(UserRole.COORDINATOR, UserRole.ADMIN, UserRole.TEACHER),
    Capability.VIEW_REPORTS: _roles(UserRole.COORDINATOR, UserRole.ADMIN, UserRole.TEACHER),
    Capability.SEARCH_PROJECTS: _roles(UserRole.COORDINATOR, UserRole.ADMIN),
    Capability.MANAGE_USERS: _roles(UserRole.COORDINATOR, UserRole.ADMIN),
    Capability.ADMINISTER_SYSTEM: _roles(UserRole.ADMIN),
}


def roles_for(capability: Capability) -> frozenset[str]:
    return CAPABILITIES[capability]


def has_capability(user, capability: Capability) -> bool:
    """Return True if the user's role grants the capability."""
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    return str(user.role) in CAPABILITIES[capability]


def ensure_capability(user, capability: Capability) -> None:
    """Raise AuthorizationError unless the user's role grants the capability."""
    if not has_capability(user, capability):
        allowed = ", ".join(sorted(CAPABILITIES[capability]))
        raise AuthorizationError(f"Requires one of roles: {allowed}")
