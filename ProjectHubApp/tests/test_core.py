import pytest
from hypothesis import given, strategies as st
from model_bakery import baker

from ProjectHubApp.core.capabilities import Capability, CAPABILITIES, has_capability, ensure_capability
from ProjectHubApp.core.choices import UserRole
from ProjectHubApp.core.exceptions import (
    ValidationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    tag_for,
)
from ProjectHubApp.core.validators import validate_percentage
from rest_framework import exceptions


@given(st.integers(min_value=0, max_value=100))
def test_percentage_accepts_range(value):
    assert validate_percentage(value, "progress") == value


@given(st.one_of(st.integers(max_value=-1), st.integers(min_value=101)))
def test_percentage_rejects_outside_range(value):
    with pytest.raises(ValidationError):
        validate_percentage(value, "progress")


@given(st.one_of(st.floats(), st.text(), st.booleans(), st.none()))
def test_percentage_rejects_non_integers(value):
    with pytest.raises(ValidationError):
        validate_percentage(value, "marks")


def test_every_capability_has_roles():
    for capability in Capability:
        assert CAPABILITIES[capability]
        assert CAPABILITIES[capability] <= set(UserRole.values)


@pytest.mark.parametrize("role,capability,allowed", [
    (UserRole.TEACHER, Capability.SUBMIT_TOPIC, True),
    (UserRole.STUDENT, Capability.SUBMIT_TOPIC, False),
    (UserRole.COORDINATOR, Capability.REVIEW_TOPIC, True),
    (UserRole.ADMIN, Capability.REVIEW_TOPIC, True),
    (UserRole.TEACHER, Capability.REVIEW_TOPIC, False),
    (UserRole.STUDENT, Capability.SELECT_TOPIC, True),
    (UserRole.ADMIN, Capability.SELECT_TOPIC, False),
    (UserRole.COORDINATOR, Capability.ADMINISTER_SYSTEM, False),
])
def test_capability_table(role, capability, allowed):
    user = baker.prepare("users.User", role=role)
    assert has_capability(user, capability) is allowed


def test_ensure_capability_raises_authorization_error():
    user = baker.prepare("users.User", role=UserRole.STUDENT)
    with pytest.raises(AuthorizationError):
        ensure_capability(user, Capability.EVALUATE)
    assert has_capability(None, Capability.EVALUATE) is False


@pytest.mark.parametrize("exc,tag", [
    (ValidationError("x"), "validation"),
    (AuthorizationError(), "authorization"),
    (NotFoundError(), "not_found"),
    (ConflictError(), "conflict"),
    (exceptions.ValidationError({"title": ["required"]}), "validation"),
    (exceptions.NotAuthenticated(), "authentication"),
    (exceptions.Throttled(), "throttled"),
    (RuntimeError(), "error"),
])
def test_error_tags(exc, tag):
    assert tag_for(exc) == tag
