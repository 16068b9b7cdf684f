import pytest
from django.core.cache import cache

from ProjectHubApp.core.choices import UserRole
from ProjectHubApp.tests.helpers import make_user


@pytest.fixture(autouse=True)
def clear_cache():
    # throttle counters live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def admin():
    return make_user(UserRole.ADMIN, is_staff=True)


@pytest.fixture
def coordinator():
    return make_user(UserRole.COORDINATOR)


@pytest.fixture
def teacher():
    return make_user(UserRole.TEACHER, first_name="Ada", last_name="Lovelace")


@pytest.fixture
def other_teacher():
    return make_user(UserRole.TEACHER)


@pytest.fixture
def student():
    return make_user(UserRole.STUDENT, enrollment_number="S001")


@pytest.fixture
def other_student():
    return make_user(UserRole.STUDENT, enrollment_number="S002")


@pytest.fixture
def third_student():
    return make_user(UserRole.STUDENT, enrollment_number="S003")
