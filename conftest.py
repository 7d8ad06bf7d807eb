import pytest
from rest_framework.test import APIClient


@pytest.fixture
def user_password():
    from users.factories import DEFAULT_TEST_USER_PASSWORD

    return DEFAULT_TEST_USER_PASSWORD


@pytest.fixture
def user(user_password):
    from users.factories import UserFactory

    return UserFactory().create_user(first_name="Regular", last_name="User")


@pytest.fixture
def admin_user(user_password):
    from users.factories import UserFactory

    return UserFactory().create_admin(first_name="Admin", last_name="User")


@pytest.fixture
def auth_client(user, user_password):
    client = APIClient()
    client.login(email=user.email, password=user_password)
    return client


@pytest.fixture
def admin_client(admin_user, user_password):
    client = APIClient()
    client.login(email=admin_user.email, password=user_password)
    return client


@pytest.fixture
def anonymous_client():
    client = APIClient()
    return client


@pytest.fixture
def di_container():
    """Fixture to create a DI container."""
    from di_core.containers import container

    return container
