import pytest

from users.constants import UserRole
from users.models import User


@pytest.mark.django_db
def test_create_user():
    """Test creating a regular user"""
    user = User.objects.create_user(email="test@example.com", password="testpassword123")
    assert user.email == "test@example.com"
    assert user.check_password("testpassword123")
    assert user.role == UserRole.USER
    assert not user.is_admin
    assert not user.is_superuser
    assert not user.is_staff
    assert user.is_active


@pytest.mark.django_db
def test_create_user_with_additional_fields():
    """Test creating a user with additional fields"""
    user = User.objects.create_user(
        email="test@example.com", password="testpassword123", first_name="Ada", last_name="Lovelace"
    )
    assert user.get_full_name() == "Ada Lovelace"
    assert user.get_short_name() == "Ada"


@pytest.mark.django_db
def test_create_user_without_email_fails():
    with pytest.raises(ValueError):
        User.objects.create_user(email="", password="testpassword123")


@pytest.mark.django_db
def test_create_superuser():
    """Test creating a superuser"""
    admin_user = User.objects.create_superuser(
        email="admin@example.com", password="adminpassword123"
    )
    assert admin_user.email == "admin@example.com"
    assert admin_user.check_password("adminpassword123")
    assert admin_user.is_superuser
    assert admin_user.is_staff
    assert admin_user.is_active
    assert admin_user.role == UserRole.ADMIN
    assert admin_user.is_admin


@pytest.mark.django_db
def test_email_normalization():
    """Test email normalization during user creation"""
    user = User.objects.create_user(email="Test@EXAMPLE.com", password="testpassword123")
    # BaseUserManager.normalize_email() only normalizes the domain part
    assert user.email == "Test@example.com"


@pytest.mark.django_db
def test_filter_admins():
    admin_user = User.objects.create_user(
        email="admin@example.com", password="x", role=UserRole.ADMIN
    )
    User.objects.create_user(email="regular@example.com", password="x")

    assert list(User.objects.filter_admins()) == [admin_user]
