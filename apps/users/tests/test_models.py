"""Tests for the custom user model."""

from __future__ import annotations

import pytest

from apps.users.models import User

pytestmark = pytest.mark.django_db


def test_create_user_uses_email_login():
    user = User.objects.create_user(email="Traveler@EXAMPLE.com", password="StrongPass123")

    assert user.email == "Traveler@example.com"
    assert user.role == User.RoleChoices.TRAVELER
    assert user.check_password("StrongPass123")
    assert not user.is_staff
    assert not user.is_host()


def test_create_user_requires_email():
    with pytest.raises(ValueError):
        User.objects.create_user(email="", password="x")


def test_superuser_is_admin():
    admin = User.objects.create_superuser(email="admin@example.com", password="AdminPass123")

    assert admin.is_staff and admin.is_superuser
    assert admin.role == User.RoleChoices.ADMIN


def test_host_role():
    host = User.objects.create_user(email="host@example.com", role=User.RoleChoices.HOST)

    assert host.is_host()
    assert not host.has_usable_password()
    assert str(host) == "host@example.com (Host)"
