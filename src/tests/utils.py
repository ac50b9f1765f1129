"""Shared helpers for tests (role seeding, user creation, fake Redis)."""

from __future__ import annotations

from typing import Dict
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from access_control.bootstrap import ensure_default_roles
from authentication import tokens
from authentication.passwords import hash_password

User = get_user_model()


class FakeRedis:
    """In-memory stand-in for the two Redis commands the revocation list uses."""

    def __init__(self):
        self._store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        self._store[key] = value
        self.ttls[key] = ttl_seconds

    def get(self, key: str):
        return self._store.get(key)


class FakeRedisTestCase(TestCase):
    """TestCase that routes the token revocation list to an in-memory FakeRedis."""

    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.redis_patcher = mock.patch("authentication.tokens.get_redis_client", return_value=cls.fake_redis)
        cls.redis_patcher.start()

    @classmethod
    def tearDownClass(cls):
        cls.redis_patcher.stop()
        super().tearDownClass()


def seed_roles() -> dict:
    """Create the default roles through the same helper the app uses at startup."""

    return ensure_default_roles()


def create_user(email: str, password: str, *roles, **extra):
    """Create a user with a bcrypt-hashed password and the given roles."""

    user = User.objects.create(
        email=email,
        password_hash=hash_password(password),
        **extra,
    )
    if roles:
        user.roles.add(*roles)
    return user


def auth_client(user) -> APIClient:
    """Return an APIClient authenticated with a fresh access token."""

    token = tokens.issue(user, tokens.ACCESS)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client
