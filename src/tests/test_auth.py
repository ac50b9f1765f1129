"""Session tests: login, refresh rotation, logout and bearer token checks."""

from __future__ import annotations

import time
import uuid
from unittest import mock

import jwt
import redis
from django.conf import settings
from django.db import DatabaseError
from rest_framework.test import APIClient

from authentication import tokens
from tests.utils import FakeRedisTestCase, auth_client, create_user, seed_roles


class SessionTests(FakeRedisTestCase):
    @classmethod
    def setUpTestData(cls):
        cls.roles = seed_roles()
        cls.password = "StrongPass123"
        cls.user = create_user("writer@example.com", cls.password, cls.roles["User"])

    def setUp(self):
        self.client = APIClient()

    def _login(self, email=None, password=None):
        return self.client.post(
            "/auth/login/",
            {"email": email or self.user.email, "password": password or self.password},
            format="json",
        )

    def _bearer(self, access):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        return client

    def _forge(self, **overrides):
        now = int(time.time())
        payload = {
            "sub": str(self.user.pk),
            "jti": uuid.uuid4().hex,
            "type": "refresh",
            "iat": now,
            "exp": now + 60,
            "ver": self.user.token_version,
            **overrides,
        }
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=tokens.ALGORITHM)

    def test_login_returns_token_pair_and_identity(self):
        response = self._login(email="WRITER@example.com")

        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["errors"], [])
        self.assertEqual(set(body["data"]), {"access", "refresh", "user"})
        self.assertEqual(body["data"]["user"], {"id": str(self.user.pk), "email": self.user.email, "roles": ["User"]})

    def test_login_failures_share_one_401(self):
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        attempts = [
            ("writer@example.com", self.password),
            ("nobody@example.com", "x"),
            ("writer@example.com", "wrong"),
        ]
        for email, password in attempts:
            with self.subTest(email=email, password=password):
                response = self.client.post("/auth/login/", {"email": email, "password": password}, format="json")
                self.assertEqual(response.status_code, 401)
                self.assertIsNone(response.json()["data"])

    def test_access_token_authenticates_blog_requests(self):
        access = self._login().json()["data"]["access"]

        self.assertEqual(self._bearer(access).get("/blogs/").status_code, 200)

    def test_bad_bearer_tokens_are_401(self):
        expired = self._forge(type="access", exp=int(time.time()) - 60)
        wrong_kind = tokens.issue(self.user, tokens.REFRESH)
        unknown_user = self._forge(type="access", sub=str(uuid.uuid4()))
        garbage_sub = self._forge(type="access", sub="not-a-uuid")

        for token in ("garbage", expired, wrong_kind, unknown_user, garbage_sub):
            with self.subTest(token=token):
                self.assertEqual(self._bearer(token).get("/blogs/").status_code, 401)

    def test_roles_come_from_database_not_token(self):
        blog_owner = create_user("owner@example.com", "OwnerPass123", self.roles["User"])
        blog = self._bearer(tokens.issue(blog_owner, tokens.ACCESS)).post("/blogs/", {"title": "Mine"}, format="json")
        blog_id = blog.json()["data"]["id"]
        client = auth_client(self.user)

        self.assertEqual(client.delete(f"/blogs/{blog_id}/").status_code, 403)
        self.user.roles.add(self.roles["Admin"])
        self.assertEqual(client.delete(f"/blogs/{blog_id}/").status_code, 204)

    def test_refresh_rotates_and_spends_the_old_token(self):
        refresh = self._login().json()["data"]["refresh"]

        first = self.client.post("/auth/refresh/", {"refresh": refresh}, format="json")
        replay = self.client.post("/auth/refresh/", {"refresh": refresh}, format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(set(first.json()["data"]), {"access", "refresh"})
        self.assertEqual(replay.status_code, 401)
        rotated = first.json()["data"]["refresh"]
        self.assertEqual(self.client.post("/auth/refresh/", {"refresh": rotated}, format="json").status_code, 200)

    def test_refresh_rejects_access_and_expired_tokens(self):
        access = self._login().json()["data"]["access"]
        expired = self._forge(exp=int(time.time()) - 60)

        for token in (access, expired):
            with self.subTest(token=token):
                response = self.client.post("/auth/refresh/", {"refresh": token}, format="json")
                self.assertEqual(response.status_code, 401)
                self.assertTrue(response.json()["errors"])

    def test_refresh_requires_a_token(self):
        self.assertEqual(self.client.post("/auth/refresh/", {}, format="json").status_code, 400)

    def test_refresh_for_deactivated_user_is_401(self):
        refresh = self._login().json()["data"]["refresh"]
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        self.assertEqual(self.client.post("/auth/refresh/", {"refresh": refresh}, format="json").status_code, 401)

    def test_logout_revokes_access_and_given_refresh(self):
        pair = self._login().json()["data"]
        client = self._bearer(pair["access"])

        response = client.post("/auth/logout/", {"refresh": pair["refresh"]}, format="json")

        self.assertEqual(response.status_code, 204)
        self.assertEqual(client.get("/blogs/").status_code, 401)
        self.assertEqual(self.client.post("/auth/refresh/", {"refresh": pair["refresh"]}, format="json").status_code, 401)
        revoked_ttls = list(self.fake_redis.ttls.values())
        self.assertTrue(revoked_ttls and all(ttl >= 1 for ttl in revoked_ttls))

    def test_logout_leaves_other_sessions_alone(self):
        first, second = self._login().json()["data"], self._login().json()["data"]

        self._bearer(first["access"]).post("/auth/logout/", format="json")

        self.assertEqual(self._bearer(second["access"]).get("/blogs/").status_code, 200)

    def test_logout_everywhere_invalidates_every_session(self):
        first, second = self._login().json()["data"], self._login().json()["data"]

        response = self._bearer(first["access"]).post("/auth/logout/", {"everywhere": True}, format="json")

        self.assertEqual(response.status_code, 204)
        self.user.refresh_from_db()
        self.assertEqual(self.user.token_version, 2)
        self.assertEqual(self._bearer(second["access"]).get("/blogs/").status_code, 401)
        for refresh in (first["refresh"], second["refresh"]):
            self.assertEqual(self.client.post("/auth/refresh/", {"refresh": refresh}, format="json").status_code, 401)
        self.assertEqual(self._login().status_code, 200)

    def test_logout_requires_authentication(self):
        self.assertEqual(self.client.post("/auth/logout/", format="json").status_code, 401)

    def test_revocation_list_down_during_logout_is_503(self):
        client = auth_client(self.user)

        with mock.patch.object(self.fake_redis, "setex", side_effect=redis.ConnectionError("down")):
            response = client.post("/auth/logout/", format="json")

        self.assertEqual(response.status_code, 503)
        self.assertIsNone(response.json()["data"])

    def test_revocation_list_down_fails_bearer_requests_closed(self):
        client = auth_client(self.user)

        with mock.patch.object(self.fake_redis, "get", side_effect=redis.TimeoutError("slow")):
            response = client.get("/blogs/")

        self.assertEqual(response.status_code, 503)
        self.assertTrue(response.json()["errors"])

    def test_database_outage_during_refresh_is_503(self):
        refresh = self._login().json()["data"]["refresh"]

        with mock.patch("authentication.tokens.user_for", side_effect=DatabaseError("db down")):
            response = self.client.post("/auth/refresh/", {"refresh": refresh}, format="json")

        self.assertEqual(response.status_code, 503)
        self.assertIsNone(response.json()["data"])
