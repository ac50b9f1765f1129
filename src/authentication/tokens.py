"""Bearer tokens: HS256 JWTs plus a Redis revocation list.

An access token names the user a request acts for; the user's roles are
always reloaded from the database, never trusted from the token. Refresh
tokens are single use: every refresh revokes the token it was given.

A token stops working when its ``jti`` is revoked in Redis, when its ``ver``
claim no longer matches ``User.token_version`` (logout everywhere), or when
its user is deactivated. Redis being unreachable raises
``BlocklistUnavailable`` so callers can fail closed.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache

import jwt
import redis
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"
LIFETIMES = {
    ACCESS: timedelta(minutes=15),
    REFRESH: timedelta(hours=24),
}
ALGORITHM = "HS256"
REVOKED_KEY = "revoked-jti:{}"


class BlocklistUnavailable(Exception):
    """The revocation list could not be read or written."""


@dataclass(frozen=True)
class Claims:
    """The verified contents of a bearer token."""

    subject: str
    jti: str
    kind: str
    expires_at: int
    version: int | None

    @classmethod
    def from_payload(cls, payload: dict) -> "Claims":
        try:
            return cls(
                subject=str(payload["sub"]),
                jti=str(payload["jti"]),
                kind=payload["type"],
                expires_at=int(payload["exp"]),
                version=payload.get("ver"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthenticationFailed("Malformed token") from exc

    def seconds_left(self) -> int:
        return max(1, self.expires_at - int(time.time()))


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    """Process-wide Redis client for ``REDIS_URL`` with short socket timeouts."""
    timeout = settings.REDIS_SOCKET_TIMEOUT
    return redis.Redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )


def issue(user, kind: str) -> str:
    now = int(time.time())
    payload = {
        "sub": str(user.pk),
        "jti": uuid.uuid4().hex,
        "type": kind,
        "iat": now,
        "exp": now + int(LIFETIMES[kind].total_seconds()),
        "ver": user.token_version,
        # Informational; authorization reloads roles from the database.
        "roles": user.role_names,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def issue_pair(user) -> dict[str, str]:
    """Fresh access and refresh tokens for ``user``."""
    return {ACCESS: issue(user, ACCESS), REFRESH: issue(user, REFRESH)}


def verify(token: str, kind: str) -> Claims:
    """Check signature, expiry, kind and revocation of ``token``."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationFailed("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationFailed("Invalid token") from exc

    claims = Claims.from_payload(payload)
    if claims.kind != kind:
        raise AuthenticationFailed(f"Expected a {kind} token")
    if is_revoked(claims.jti):
        raise AuthenticationFailed("Token has been revoked")
    return claims


def user_for(claims: Claims):
    """Return the active user ``claims`` belong to, with roles prefetched.

    Tokens minted before the user's last logout everywhere carry an older
    ``ver`` and are refused.
    """
    User = get_user_model()
    try:
        user = User.objects.prefetch_related("roles").get(pk=claims.subject)
    except (User.DoesNotExist, ValidationError) as exc:
        raise AuthenticationFailed("Unknown user") from exc
    if not user.is_active:
        raise AuthenticationFailed("User is inactive")
    if claims.version != user.token_version:
        raise AuthenticationFailed("Token predates the last logout everywhere")
    return user


def revoke(claims: Claims) -> None:
    """Refuse ``claims.jti`` until the token would have expired anyway."""
    try:
        get_redis_client().setex(REVOKED_KEY.format(claims.jti), claims.seconds_left(), "1")
    except redis.RedisError as exc:
        raise BlocklistUnavailable("Redis unavailable while revoking a token") from exc
    logger.info("Revoked %s token %s of user %s", claims.kind, claims.jti, claims.subject)


def is_revoked(jti: str) -> bool:
    try:
        return get_redis_client().get(REVOKED_KEY.format(jti)) is not None
    except redis.RedisError as exc:
        raise BlocklistUnavailable("Redis unavailable while checking revocations") from exc


__all__ = [
    "ACCESS",
    "REFRESH",
    "BlocklistUnavailable",
    "Claims",
    "issue",
    "issue_pair",
    "verify",
    "user_for",
    "revoke",
    "is_revoked",
]
