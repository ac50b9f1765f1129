"""DRF authenticator that reuses the user resolved by ``BearerTokenMiddleware``.

The middleware already verified the bearer token, the blocklist and the
token version, so nothing is decoded here.
"""

from typing import Any, Optional, Tuple

from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Expose the middleware-authenticated Django user to DRF views."""

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        if django_request is None:
            return None

        user = getattr(django_request, "user", None)
        if user is None or isinstance(user, AnonymousUser):
            return None

        if not getattr(user, "is_authenticated", False):
            return None

        return user, None

    def authenticate_header(self, request) -> str:
        """Advertise bearer auth so DRF answers 401, not 403, to anonymous callers."""
        return 'Bearer realm="api"'


__all__ = ["MiddlewareUserAuthentication"]
