"""Resolve ``Authorization: Bearer <access token>`` into ``request.user``.

Requests without a bearer header pass through as anonymous. A header that
does not resolve to an active user (bad signature, expired, revoked, stale
``ver``) is answered with 401 straight away; an unreachable revocation list
with 503. On success the verified ``Claims`` are kept on
``request.token_claims`` for logout.
"""

import logging

from django.contrib.auth.models import AnonymousUser
from django.http import JsonResponse
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication import tokens

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Authentication credentials were not provided or are invalid, token revoked, or user is inactive."
UNAVAILABLE = "Authentication service unavailable (blocklist)."


class BearerTokenMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        request.user = AnonymousUser()
        request.token_claims = None

        if scheme == "Bearer" and token:
            try:
                claims = tokens.verify(token.strip(), tokens.ACCESS)
                request.user = tokens.user_for(claims)
            except AuthenticationFailed as exc:
                logger.debug("Rejected bearer token: %s", exc.detail)
                return _error(status.HTTP_401_UNAUTHORIZED, UNAUTHORIZED)
            except tokens.BlocklistUnavailable:
                logger.error("Revocation list unavailable; rejecting request")
                return _error(status.HTTP_503_SERVICE_UNAVAILABLE, UNAVAILABLE)
            request.token_claims = claims

        return self.get_response(request)


def _error(status_code: int, message: str) -> JsonResponse:
    return JsonResponse({"data": None, "errors": [message]}, status=status_code)


__all__ = ["BearerTokenMiddleware"]
