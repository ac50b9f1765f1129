"""Session endpoints: log in, rotate a refresh token, log out.

Accounts themselves are provisioned outside the API (``seed_blog`` or the
Django shell); these views only hand out and withdraw bearer tokens.
"""

import logging

from django.contrib.auth import get_user_model
from django.db.models import F
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.response import BaseAPIView, api_response
from . import tokens
from .serializers import LoginSerializer, LogoutSerializer, RefreshSerializer, SessionUserSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


class LoginView(BaseAPIView):
    permission_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        logger.info("User %s logged in", user.pk)
        return api_response({**tokens.issue_pair(user), "user": SessionUserSerializer(user).data})


class RefreshView(BaseAPIView):
    """Trade a refresh token for a new pair; the old refresh token is spent."""

    permission_classes = []

    def post(self, request):
        serializer = RefreshSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        claims = tokens.verify(serializer.validated_data["refresh"], tokens.REFRESH)
        user = tokens.user_for(claims)
        tokens.revoke(claims)
        return api_response(tokens.issue_pair(user))


class LogoutView(BaseAPIView):
    """Revoke the calling access token.

    A ``refresh`` token in the body is revoked too. ``everywhere: true``
    bumps the user's ``token_version`` so every token issued so far, on any
    device, stops working.
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user

        tokens.revoke(request.token_claims)
        refresh = serializer.validated_data.get("refresh")
        if refresh:
            claims = tokens.verify(refresh, tokens.REFRESH)
            if claims.subject == str(user.pk):
                tokens.revoke(claims)

        if serializer.validated_data["everywhere"]:
            User.objects.filter(pk=user.pk).update(token_version=F("token_version") + 1)
            logger.info("User %s logged out everywhere", user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


__all__ = ["LoginView", "RefreshView", "LogoutView"]
