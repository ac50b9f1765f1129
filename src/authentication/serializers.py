"""Request payloads for the session endpoints."""

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed


User = get_user_model()


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate(self, attrs):
        """Resolve the credentials to an active user, or fail with 401."""
        user = User.objects.prefetch_related("roles").filter(email__iexact=attrs["email"]).first()
        # Unknown email, inactive account and wrong password look the same.
        if user is None or not user.is_active or not user.check_password(attrs["password"]):
            raise AuthenticationFailed("Invalid credentials")
        attrs["user"] = user
        return attrs


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False)
    everywhere = serializers.BooleanField(default=False)


class SessionUserSerializer(serializers.ModelSerializer):
    """Who the issued tokens belong to."""

    roles = serializers.ListField(source="role_names", child=serializers.CharField(), read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "roles"]
        read_only_fields = fields


__all__ = ["LoginSerializer", "RefreshSerializer", "LogoutSerializer", "SessionUserSerializer"]
