"""Email-identified accounts that own blog content.

Passwords are bcrypt hashes in ``password_hash``; the inherited ``password``
column stays unused. Authorization looks only at role names and ownership,
so Django's groups and permissions are not mixed in.
"""

import uuid
from typing import ClassVar, Optional

from django.contrib.auth.models import AbstractBaseUser
from django.db import models

from .managers import UserManager
from .passwords import hash_password, verify_password


class User(AbstractBaseUser):
    """A blog author; ``roles`` decides whether they may act on other people's content."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    password_hash = models.CharField(max_length=128)
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    roles = models.ManyToManyField("access_control.Role", related_name="users", blank=True)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    is_superuser = models.BooleanField(default=False)
    # Bumped by logout with ``everywhere``; tokens carrying an older value are rejected.
    token_version = models.PositiveIntegerField(default=1)
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: ClassVar[list[str]] = []

    objects = UserManager()

    class Meta:
        ordering = ["-date_joined"]

    def __str__(self) -> str:
        return self.email

    @property
    def role_names(self) -> list[str]:
        return sorted(role.name for role in self.roles.all())

    def set_password(self, raw_password: Optional[str]) -> None:  # type: ignore[override]
        self.password_hash = hash_password(raw_password) if raw_password else ""

    def check_password(self, raw_password: Optional[str]) -> bool:  # type: ignore[override]
        return verify_password(raw_password or "", self.password_hash)


__all__ = ["User"]
