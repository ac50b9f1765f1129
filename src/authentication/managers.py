from django.contrib.auth.base_user import BaseUserManager

from .passwords import hash_password


class UserManager(BaseUserManager):
    """Creates email-identified users with bcrypt hashes and optional roles."""

    use_in_migrations = True

    def create_user(self, email: str, password: str, roles=(), **extra_fields):
        if not email:
            raise ValueError("An email address is required")
        if not password:
            raise ValueError("A password is required")
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.password_hash = hash_password(password)
        user.save(using=self._db)
        if roles:
            user.roles.add(*roles)
        return user

    def create_superuser(self, email: str, password: str, roles=(), **extra_fields):
        """Same as ``create_user`` with the staff and superuser flags forced on."""
        extra_fields.update(is_staff=True, is_superuser=True)
        return self.create_user(email, password, roles=roles, **extra_fields)


__all__ = ["UserManager"]
