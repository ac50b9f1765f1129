"""Idempotent bootstrap of default roles and the admin account.

Both helpers are safe to call on every process start: they only create what
is missing and never overwrite existing rows.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from .models import Role
from .policy import ADMIN_ROLE, USER_ROLE

logger = logging.getLogger(__name__)

DEFAULT_ROLES = {
    ADMIN_ROLE: "Can edit and delete any blog, post or comment.",
    USER_ROLE: "Can edit and delete their own blogs, posts and comments.",
}


def ensure_default_roles() -> dict[str, Role]:
    """Create the default roles if missing and return a name->Role map."""
    roles = {}
    for name, description in DEFAULT_ROLES.items():
        role, created = Role.objects.get_or_create(name=name, defaults={"description": description})
        if created:
            logger.info("Created role %s", name)
        roles[name] = role
    return roles


def ensure_admin_account(email: str, password: str):
    """Create the admin user if missing and make sure it holds the Admin role.

    An existing account keeps its password; only the role is (re)attached.
    """
    if not email or not password:
        raise ValueError("Admin email and password must both be set")

    User = get_user_model()
    with transaction.atomic():
        roles = ensure_default_roles()
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            user = User.objects.create_superuser(email=email, password=password, first_name="Admin")
            logger.info("Created admin account %s", email)
        if not user.roles.filter(pk=roles[ADMIN_ROLE].pk).exists():
            user.roles.add(roles[ADMIN_ROLE])
            logger.info("Granted %s role to %s", ADMIN_ROLE, email)
    return user


def create_default_roles_after_migrate(sender, **kwargs) -> None:
    """``post_migrate`` receiver that seeds the default roles."""
    ensure_default_roles()


__all__ = [
    "DEFAULT_ROLES",
    "ensure_default_roles",
    "ensure_admin_account",
    "create_default_roles_after_migrate",
]
