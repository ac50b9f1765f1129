"""App configuration for the access_control Django application.

This module wires up the application config, registers the ownership
system checks, and seeds the default roles after migrations run.
"""

from django.apps import AppConfig
from django.db.models.signals import post_migrate


class AccessControlConfig(AppConfig):
    """Application configuration for the access_control app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "access_control"

    def ready(self) -> None:
        """Register system checks and the role bootstrap hook."""
        from . import checks  # noqa: F401
        from .bootstrap import create_default_roles_after_migrate

        post_migrate.connect(
            create_default_roles_after_migrate,
            sender=self,
            dispatch_uid="access_control.create_default_roles",
        )
