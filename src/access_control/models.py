"""Role model assigned to users; the ``Admin`` role bypasses ownership checks."""

from django.db import models


class Role(models.Model):
    """Named role held by a user (e.g. 'Admin', 'User')."""

    name = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


__all__ = ["Role"]
