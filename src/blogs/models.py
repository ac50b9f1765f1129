"""Blog, Post and Comment models.

All three are owned resources: they record the user that created them and
carry a ``version`` counter used for optimistic concurrency control. The
counter is only advanced through ``core.concurrency.guarded_update``.
"""

from django.conf import settings
from django.db import models


class OwnedResource(models.Model):
    """Abstract base for rows owned by a single user and guarded by a version."""

    version = models.PositiveIntegerField(default=1, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Field names a client may change through the edit path.
    editable_fields: tuple[str, ...] = ()

    class Meta:
        abstract = True


class Blog(OwnedResource):
    title = models.CharField(max_length=100)
    description = models.CharField(max_length=1000, blank=True)
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="blogs")

    editable_fields = ("title", "description")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title


class Post(OwnedResource):
    """A post in a blog. Deleting it removes its comments."""

    title = models.CharField(max_length=200)
    content = models.TextField()
    blog = models.ForeignKey(Blog, on_delete=models.CASCADE, related_name="posts")
    # Users cannot be hard-deleted while they still own posts.
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="posts")

    editable_fields = ("title", "content")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title


class Comment(OwnedResource):
    content = models.CharField(max_length=500)
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="comments")
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="comments")

    editable_fields = ("content",)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.content[:50]


__all__ = ["OwnedResource", "Blog", "Post", "Comment"]
