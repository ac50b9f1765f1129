"""ViewSets for blogs, posts and comments.

Reads and creates go through DRF's usual mixins. Updates and deletes are
handed to ``blogs.services``, whose outcome values are translated here:
denied -> 403, not found -> 404, concurrency conflict -> 409.
"""

from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.response import Response

from access_control.permissions import OwnershipPermission
from access_control.policy import Action, Principal
from core.exceptions import ConcurrencyConflict
from core.response import BaseViewSet
from . import services
from .models import Blog, Comment, OwnedResource, Post
from .serializers import (
    BlogSerializer,
    BlogUpdateSerializer,
    CommentSerializer,
    CommentUpdateSerializer,
    PostSerializer,
    PostUpdateSerializer,
)


class OwnedResourceViewSet(BaseViewSet):
    """Common edit/delete handling for owned, version-guarded resources."""

    permission_classes = [OwnershipPermission]
    owned_model: type[OwnedResource]
    update_serializer_class = None

    def principal(self) -> Principal:
        return Principal.from_user(self.request.user)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        pk, principal = kwargs[self.lookup_field], self.principal()
        # Callers who may not edit get 403/404 before any field validation.
        refused = services.check_access(self.owned_model, pk, principal, Action.EDIT)
        if refused is not None:
            self.raise_for_outcome(refused)

        serializer = self.update_serializer_class(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)
        expected_version = changes.pop("version", None)
        if expected_version is None:
            expected_version = self.expected_version()

        result = services.edit_resource(self.owned_model, pk, principal, changes, expected_version)
        instance = self.raise_for_outcome(result)
        return Response(self.get_serializer(instance).data)

    def destroy(self, request, *args, **kwargs):
        result = services.delete_resource(
            self.owned_model, kwargs[self.lookup_field], self.principal(), self.expected_version()
        )
        self.raise_for_outcome(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def expected_version(self) -> int | None:
        """Read the client's version from ``?version=`` or the ``If-Match`` header."""
        raw = self.request.query_params.get("version")
        if raw is None:
            raw = self.request.headers.get("If-Match")
            if raw is not None:
                raw = raw.strip().removeprefix("W/").strip('"')
        if raw is None or raw == "*":
            return None
        try:
            version = int(raw)
        except ValueError:
            raise ValidationError({"version": ["A valid integer is required."]})
        if version < 1:
            raise ValidationError({"version": ["Ensure this value is greater than or equal to 1."]})
        return version

    @staticmethod
    def raise_for_outcome(result: services.MutationResult):
        if result.outcome is services.Outcome.DENIED:
            raise PermissionDenied()
        if result.outcome is services.Outcome.NOT_FOUND:
            raise NotFound()
        if result.outcome is services.Outcome.CONFLICT:
            raise ConcurrencyConflict()
        return result.instance


class BlogViewSet(OwnedResourceViewSet):
    serializer_class = BlogSerializer
    update_serializer_class = BlogUpdateSerializer
    owned_model = Blog
    queryset = Blog.objects.select_related("owner").prefetch_related("posts")

    def perform_create(self, serializer):
        """Attach the current user as owner on create."""
        serializer.instance = services.create_blog(self.principal(), **serializer.validated_data)


class PostViewSet(OwnedResourceViewSet):
    serializer_class = PostSerializer
    update_serializer_class = PostUpdateSerializer
    owned_model = Post

    def get_queryset(self):
        """List all posts, or only those of ``?blog=<id>``."""
        qs = Post.objects.select_related("owner", "blog").prefetch_related("comments")
        blog_id = self.request.query_params.get("blog")
        if blog_id is not None:
            qs = qs.filter(blog_id=_int_param("blog", blog_id))
        return qs

    def perform_create(self, serializer):
        serializer.instance = services.create_post(self.principal(), **serializer.validated_data)


class CommentViewSet(OwnedResourceViewSet):
    serializer_class = CommentSerializer
    update_serializer_class = CommentUpdateSerializer
    owned_model = Comment

    def get_queryset(self):
        """List all comments, or only those of ``?post=<id>``."""
        qs = Comment.objects.select_related("owner", "post")
        post_id = self.request.query_params.get("post")
        if post_id is not None:
            qs = qs.filter(post_id=_int_param("post", post_id))
        return qs

    def perform_create(self, serializer):
        serializer.instance = services.create_comment(self.principal(), **serializer.validated_data)


def _int_param(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValidationError({name: ["A valid integer is required."]})


__all__ = ["BlogViewSet", "PostViewSet", "CommentViewSet"]
