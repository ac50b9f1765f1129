"""Serializers for blogs, posts and comments with envelope-friendly output.

Owner, version and timestamps are always read-only on the way in: the owner
comes from the authenticated principal and the version from the store.
Edits use the ``*UpdateSerializer`` classes, which only accept the fields a
client may change plus the ``version`` the client based its edit on.
"""

from rest_framework import serializers

from .models import Blog, Comment, Post

READ_ONLY = ["id", "owner", "version", "created_at", "updated_at"]


class ExpectedVersionField(serializers.IntegerField):
    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("min_value", 1)
        kwargs.setdefault("write_only", True)
        super().__init__(**kwargs)


class CommentSerializer(serializers.ModelSerializer):
    owner = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Comment
        fields = ["id", "post", "content", "owner", "version", "created_at", "updated_at"]
        read_only_fields = READ_ONLY


class PostSummarySerializer(serializers.ModelSerializer):
    owner = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Post
        fields = ["id", "title", "owner", "version", "created_at"]
        read_only_fields = fields


class PostSerializer(serializers.ModelSerializer):
    """Post with its comments, oldest first."""

    owner = serializers.PrimaryKeyRelatedField(read_only=True)
    comments = CommentSerializer(many=True, read_only=True)

    class Meta:
        model = Post
        fields = [
            "id",
            "blog",
            "title",
            "content",
            "owner",
            "version",
            "comments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = READ_ONLY


class BlogSerializer(serializers.ModelSerializer):
    owner = serializers.PrimaryKeyRelatedField(read_only=True)
    posts = PostSummarySerializer(many=True, read_only=True)

    class Meta:
        model = Blog
        fields = ["id", "title", "description", "owner", "version", "posts", "created_at", "updated_at"]
        read_only_fields = READ_ONLY


class BlogUpdateSerializer(serializers.ModelSerializer):
    version = ExpectedVersionField()

    class Meta:
        model = Blog
        fields = ["title", "description", "version"]


class PostUpdateSerializer(serializers.ModelSerializer):
    version = ExpectedVersionField()

    class Meta:
        model = Post
        fields = ["title", "content", "version"]


class CommentUpdateSerializer(serializers.ModelSerializer):
    version = ExpectedVersionField()

    class Meta:
        model = Comment
        fields = ["content", "version"]


__all__ = [
    "BlogSerializer",
    "PostSerializer",
    "PostSummarySerializer",
    "CommentSerializer",
    "BlogUpdateSerializer",
    "PostUpdateSerializer",
    "CommentUpdateSerializer",
]
