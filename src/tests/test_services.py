"""Scenario tests for create/edit/delete sequencing in blogs.services."""

from __future__ import annotations

from unittest import mock

from django.db.models import F, ProtectedError
from django.test import TestCase

from access_control.policy import ANONYMOUS, Action, Principal
from blogs import services
from blogs.models import Blog, Comment, Post
from blogs.services import Outcome
from tests.utils import create_user, seed_roles


class ServiceScenarioTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        roles = seed_roles()
        cls.u1 = create_user("u1@test.com", "UserOne123", roles["User"])
        cls.u2 = create_user("u2@test.com", "UserTwo123", roles["User"])
        cls.admin = create_user("admin@test.com", "AdminPass123", roles["Admin"])

    def setUp(self):
        self.p_u1 = Principal.from_user(self.u1)
        self.p_u2 = Principal.from_user(self.u2)
        self.p_admin = Principal.from_user(self.admin)
        self.blog = services.create_blog(self.p_u1, title="U1 blog")
        self.post = services.create_post(self.p_u1, blog=self.blog, title="p1", content="Original")

    def test_create_sets_owner_from_principal(self):
        comment = services.create_comment(self.p_u2, post=self.post, content="Nice")

        self.assertEqual(Blog.objects.get(pk=self.blog.pk).owner_id, self.u1.pk)
        self.assertEqual(Post.objects.get(pk=self.post.pk).owner_id, self.u1.pk)
        stored = Comment.objects.get(pk=comment.pk)
        self.assertEqual(stored.owner_id, self.u2.pk)
        self.assertEqual(stored.version, 1)

    def test_anonymous_cannot_create(self):
        with self.assertRaises(PermissionError):
            services.create_blog(ANONYMOUS, title="nope")
        self.assertFalse(Blog.objects.filter(title="nope").exists())

    def test_non_owner_edit_is_denied_and_leaves_row_untouched(self):
        result = services.edit_post(self.post.pk, self.p_u2, {"content": "Hacked"})

        self.assertIs(result.outcome, Outcome.DENIED)
        stored = Post.objects.get(pk=self.post.pk)
        self.assertEqual(stored.content, "Original")
        self.assertEqual(stored.version, 1)

    def test_denied_request_never_reaches_the_guard(self):
        with mock.patch("blogs.services.guarded_update") as update, mock.patch(
            "blogs.services.guarded_delete"
        ) as delete:
            services.edit_post(self.post.pk, self.p_u2, {"content": "x"}, expected_version=1)
            services.delete_post(self.post.pk, self.p_u2, expected_version=1)

        update.assert_not_called()
        delete.assert_not_called()

    def test_check_access_reports_refusals_without_writing(self):
        self.assertIsNone(services.check_access(Post, self.post.pk, self.p_u1, Action.EDIT))
        self.assertIsNone(services.check_access(Post, self.post.pk, self.p_admin, Action.DELETE))
        self.assertIs(services.check_access(Post, self.post.pk, self.p_u2, Action.EDIT).outcome, Outcome.DENIED)
        self.assertIs(services.check_access(Post, 999999, self.p_u1, Action.EDIT).outcome, Outcome.NOT_FOUND)
        self.assertEqual(Post.objects.get(pk=self.post.pk).version, 1)

    def test_owner_edit_commits(self):
        result = services.edit_post(self.post.pk, self.p_u1, {"title": "p1*", "content": "Edited"})

        self.assertTrue(result.committed)
        self.assertEqual(result.instance.version, 2)
        stored = Post.objects.get(pk=self.post.pk)
        self.assertEqual((stored.title, stored.content, stored.version), ("p1*", "Edited", 2))

    def test_admin_edits_post_owned_by_someone_else(self):
        result = services.edit_post(self.post.pk, self.p_admin, {"content": "Moderated"})

        self.assertIs(result.outcome, Outcome.COMMITTED)
        stored = Post.objects.get(pk=self.post.pk)
        self.assertEqual(stored.content, "Moderated")
        self.assertEqual(stored.owner_id, self.u1.pk)

    def test_stale_session_edit_is_a_conflict(self):
        # Session A loads version 1; session B commits first.
        loaded_version = Post.objects.get(pk=self.post.pk).version
        second = services.edit_post(self.post.pk, self.p_u1, {"content": "From B"})
        self.assertIs(second.outcome, Outcome.COMMITTED)

        first = services.edit_post(self.post.pk, self.p_u1, {"content": "From A"}, expected_version=loaded_version)

        self.assertIs(first.outcome, Outcome.CONFLICT)
        stored = Post.objects.get(pk=self.post.pk)
        self.assertEqual(stored.content, "From B")
        self.assertEqual(stored.version, 2)

    def test_edit_after_concurrent_delete_is_not_found(self):
        loaded = Post.objects.get(pk=self.post.pk)
        real_guard = services.guarded_update

        def delete_then_update(instance, version, fields):
            Post.objects.filter(pk=loaded.pk).delete()
            return real_guard(instance, version, fields)

        with mock.patch("blogs.services.guarded_update", side_effect=delete_then_update):
            result = services.edit_post(loaded.pk, self.p_u1, {"content": "late"})

        self.assertIs(result.outcome, Outcome.NOT_FOUND)

    def test_edit_concurrent_update_between_load_and_commit_is_a_conflict(self):
        real_guard = services.guarded_update

        def bump_then_update(instance, version, fields):
            Post.objects.filter(pk=instance.pk).update(version=F("version") + 1, content="Concurrent")
            return real_guard(instance, version, fields)

        with mock.patch("blogs.services.guarded_update", side_effect=bump_then_update):
            result = services.edit_post(self.post.pk, self.p_u1, {"content": "Mine"})

        self.assertIs(result.outcome, Outcome.CONFLICT)
        self.assertEqual(Post.objects.get(pk=self.post.pk).content, "Concurrent")

    def test_edit_missing_resource_is_not_found(self):
        result = services.edit_post(999999, self.p_admin, {"content": "x"})

        self.assertIs(result.outcome, Outcome.NOT_FOUND)
        self.assertIsNone(result.instance)

    def test_non_numeric_id_is_not_found(self):
        self.assertIs(services.delete_post("abc", self.p_admin).outcome, Outcome.NOT_FOUND)

    def test_edit_rejects_fields_that_are_not_editable(self):
        with self.assertRaises(ValueError):
            services.edit_post(self.post.pk, self.p_u1, {"owner_id": self.u2.pk})
        self.assertEqual(Post.objects.get(pk=self.post.pk).owner_id, self.u1.pk)

    def test_delete_post_removes_all_its_comments(self):
        for n in range(4):
            services.create_comment(self.p_u2, post=self.post, content=f"c{n}")
        other_post = services.create_post(self.p_u1, blog=self.blog, title="p2", content="Other")
        services.create_comment(self.p_u2, post=other_post, content="stays")

        result = services.delete_post(self.post.pk, self.p_u1, expected_version=1)

        self.assertIs(result.outcome, Outcome.COMMITTED)
        self.assertFalse(Comment.objects.filter(post_id=self.post.pk).exists())
        self.assertEqual(Comment.objects.filter(post=other_post).count(), 1)

    def test_delete_with_stale_version_is_a_conflict(self):
        services.edit_post(self.post.pk, self.p_u1, {"content": "v2"})

        result = services.delete_post(self.post.pk, self.p_u1, expected_version=1)

        self.assertIs(result.outcome, Outcome.CONFLICT)
        self.assertTrue(Post.objects.filter(pk=self.post.pk).exists())

    def test_second_delete_is_not_found(self):
        self.assertIs(services.delete_post(self.post.pk, self.p_u1).outcome, Outcome.COMMITTED)
        self.assertIs(services.delete_post(self.post.pk, self.p_u1).outcome, Outcome.NOT_FOUND)

    def test_comment_owner_can_edit_but_post_owner_cannot(self):
        comment = services.create_comment(self.p_u2, post=self.post, content="by u2")

        denied = services.edit_comment(comment.pk, self.p_u1, {"content": "by u1"})
        allowed = services.edit_comment(comment.pk, self.p_u2, {"content": "edited by u2"})

        self.assertIs(denied.outcome, Outcome.DENIED)
        self.assertIs(allowed.outcome, Outcome.COMMITTED)
        self.assertEqual(Comment.objects.get(pk=comment.pk).content, "edited by u2")

    def test_admin_deletes_someone_elses_comment(self):
        comment = services.create_comment(self.p_u2, post=self.post, content="spam")

        result = services.delete_comment(comment.pk, self.p_admin)

        self.assertIs(result.outcome, Outcome.COMMITTED)
        self.assertFalse(Comment.objects.filter(pk=comment.pk).exists())

    def test_deleting_blog_cascades_to_posts_and_comments(self):
        services.create_comment(self.p_u2, post=self.post, content="c")
        services.create_post(self.p_u2, blog=self.blog, title="guest", content="g")

        result = services.delete_blog(self.blog.pk, self.p_u1)

        self.assertIs(result.outcome, Outcome.COMMITTED)
        self.assertFalse(Post.objects.filter(blog_id=self.blog.pk).exists())
        self.assertFalse(Comment.objects.exists())

    def test_edit_blog_description(self):
        result = services.edit_blog(self.blog.pk, self.p_u1, {"description": "About me"})

        self.assertIs(result.outcome, Outcome.COMMITTED)
        self.assertEqual(Blog.objects.get(pk=self.blog.pk).description, "About me")

    def test_user_owning_posts_cannot_be_deleted(self):
        with self.assertRaises(ProtectedError):
            self.u1.delete()

    def test_user_owning_comments_cannot_be_deleted(self):
        services.create_comment(self.p_u2, post=self.post, content="c")

        with self.assertRaises(ProtectedError):
            self.u2.delete()
