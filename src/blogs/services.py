"""Create, edit and delete operations on blogs, posts and comments.

Edits and deletes always run in the same order:

1. load the resource by id (missing -> ``NOT_FOUND``);
2. ask the ownership policy (deny -> ``DENIED``, nothing is written);
3. apply the changes in memory;
4. commit through the version-checked guard (``COMMITTED``, ``NOT_FOUND``
   or ``CONFLICT``).

Outcomes are returned as values. Database failures other than a lost
compare-and-swap propagate as exceptions.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from django.db import models

from access_control.policy import Action, Decision, Principal, authorize
from core.concurrency import MutationOutcome, guarded_delete, guarded_update
from .models import Blog, Comment, OwnedResource, Post

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    COMMITTED = MutationOutcome.COMMITTED.value
    NOT_FOUND = MutationOutcome.NOT_FOUND.value
    CONFLICT = MutationOutcome.CONFLICT.value
    DENIED = "denied"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of an edit or delete plus the resource as last seen, if any."""

    outcome: Outcome
    instance: OwnedResource | None = None

    @property
    def committed(self) -> bool:
        return self.outcome is Outcome.COMMITTED


def _require_owner(principal: Principal) -> str:
    if not principal.is_authenticated:
        raise PermissionError("Anonymous principals cannot create resources")
    return principal.id


def create_blog(principal: Principal, *, title: str, description: str = "") -> Blog:
    """Create a blog owned by ``principal``."""
    blog = Blog.objects.create(owner_id=_require_owner(principal), title=title, description=description)
    logger.info("Blog %s created by user %s", blog.pk, principal.id)
    return blog


def create_post(principal: Principal, *, blog: Blog, title: str, content: str) -> Post:
    """Create a post in ``blog`` owned by ``principal``."""
    post = Post.objects.create(owner_id=_require_owner(principal), blog=blog, title=title, content=content)
    logger.info("Post %s created by user %s in blog %s", post.pk, principal.id, blog.pk)
    return post


def create_comment(principal: Principal, *, post: Post, content: str) -> Comment:
    """Create a comment on ``post`` owned by ``principal``."""
    comment = Comment.objects.create(owner_id=_require_owner(principal), post=post, content=content)
    logger.info("Comment %s created by user %s on post %s", comment.pk, principal.id, post.pk)
    return comment


def check_access(
    model: type[OwnedResource], pk: Any, principal: Principal, action: Action
) -> MutationResult | None:
    """Load the ``model`` row ``pk`` and authorize ``action`` without writing.

    Returns the ``NOT_FOUND`` or ``DENIED`` result the mutation itself would
    produce, or ``None`` when ``principal`` may go ahead. Views call this
    before validating a request body, so callers who would be denied never
    see field validation errors.
    """
    _, failure = _load_authorized(model, pk, principal, action)
    return failure


def edit_resource(
    model: type[OwnedResource],
    pk: Any,
    principal: Principal,
    changes: Mapping[str, Any],
    expected_version: int | None = None,
) -> MutationResult:
    """Apply ``changes`` to the ``model`` row ``pk`` on behalf of ``principal``.

    ``expected_version`` is the version the client based its edit on. When
    omitted, the version read here is used, which still catches writers that
    commit between this load and the save.
    """
    label = model.__name__
    instance, failure = _load_authorized(model, pk, principal, Action.EDIT)
    if failure is not None:
        return failure

    loaded_version = instance.version if expected_version is None else expected_version
    fields = [name for name in changes if name in model.editable_fields]
    unknown = set(changes) - set(fields)
    if unknown:
        raise ValueError(f"{label} fields not editable: {', '.join(sorted(unknown))}")
    for name in fields:
        setattr(instance, name, changes[name])

    outcome = Outcome(guarded_update(instance, loaded_version, fields).value)
    _log_outcome("edit", label, pk, principal, outcome)
    return MutationResult(outcome, instance)


def delete_resource(
    model: type[OwnedResource],
    pk: Any,
    principal: Principal,
    expected_version: int | None = None,
) -> MutationResult:
    """Delete the ``model`` row ``pk`` (and its dependants) on behalf of ``principal``."""
    instance, failure = _load_authorized(model, pk, principal, Action.DELETE)
    if failure is not None:
        return failure

    loaded_version = instance.version if expected_version is None else expected_version
    outcome = Outcome(guarded_delete(instance, loaded_version).value)
    _log_outcome("delete", model.__name__, pk, principal, outcome)
    return MutationResult(outcome, instance)


def edit_blog(pk, principal: Principal, changes: Mapping[str, Any], expected_version: int | None = None):
    return edit_resource(Blog, pk, principal, changes, expected_version)


def edit_post(pk, principal: Principal, changes: Mapping[str, Any], expected_version: int | None = None):
    return edit_resource(Post, pk, principal, changes, expected_version)


def edit_comment(pk, principal: Principal, changes: Mapping[str, Any], expected_version: int | None = None):
    return edit_resource(Comment, pk, principal, changes, expected_version)


def delete_blog(pk, principal: Principal, expected_version: int | None = None):
    return delete_resource(Blog, pk, principal, expected_version)


def delete_post(pk, principal: Principal, expected_version: int | None = None):
    return delete_resource(Post, pk, principal, expected_version)


def delete_comment(pk, principal: Principal, expected_version: int | None = None):
    return delete_resource(Comment, pk, principal, expected_version)


def _load_authorized(model: type[OwnedResource], pk: Any, principal: Principal, action: Action):
    label = model.__name__
    instance = _load(model, pk)
    if instance is None:
        logger.warning("%s %s not found for %s", label, pk, action.value)
        return None, MutationResult(Outcome.NOT_FOUND)

    if authorize(principal, instance, action) is Decision.DENY:
        logger.warning("User %s unauthorized to %s %s %s", principal.id or "<anonymous>", action.value, label, pk)
        return instance, MutationResult(Outcome.DENIED, instance)
    return instance, None


def _load(model: type[models.Model], pk: Any):
    try:
        return model._default_manager.filter(pk=pk).first()
    except (TypeError, ValueError):
        return None


def _log_outcome(verb: str, label: str, pk: Any, principal: Principal, outcome: Outcome) -> None:
    if outcome is Outcome.COMMITTED:
        logger.info("%s %s: %s by user %s", label, pk, verb, principal.id)
    elif outcome is Outcome.NOT_FOUND:
        logger.warning("%s %s was deleted concurrently during %s", label, pk, verb)
    else:
        logger.warning("Concurrency conflict during %s of %s %s", verb, label, pk)


__all__ = [
    "Outcome",
    "MutationResult",
    "create_blog",
    "create_post",
    "create_comment",
    "check_access",
    "edit_resource",
    "delete_resource",
    "edit_blog",
    "edit_post",
    "edit_comment",
    "delete_blog",
    "delete_post",
    "delete_comment",
]
