"""Optimistic-concurrency guard for version-stamped models.

Every guarded model carries an integer ``version`` column. A write is a
compare-and-swap against that column: it only touches the row when the stored
version still equals the version the caller loaded, and it advances the
version in the same statement. When the swap misses, the row is looked up
again to tell a concurrent delete (``NOT_FOUND``) from a concurrent update
(``CONFLICT``).

Database errors other than a missed swap are not handled here and propagate
to the caller.
"""

import logging
from enum import Enum
from typing import Iterable

from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

logger = logging.getLogger(__name__)


class MutationOutcome(str, Enum):
    """Result of a guarded write."""

    COMMITTED = "committed"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


def guarded_update(instance: models.Model, loaded_version: int, fields: Iterable[str]) -> MutationOutcome:
    """Persist ``fields`` of ``instance`` only if the stored version is ``loaded_version``.

    On success the stored version is incremented and ``instance.version`` and
    ``instance.updated_at`` (when the model has one) are brought in line with
    the row. On failure ``instance`` is left as the caller mutated it.
    """

    model = type(instance)
    values = {name: getattr(instance, name) for name in fields}
    values["version"] = F("version") + 1
    if _has_field(model, "updated_at"):
        values["updated_at"] = timezone.now()

    with transaction.atomic():
        updated = model._default_manager.filter(pk=instance.pk, version=loaded_version).update(**values)

    if updated:
        instance.version = loaded_version + 1
        if "updated_at" in values:
            instance.updated_at = values["updated_at"]
        return MutationOutcome.COMMITTED
    return _classify_miss(model, instance.pk, loaded_version)


def guarded_delete(instance: models.Model, loaded_version: int) -> MutationOutcome:
    """Delete ``instance`` (and its cascade) only if the stored version is ``loaded_version``.

    The row is first claimed with the same compare-and-swap as an update,
    which write-locks it and moves its version on. The cascade then runs
    against the claimed version inside the same transaction, so any other
    guarded writer misses and reports ``CONFLICT``. A row that is already
    gone is reported as ``NOT_FOUND``, never as a conflict.
    """

    model = type(instance)
    manager = model._default_manager
    with transaction.atomic():
        claimed = manager.filter(pk=instance.pk, version=loaded_version).update(version=F("version") + 1)
        if claimed:
            _, per_model = manager.filter(pk=instance.pk, version=loaded_version + 1).delete()
            if per_model.get(model._meta.label, 0):
                return MutationOutcome.COMMITTED

    return _classify_miss(model, instance.pk, loaded_version)


def _classify_miss(model: type[models.Model], pk, loaded_version: int) -> MutationOutcome:
    current = model._default_manager.filter(pk=pk).values_list("version", flat=True).first()
    if current is None:
        logger.info("%s %s vanished before commit", model._meta.label, pk)
        return MutationOutcome.NOT_FOUND
    logger.info(
        "%s %s changed before commit (loaded version %s, stored version %s)",
        model._meta.label,
        pk,
        loaded_version,
        current,
    )
    return MutationOutcome.CONFLICT


def _has_field(model: type[models.Model], name: str) -> bool:
    return any(field.name == name for field in model._meta.concrete_fields)


__all__ = ["MutationOutcome", "guarded_update", "guarded_delete"]
