"""Base abstract models shared by every storefront module.

Provides:
- ``BaseModel``: UUIDv7 primary key + created_at / updated_at timestamps.
- ``SnapshotModel``: BaseModel whose ``frozen_fields`` can be written once
  (on insert) and never again.  Orders and their line items use it to keep
  the purchase snapshot immutable.

Nothing in the order/payment ledger is ever deleted, so there is no
soft-delete layer here; catalog availability is a ``status`` flag on the
product itself.
"""

from __future__ import annotations

from typing import Any, ClassVar

import uuid6
from django.core.exceptions import ValidationError
from django.db import models

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Write-once snapshots
# ---------------------------------------------------------------------------


class SnapshotModel(BaseModel):
    """Abstract model that rejects updates to its ``frozen_fields``.

    Values are captured when the row is loaded from the database
    (``from_db``); ``save()`` compares them against the in-memory values
    and raises ``ValidationError`` on any difference.  Fields deferred at
    load time are not checked.
    """

    frozen_fields: ClassVar[tuple[str, ...]] = ()

    class Meta:
        abstract = True

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_values = dict(zip(field_names, values))
        return instance

    def changed_frozen_fields(self) -> list[str]:
        """Return the names of frozen fields modified since load."""
        loaded: dict[str, Any] | None = getattr(self, "_loaded_values", None)
        if self._state.adding or loaded is None:
            return []
        changed = []
        for name in self.frozen_fields:
            attname = self._meta.get_field(name).attname
            if attname in loaded and getattr(self, attname) != loaded[attname]:
                changed.append(name)
        return changed

    def save(self, *args, **kwargs) -> None:
        changed = self.changed_frozen_fields()
        if changed:
            raise ValidationError(
                {name: "This field cannot change after creation." for name in changed}
            )
        super().save(*args, **kwargs)
        self._loaded_values = {
            field.attname: getattr(self, field.attname)
            for field in self._meta.concrete_fields
        }
