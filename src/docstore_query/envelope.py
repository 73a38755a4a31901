"""Document envelope — store document shape <-> caller row shape.

Stores keep their metadata in reserved, prefixed fields (``_id``,
``_created_at``, ...).  Callers only ever see ``id``, ``created_at`` and
``updated_at``.  Both transforms are pure; they are not inverses of each other
(reserved fields other than the identifier and timestamps are dropped on the
way in).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

ROW_ID_FIELD = "id"
ROW_CREATED_AT_FIELD = "created_at"
ROW_UPDATED_AT_FIELD = "updated_at"


@dataclass(frozen=True)
class DocumentEnvelope:
    """Names of a store's reserved fields."""

    id_field: str = "_id"
    created_at_field: str = "_created_at"
    updated_at_field: str = "_updated_at"
    system_prefix: str = "_"

    def is_system_field(self, name: str) -> bool:
        return name.startswith(self.system_prefix) or name in (
            self.id_field,
            self.created_at_field,
            self.updated_at_field,
        )

    def map_field(self, name: str) -> str:
        """Map a caller field name to the store field name (``id`` only)."""
        return self.id_field if name == ROW_ID_FIELD else name

    def to_store(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Strip reserved fields and ``id`` from a write payload.

        The document id travels separately to the create/update call.
        """
        return {
            key: value
            for key, value in payload.items()
            if key != ROW_ID_FIELD and not self.is_system_field(key)
        }

    def from_store(self, document: Mapping[str, Any]) -> dict[str, Any]:
        """Convert a raw store document into a caller row."""
        row = {
            key: value
            for key, value in document.items()
            if not self.is_system_field(key)
        }
        row[ROW_ID_FIELD] = document.get(self.id_field)
        row[ROW_CREATED_AT_FIELD] = document.get(self.created_at_field)
        row[ROW_UPDATED_AT_FIELD] = document.get(self.updated_at_field)
        return row


DEFAULT_ENVELOPE = DocumentEnvelope()


def utc_timestamp() -> str:
    """Timestamp format stores write into the envelope (ISO-8601, UTC, ms)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")
