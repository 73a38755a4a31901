"""Relationship resolution — emulated foreign-key joins.

A document store has no joins, so ``select("*, companies(name)")`` is served
by a second listing call on ``companies`` filtered by the distinct foreign-key
values found on the primary rows.  Which field holds the foreign key is the
only backend-independent decision, and it is what the strategies below differ
in:

* :class:`ConventionRelationshipResolver` guesses ``<singular>_id`` then
  ``<name>_id`` from the related collection name.
* :class:`RegistryRelationshipResolver` looks the field up in an explicit
  ``{source: {related: foreign_key}}`` mapping, optionally falling back to the
  convention.

A failed lookup never fails the query: every row gets ``None`` for that
relationship.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .envelope import ROW_ID_FIELD

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence

    from .selection import RelationshipDescriptor

    FetchRelated = Callable[[str, list[Any]], Awaitable[list[dict[str, Any]]]]

logger = logging.getLogger(__name__)


def has_value(value: Any) -> bool:
    """A foreign-key (or conflict-key) value counts only if it is non-empty."""
    return value is not None and value != ""


def singularize(name: str) -> str:
    """Best-effort English singular of a collection name."""
    if name.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    for suffix in ("sses", "shes", "ches", "xes", "zes"):
        if name.endswith(suffix):
            return name[:-2]
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


class RelationshipResolver(ABC):
    """Strategy: attach related rows for one relationship onto a row set."""

    @abstractmethod
    def foreign_key_for(
        self,
        source: str,
        relationship: RelationshipDescriptor,
        rows: Sequence[Mapping[str, Any]],
    ) -> str | None:
        """Return the field on ``rows`` that references ``relationship``.

        ``None`` means the relationship cannot be resolved and is skipped.
        """

    async def resolve_all(
        self,
        source: str,
        relationships: Sequence[RelationshipDescriptor],
        rows: list[dict[str, Any]],
        fetch: FetchRelated,
    ) -> None:
        """Resolve several relationships on the same rows concurrently."""
        if not rows or not relationships:
            return
        await asyncio.gather(
            *(self.resolve(source, rel, rows, fetch) for rel in relationships)
        )

    async def resolve(
        self,
        source: str,
        relationship: RelationshipDescriptor,
        rows: list[dict[str, Any]],
        fetch: FetchRelated,
    ) -> None:
        """Attach ``relationship`` onto every row in place."""
        foreign_key = relationship.foreign_key or self.foreign_key_for(
            source, relationship, rows
        )
        if foreign_key is None:
            logger.debug(
                "No foreign key for %s -> %s; skipping",
                source,
                relationship.collection,
            )
            return

        try:
            await self._attach(relationship, foreign_key, rows, fetch)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Resolving %s -> %s via %s failed; attaching null",
                source,
                relationship.collection,
                foreign_key,
                exc_info=True,
            )
            for row in rows:
                row[relationship.key] = None

    async def _attach(
        self,
        relationship: RelationshipDescriptor,
        foreign_key: str,
        rows: list[dict[str, Any]],
        fetch: FetchRelated,
    ) -> None:
        # Foreign-key values must be hashable scalars; arrays fail here.
        values = list(
            dict.fromkeys(
                row[foreign_key] for row in rows if has_value(row.get(foreign_key))
            )
        )
        lookup: dict[Any, dict[str, Any]] = {}
        if values:
            related = await fetch(relationship.collection, values)
            await self.resolve_all(
                relationship.collection,
                relationship.selection.relationships,
                related,
                fetch,
            )
            lookup = {
                item[ROW_ID_FIELD]: relationship.selection.project(item)
                for item in related
            }

        for row in rows:
            value = row.get(foreign_key)
            match = lookup.get(value) if has_value(value) else None
            row[relationship.key] = dict(match) if match is not None else None


class ConventionRelationshipResolver(RelationshipResolver):
    """Guess the foreign key from the related collection name.

    ``companies`` -> ``company_id``, then ``companies_id``; the first candidate
    present on any row wins.  Override :meth:`candidate_keys` for collections
    with irregular names.
    """

    def candidate_keys(self, relationship: RelationshipDescriptor) -> list[str]:
        name = relationship.collection
        return list(dict.fromkeys([f"{singularize(name)}_id", f"{name}_id"]))

    def foreign_key_for(
        self,
        source: str,  # noqa: ARG002
        relationship: RelationshipDescriptor,
        rows: Sequence[Mapping[str, Any]],
    ) -> str | None:
        for candidate in self.candidate_keys(relationship):
            if any(candidate in row for row in rows):
                return candidate
        return None


class RegistryRelationshipResolver(RelationshipResolver):
    """Look foreign keys up in a static ``{source: {related: field}}`` registry.

    Registry entries are trusted as-is.  Pairs missing from the registry go to
    ``fallback`` (the naming convention by default); pass
    ``use_convention_fallback=False`` to make unregistered relationships
    resolve to nothing.
    """

    def __init__(
        self,
        registry: Mapping[str, Mapping[str, str]],
        *,
        fallback: RelationshipResolver | None = None,
        use_convention_fallback: bool = True,
    ) -> None:
        self._registry = {
            source: dict(related) for source, related in registry.items()
        }
        if fallback is None and use_convention_fallback:
            fallback = ConventionRelationshipResolver()
        self._fallback = fallback

    @property
    def registry(self) -> dict[str, dict[str, str]]:
        return {source: dict(related) for source, related in self._registry.items()}

    def foreign_key_for(
        self,
        source: str,
        relationship: RelationshipDescriptor,
        rows: Sequence[Mapping[str, Any]],
    ) -> str | None:
        registered = self._registry.get(source, {}).get(relationship.collection)
        if registered is not None:
            return registered
        if self._fallback is None:
            return None
        return self._fallback.foreign_key_for(source, relationship, rows)
