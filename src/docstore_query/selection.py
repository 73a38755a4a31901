"""Typed select descriptions and the PostgREST select-string parser.

Callers may pass either a :class:`Selection` or the textual form used by
PostgREST clients::

    "*, companies(name)"
    "id, name, school:schools!school_id(name, city)"
    "*, students(name, schools(name))"

``name(subfields)`` embeds a related collection.  ``alias:`` renames the key the
related row is attached under, ``!hint`` names the foreign-key field
explicitly (``!inner`` / ``!left`` join hints are accepted and ignored).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidSelectionError

if TYPE_CHECKING:
    from collections.abc import Mapping

ALL_FIELDS = "*"

_NAME_RE = re.compile(r"^\w+$")
_JOIN_HINTS = frozenset({"inner", "left"})


@dataclass(frozen=True)
class RelationshipDescriptor:
    """Intent to attach rows of ``collection`` through a foreign key."""

    collection: str
    selection: Selection
    alias: str | None = None
    foreign_key: str | None = None

    @property
    def key(self) -> str:
        """Key the resolved row is attached under."""
        return self.alias or self.collection

    @property
    def fields(self) -> tuple[str, ...]:
        return self.selection.fields

    def to_select_string(self) -> str:
        head = f"{self.alias}:" if self.alias else ""
        head += self.collection
        if self.foreign_key:
            head += f"!{self.foreign_key}"
        return f"{head}({self.selection.to_select_string()})"


@dataclass(frozen=True)
class Selection:
    """Scalar fields plus embedded relationships requested by a read."""

    fields: tuple[str, ...] = (ALL_FIELDS,)
    relationships: tuple[RelationshipDescriptor, ...] = ()

    @property
    def selects_all(self) -> bool:
        return ALL_FIELDS in self.fields

    def project(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Keep only the requested fields and relationship keys of ``row``."""
        if self.selects_all:
            return dict(row)
        keep = set(self.fields) | {rel.key for rel in self.relationships}
        return {key: value for key, value in row.items() if key in keep}

    def to_select_string(self) -> str:
        parts = list(self.fields) + [
            rel.to_select_string() for rel in self.relationships
        ]
        return ", ".join(parts)

    def __str__(self) -> str:
        return self.to_select_string()


def parse_select(columns: str) -> Selection:
    """Parse a PostgREST select string into a :class:`Selection`.

    Raises :class:`InvalidSelectionError` on unbalanced parentheses, empty
    items or malformed relationship heads.
    """
    if not columns.strip():
        return Selection()
    return _parse(columns, columns)


def _parse(text: str, original: str) -> Selection:
    fields: list[str] = []
    relationships: list[RelationshipDescriptor] = []
    for item in _split_top_level(text, original):
        if "(" not in item:
            if ")" in item:
                raise InvalidSelectionError(original, f"unexpected ')' in {item!r}")
            fields.append(item)
            continue
        relationships.append(_parse_relationship(item, original))
    return Selection(fields=tuple(fields), relationships=tuple(relationships))


def _parse_relationship(item: str, original: str) -> RelationshipDescriptor:
    open_at = item.index("(")
    if not item.endswith(")"):
        raise InvalidSelectionError(original, f"trailing text after {item!r}")
    head = item[:open_at].strip()
    inner = item[open_at + 1 : -1]

    alias: str | None = None
    if ":" in head:
        alias, head = (part.strip() for part in head.split(":", 1))
        if not _NAME_RE.match(alias):
            raise InvalidSelectionError(original, f"bad alias {alias!r}")

    name, *hints = (part.strip() for part in head.split("!"))
    if not _NAME_RE.match(name):
        raise InvalidSelectionError(original, f"bad relationship name {name!r}")
    foreign_key: str | None = None
    for hint in hints:
        if hint in _JOIN_HINTS:
            continue
        if not _NAME_RE.match(hint):
            raise InvalidSelectionError(original, f"bad hint {hint!r}")
        foreign_key = hint

    selection = _parse(inner, original) if inner.strip() else Selection()
    return RelationshipDescriptor(
        collection=name,
        selection=selection,
        alias=alias,
        foreign_key=foreign_key,
    )


def _split_top_level(text: str, original: str) -> list[str]:
    """Split on commas that are not nested inside parentheses."""
    items: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise InvalidSelectionError(original, "unbalanced ')'")
        if char == "," and depth == 0:
            items.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    if depth != 0:
        raise InvalidSelectionError(original, "unbalanced '('")
    items.append("".join(current).strip())
    if any(not item for item in items):
        raise InvalidSelectionError(original, "empty item")
    return items
