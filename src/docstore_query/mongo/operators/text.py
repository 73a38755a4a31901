"""Full-text search -> $text (requires a text index on the collection).

MongoDB allows one ``$text`` clause per query and it searches every field of
the collection's text index, so all search tokens of a query are merged into a
single clause and the field names are not used.  A lone single-word term is
passed as-is (token match); otherwise every term is quoted, which makes MongoDB
require each of them as a phrase.
"""

from __future__ import annotations

from typing import Any


def compile_text_search(terms: list[str]) -> dict[str, Any] | None:
    """Merge search terms into one ``$text`` clause; None if there are none."""
    if not terms:
        return None
    if len(terms) == 1 and len(terms[0].split()) == 1:
        expression = terms[0]
    else:
        cleaned = [term.replace('"', "") for term in terms]
        expression = " ".join(f'"{term}"' for term in cleaned)
    return {"$text": {"$search": expression}}
