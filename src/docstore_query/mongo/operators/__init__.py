"""MongoDB operator compilers for native query primitives."""

from __future__ import annotations

from .set import compile_set
from .standard import compile_standard
from .text import compile_text_search

__all__ = [
    "compile_standard",
    "compile_set",
    "compile_text_search",
]
