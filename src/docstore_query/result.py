"""Result envelope returned by every executed builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import QueryExecutionError

# Code PostgREST clients use for "single row expected, none found".
NOT_FOUND_CODE = "PGRST116"


@dataclass(frozen=True)
class QueryError:
    """Error half of the envelope: a message and an optional machine code."""

    message: str
    code: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> QueryError:
        message = str(exc) or type(exc).__name__
        code = getattr(exc, "code", None)
        return cls(message=message, code=code if isinstance(code, str) else None)

    @classmethod
    def not_found(cls) -> QueryError:
        return cls(message="No document found", code=NOT_FOUND_CODE)

    @property
    def is_not_found(self) -> bool:
        return self.code == NOT_FOUND_CODE

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"message": self.message}
        if self.code is not None:
            result["code"] = self.code
        return result


@dataclass(frozen=True)
class PartialFailure:
    """One upsert item that could not be written."""

    index: int
    item: dict[str, Any]
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "item": self.item, "message": self.message}


@dataclass(frozen=True)
class QueryResult:
    """``{data, error, count}`` envelope.

    Exactly one of ``data`` / ``error`` is meaningful.  ``count`` is set only
    when an exact count was requested.  ``partial_failures`` lists upsert items
    that failed while the rest of the batch succeeded.
    """

    data: Any = None
    error: QueryError | None = None
    count: int | None = None
    partial_failures: tuple[PartialFailure, ...] = field(default=())

    @classmethod
    def failure(cls, error: QueryError) -> QueryResult:
        return cls(data=None, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> QueryResult:
        """Raise :class:`QueryExecutionError` if the result carries an error."""
        if self.error is not None:
            raise QueryExecutionError(self.error.message, code=self.error.code)
        return self

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "data": self.data,
            "error": self.error.to_dict() if self.error is not None else None,
            "partial_failures": [f.to_dict() for f in self.partial_failures],
        }
        if self.count is not None:
            result["count"] = self.count
        return result
