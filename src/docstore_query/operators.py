from enum import Enum


class QueryOperator(str, Enum):
    """Predicate operators a document store must understand."""

    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    IN = "in"

    # Whole-token full-text match; needs a text index on most backends.
    SEARCH = "search"
