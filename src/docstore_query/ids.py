import secrets
import time
from typing import Protocol


class IIDGenerator(Protocol):
    """
    Protocol for document id generation strategies.
    Plug in UUIDs, ObjectIds or any other string format the store accepts.
    """

    def next_id(self) -> str:
        """Generates the next unique document identifier."""
        ...


class UniqueIdGenerator(IIDGenerator):
    """
    Default generator: 20 hex characters, time-prefixed.

    The first 12 characters encode the current time in microseconds so ids
    created later sort after earlier ones; the rest is random.
    """

    def next_id(self) -> str:
        timestamp = format(time.time_ns() // 1000, "x")[-12:].rjust(12, "0")
        return timestamp + secrets.token_hex(4)
