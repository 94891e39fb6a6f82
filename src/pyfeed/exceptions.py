"""Custom exception hierarchy for pyfeed."""

from __future__ import annotations

from typing import Any


class FeedError(Exception):
    """Base exception for all pyfeed errors."""


class FeedConfigError(FeedError):
    """Invalid or missing configuration."""


class FeedTransportError(FeedError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class FeedApiError(FeedError):
    """The API answered, but with a payload we cannot interpret."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class StoreError(FeedError):
    """Misuse of the store (e.g. dispatching from inside a reducer)."""


class DuplicateEntityError(StoreError):
    """An entity with the same id is already present in the collection.

    Raised by :meth:`pyfeed.state.entity.EntityAdapter.add_one`.  Adding
    a record twice is a programming error; use ``upsert_one`` or
    ``set_one`` when replacement is intended.
    """

    def __init__(self, entity_id: str) -> None:
        self.entity_id = entity_id
        super().__init__(f"Entity {entity_id!r} already exists")


class ThunkRejectedError(FeedError):
    """Raised by :meth:`ThunkHandle.unwrap` when the invocation was rejected."""

    def __init__(self, error: Any) -> None:
        self.error = error
        message = getattr(error, "message", None) or str(error)
        super().__init__(message)


class TaskAbortError(FeedError):
    """A listener effect observed its own cancellation."""

    def __init__(self, reason: str = "listener-cancelled") -> None:
        self.reason = reason
        super().__init__(f"task aborted: {reason}")
