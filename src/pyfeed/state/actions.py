"""Action kinds and action creators.

Every state transition is described by an :class:`Action`: a type string
namespaced by the slice that owns it (``"posts/postUpdated"``) and a
payload.  Action creators build actions of one kind and double as
matchers, so reducers and listeners never compare raw strings.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

P = TypeVar("P")

Matcher = Callable[["Action"], bool]


@dataclass(frozen=True, slots=True)
class Action:
    """A committed (or about to be committed) state transition."""

    type: str
    payload: Any = None
    meta: Any = None
    error: Any = None


class ActionCreator(Generic[P]):
    """Build :class:`Action` objects of a single kind.

    Usage::

        post_updated = ActionCreator[PostUpdate]("posts/postUpdated")
        store.dispatch(post_updated(update))
        post_updated.match(action)
    """

    def __init__(self, type: str) -> None:  # noqa: A002
        if not type:
            raise ValueError("action type must be non-empty")
        self.type = type

    def __call__(self, payload: P = None, *, meta: Any = None, error: Any = None) -> Action:  # type: ignore[assignment]
        return Action(type=self.type, payload=payload, meta=meta, error=error)

    def match(self, action: Action) -> bool:
        return action.type == self.type

    def __repr__(self) -> str:
        return f"ActionCreator({self.type!r})"


def as_matcher(candidate: ActionCreator[Any] | Matcher) -> Matcher:
    """Turn an action creator (or anything with ``.match``) into a matcher."""
    if isinstance(candidate, ActionCreator):
        return candidate.match
    match = getattr(candidate, "match", None)
    if callable(match):
        return match
    return candidate


def is_any_of(*candidates: ActionCreator[Any] | Matcher) -> Matcher:
    """Match an action accepted by at least one of *candidates*."""
    matchers = [as_matcher(c) for c in candidates]
    return lambda action: any(m(action) for m in matchers)


def is_all_of(*candidates: ActionCreator[Any] | Matcher) -> Matcher:
    """Match an action accepted by every one of *candidates*."""
    matchers = [as_matcher(c) for c in candidates]
    return lambda action: all(m(action) for m in matchers)


INIT = ActionCreator[None]("@@pyfeed/INIT")
"""Dispatched once by the store to seed every slice with its initial state."""
