"""Slice builder.

A slice owns one partition of the root state.  :func:`create_slice`
turns a declarative configuration into a :class:`Slice`: namespaced
action creators, async thunks, a reducer resolving case reducers from
an explicit table, and local selectors that can later be bound to the
root state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Generic, TypeVar

from pyfeed.state.actions import Action, ActionCreator, Matcher, as_matcher
from pyfeed.state.lifecycle import AsyncThunk, Condition, PayloadCreator

_logger = logging.getLogger(__name__)

S = TypeVar("S")

# A case reducer returns the next state, or None to keep the current one.
CaseReducer = Callable[[S, Action], Any]


@dataclass(frozen=True)
class AsyncThunkSpec(Generic[S]):
    """Declarative description of an async operation owned by a slice.

    Each lifecycle reducer is optional; a missing one leaves the state
    untouched for that transition.
    """

    payload_creator: PayloadCreator[Any, Any]
    condition: Condition[Any] | None = None
    pending: CaseReducer[S] | None = None
    fulfilled: CaseReducer[S] | None = None
    rejected: CaseReducer[S] | None = None


class Slice(Generic[S]):
    """Concrete slice produced by :func:`create_slice`."""

    def __init__(
        self,
        *,
        name: str,
        initial_state: S,
        actions: dict[str, Any],
        cases: dict[str, CaseReducer[S]],
        extra_cases: list[tuple[Matcher, CaseReducer[S]]],
        selectors: Mapping[str, Callable[..., Any]],
    ) -> None:
        self.name = name
        self.initial_state = initial_state
        self.actions = SimpleNamespace(**actions)
        self.selectors = SimpleNamespace(**selectors)
        self._cases = cases
        self._extra_cases = extra_cases

    def __repr__(self) -> str:
        return f"Slice({self.name!r})"

    def reducer(self, state: S | None, action: Action) -> S:
        current: S = self.initial_state if state is None else state

        case = self._cases.get(action.type)
        if case is not None:
            result = case(current, action)
            if result is not None:
                current = result

        for matcher, extra in self._extra_cases:
            if matcher(action):
                result = extra(current, action)
                if result is not None:
                    current = result

        return current

    def get_selectors(self, select_slice_state: Callable[[Any], S]) -> SimpleNamespace:
        """Bind the local selectors to a root-state accessor."""

        def bind(selector: Callable[..., Any]) -> Callable[..., Any]:
            def bound(root: Any, *args: Any) -> Any:
                return selector(select_slice_state(root), *args)

            bound.__name__ = getattr(selector, "__name__", "selector")
            return bound

        return SimpleNamespace(**{key: bind(selector) for key, selector in vars(self.selectors).items()})


def create_slice(
    *,
    name: str,
    initial_state: S,
    reducers: Mapping[str, CaseReducer[S]] | None = None,
    thunks: Mapping[str, AsyncThunkSpec[S]] | None = None,
    extra_cases: Sequence[tuple[ActionCreator[Any] | Matcher, CaseReducer[S]]] = (),
    selectors: Mapping[str, Callable[..., Any]] | None = None,
) -> Slice[S]:
    """Build a :class:`Slice`.

    Parameters
    ----------
    name
        Namespace for the slice's action types (``"<name>/<key>"``).
    initial_state
        Value used when the slice has no state yet, and target of resets.
    reducers
        Synchronous case reducers keyed by action name.
    thunks
        Async operations keyed by action name.
    extra_cases
        ``(matcher, reducer)`` pairs reacting to actions owned by other
        slices, e.g. resetting on logout.  This is the only sanctioned
        cross-slice coupling.
    selectors
        Local selectors taking the slice state as first argument.
    """
    actions: dict[str, Any] = {}
    cases: dict[str, CaseReducer[S]] = {}

    for key, case in (reducers or {}).items():
        creator: ActionCreator[Any] = ActionCreator(f"{name}/{key}")
        actions[key] = creator
        cases[creator.type] = case

    for key, spec in (thunks or {}).items():
        if key in actions:
            raise ValueError(f"Duplicate action name {key!r} in slice {name!r}")
        thunk: AsyncThunk[Any, Any] = AsyncThunk(f"{name}/{key}", spec.payload_creator, condition=spec.condition)
        actions[key] = thunk
        for creator, case in (
            (thunk.pending, spec.pending),
            (thunk.fulfilled, spec.fulfilled),
            (thunk.rejected, spec.rejected),
        ):
            if case is not None:
                cases[creator.type] = case

    extra = [(as_matcher(matcher), case) for matcher, case in extra_cases]

    _logger.debug("Created slice %s with %d action(s)", name, len(actions))
    return Slice(
        name=name,
        initial_state=initial_state,
        actions=actions,
        cases=cases,
        extra_cases=extra,
        selectors=selectors or {},
    )
