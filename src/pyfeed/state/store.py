"""Central store.

The store owns the root state and is the only place it changes.  Every
write goes through :meth:`Store.dispatch`:

* plain :class:`Action` objects run through the middleware chain and
  then the root reducer, synchronously;
* :class:`ThunkCall` objects start an async lifecycle whose pending /
  fulfilled / rejected actions re-enter ``dispatch``.

All of this happens on one event loop, so reducers never race.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pyfeed.exceptions import StoreError
from pyfeed.state.actions import INIT, Action
from pyfeed.state.lifecycle import ThunkCall, ThunkHandle

_logger = logging.getLogger(__name__)

Reducer = Callable[[Any, Action], Any]
Dispatch = Callable[[Action], Any]
Listener = Callable[[], None]


@dataclass(frozen=True, slots=True)
class MiddlewareApi:
    """What a middleware may do besides passing the action on."""

    dispatch: Callable[[Any], Any]
    get_state: Callable[[], Any]


Middleware = Callable[[MiddlewareApi, Action, Dispatch], Any]


def _read(state: Any, key: str) -> Any:
    if state is None:
        return None
    if isinstance(state, Mapping):
        return state.get(key)
    # A slice added by replace_reducer is absent from the old root.
    return getattr(state, key, None)


def _mapping_state(**values: Any) -> Mapping[str, Any]:
    return MappingProxyType(values)


def combine_reducers(
    reducers: Mapping[str, Reducer],
    state_type: Callable[..., Any] | None = None,
) -> Reducer:
    """Combine per-slice reducers into a root reducer.

    *state_type* builds the root value from keyword arguments (typically a
    frozen dataclass); a read-only mapping is used when omitted.  The
    previous root object is returned when no slice changed.
    """
    if not reducers:
        raise ValueError("combine_reducers needs at least one reducer")
    keys = tuple(reducers)
    factory = state_type or _mapping_state

    def root_reducer(state: Any, action: Action) -> Any:
        changed = state is None
        next_values: dict[str, Any] = {}
        for key in keys:
            previous = _read(state, key)
            next_value = reducers[key](previous, action)
            if next_value is None:
                raise StoreError(f"Reducer for {key!r} returned None for {action.type!r}")
            next_values[key] = next_value
            changed = changed or next_value is not previous
        if not changed:
            return state
        return factory(**next_values)

    return root_reducer


def logging_middleware(api: MiddlewareApi, action: Action, next_dispatch: Dispatch) -> Any:
    """Log every action type passing through the store."""
    _logger.debug("dispatch %s", action.type)
    result = next_dispatch(action)
    if action.error is not None:
        _logger.debug("%s carried error %s", action.type, action.error)
    return result


class Store:
    """Single source of truth for the root state.

    Usage::

        store = configure_store({"posts": posts_slice.reducer}, extra=transport)
        store.dispatch(post_updated(update))
        handle = store.dispatch(fetch_posts())
        await handle
    """

    def __init__(
        self,
        reducer: Reducer,
        *,
        middleware: Sequence[Middleware] = (),
        extra: Any = None,
        preloaded_state: Any = None,
    ) -> None:
        self._reducer = reducer
        self._state = preloaded_state
        self._extra = extra
        self._listeners: list[Listener] = []
        self._dispatching = False
        self._tasks: set[asyncio.Future[Any]] = set()

        api = MiddlewareApi(dispatch=self.dispatch, get_state=self.get_state)
        chain: Dispatch = self._dispatch_core
        for middleware_fn in reversed(middleware):
            chain = self._bind(middleware_fn, api, chain)
        self._chain = chain

        self._dispatch_core(INIT())

    @staticmethod
    def _bind(middleware_fn: Middleware, api: MiddlewareApi, next_dispatch: Dispatch) -> Dispatch:
        def dispatch(action: Action) -> Any:
            return middleware_fn(api, action, next_dispatch)

        return dispatch

    @property
    def state(self) -> Any:
        return self._state

    @property
    def extra(self) -> Any:
        return self._extra

    def get_state(self) -> Any:
        if self._dispatching:
            raise StoreError("Reducers may not read the store state; use the state argument")
        return self._state

    def dispatch(self, action: Action | ThunkCall) -> Any:
        """Dispatch an action, or start a thunk and return its :class:`ThunkHandle`."""
        if isinstance(action, ThunkCall):
            return self._start_thunk(action)
        if not isinstance(action, Action):
            raise StoreError(f"Cannot dispatch {type(action).__name__}; expected Action or ThunkCall")
        return self._chain(action)

    def _start_thunk(self, call: ThunkCall) -> ThunkHandle:
        handle = call.start(self.dispatch, self.get_state, self._extra)
        if not handle.done():
            self._tasks.add(handle.task)
            handle.task.add_done_callback(self._tasks.discard)
        return handle

    async def join(self) -> None:
        """Wait until every thunk invocation in flight has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _dispatch_core(self, action: Action) -> Action:
        if self._dispatching:
            raise StoreError(f"Reducers may not dispatch actions (got {action.type!r})")
        self._dispatching = True
        try:
            self._state = self._reducer(self._state, action)
        finally:
            self._dispatching = False

        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                _logger.debug("Store subscriber failed", exc_info=True)
        return action

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every committed action; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def replace_reducer(self, reducer: Reducer) -> None:
        self._reducer = reducer
        self._dispatch_core(INIT())


def configure_store(
    reducer: Reducer | Mapping[str, Reducer],
    *,
    state_type: Callable[..., Any] | None = None,
    middleware: Sequence[Middleware] = (),
    extra: Any = None,
    preloaded_state: Any = None,
) -> Store:
    """Create a :class:`Store` from a root reducer or a mapping of slice reducers."""
    root = combine_reducers(reducer, state_type) if isinstance(reducer, Mapping) else reducer
    return Store(root, middleware=middleware, extra=extra, preloaded_state=preloaded_state)
