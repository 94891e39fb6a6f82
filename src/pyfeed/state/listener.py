"""Listener middleware: reactive side effects on committed actions.

Listeners are registered with a match option (exact action type, an
action creator, a matcher, or a predicate over the states around the
reduction) and an async effect.  After an action has been reduced,
every matching listener's effect is scheduled as an asyncio task; the
dispatcher never waits for it.

Effects cancel cooperatively: each run has an :class:`AbortSignal`,
and :meth:`ListenerApi.delay` / :meth:`ListenerApi.pause` raise
:class:`~pyfeed.exceptions.TaskAbortError` once the signal is aborted,
so a cancelled effect performs no further dispatches.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pyfeed.exceptions import TaskAbortError
from pyfeed.state.actions import Action, ActionCreator, as_matcher
from pyfeed.state.store import Dispatch, MiddlewareApi

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Predicate = Callable[[Action, Any, Any], bool]
Effect = Callable[[Action, "ListenerApi"], Awaitable[None]]

_ids = itertools.count(1)


class AbortSignal:
    """One-shot cancellation flag for a single effect run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def abort(self, reason: str) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass(eq=False)
class _Run:
    signal: AbortSignal
    task: asyncio.Task[None] | None = None


@dataclass(eq=False)
class _ListenerEntry:
    id: int
    key: tuple[Any, ...]
    predicate: Predicate
    effect: Effect
    cancel_active: bool
    runs: set[_Run] = field(default_factory=set)

    def abort_runs(self, reason: str, *, keep: _Run | None = None) -> None:
        for run in list(self.runs):
            if run is not keep:
                run.signal.abort(reason)


class ListenerApi:
    """Capabilities handed to a running effect."""

    def __init__(
        self,
        *,
        middleware: ListenerMiddleware,
        entry: _ListenerEntry,
        run: _Run,
        api: MiddlewareApi,
        original_state: Any,
    ) -> None:
        self._middleware = middleware
        self._entry = entry
        self._run = run
        self._api = api
        self._original_state = original_state

    @property
    def signal(self) -> AbortSignal:
        return self._run.signal

    def dispatch(self, action: Any) -> Any:
        return self._api.dispatch(action)

    def get_state(self) -> Any:
        return self._api.get_state()

    def get_original_state(self) -> Any:
        """State as it was right before the triggering action was reduced."""
        return self._original_state

    def throw_if_cancelled(self) -> None:
        if self.signal.aborted:
            raise TaskAbortError(self.signal.reason or "listener-cancelled")

    async def delay(self, seconds: float) -> None:
        """Sleep for *seconds*; raise :class:`TaskAbortError` if aborted meanwhile."""
        self.throw_if_cancelled()
        try:
            await asyncio.wait_for(self.signal.wait(), seconds)
        except TimeoutError:
            pass
        self.throw_if_cancelled()

    async def pause(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the run is aborted first."""
        self.throw_if_cancelled()
        target = asyncio.ensure_future(awaitable)
        aborted = asyncio.ensure_future(self.signal.wait())
        try:
            await asyncio.wait({target, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            aborted.cancel()
            if not target.done():
                target.cancel()
        self.throw_if_cancelled()
        return target.result()

    def cancel_active_listeners(self) -> None:
        """Abort the other in-flight runs of this listener."""
        self._entry.abort_runs("listener-cancelled", keep=self._run)

    def unsubscribe(self) -> None:
        self._middleware._remove(self._entry)


class ListenerMiddleware:
    """Store middleware that runs effects for matching committed actions.

    Usage::

        listeners = ListenerMiddleware()
        store = configure_store(reducers, middleware=[listeners])
        listeners.start_listening(actor=add_new_post.fulfilled, effect=show_toast)
    """

    def __init__(self) -> None:
        self._entries: dict[int, _ListenerEntry] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @staticmethod
    def _build_predicate(
        *,
        action_type: str | None,
        actor: ActionCreator[Any] | None,
        matcher: Callable[[Action], bool] | None,
        predicate: Predicate | None,
    ) -> tuple[tuple[Any, ...], Predicate]:
        options = [o for o in (action_type, actor, matcher, predicate) if o is not None]
        if len(options) != 1:
            raise ValueError("Exactly one of action_type, actor, matcher or predicate is required")

        if action_type is not None:
            return ("type", action_type), lambda action, _current, _original: action.type == action_type
        if actor is not None:
            match = as_matcher(actor)
            return ("type", actor.type), lambda action, _current, _original: match(action)
        if matcher is not None:
            return ("matcher", matcher), lambda action, _current, _original: matcher(action)
        assert predicate is not None  # noqa: S101
        return ("predicate", predicate), predicate

    def start_listening(
        self,
        *,
        effect: Effect,
        action_type: str | None = None,
        actor: ActionCreator[Any] | None = None,
        matcher: Callable[[Action], bool] | None = None,
        predicate: Predicate | None = None,
        cancel_active: bool = False,
    ) -> Callable[[], None]:
        """Register *effect*; returns a callable that unregisters it.

        With ``cancel_active=True`` every new run aborts the earlier runs of
        the same listener that are still in flight (latest wins).
        Registering the same match option and effect twice is a no-op.
        """
        match_key, resolved = self._build_predicate(
            action_type=action_type, actor=actor, matcher=matcher, predicate=predicate
        )
        key = (*match_key, effect)
        for existing in self._entries.values():
            if existing.key == key:
                return lambda: self._remove(existing)

        entry = _ListenerEntry(
            id=next(_ids),
            key=key,
            predicate=resolved,
            effect=effect,
            cancel_active=cancel_active,
        )
        self._entries[entry.id] = entry
        _logger.debug("Listener %d registered (%s)", entry.id, match_key[0])
        return lambda: self._remove(entry)

    def stop_listening(
        self,
        *,
        effect: Effect,
        action_type: str | None = None,
        actor: ActionCreator[Any] | None = None,
        matcher: Callable[[Action], bool] | None = None,
        predicate: Predicate | None = None,
        cancel_active: bool = False,
    ) -> bool:
        """Unregister a listener; returns whether one was found."""
        match_key, _ = self._build_predicate(
            action_type=action_type, actor=actor, matcher=matcher, predicate=predicate
        )
        key = (*match_key, effect)
        for entry in list(self._entries.values()):
            if entry.key == key:
                if cancel_active:
                    entry.abort_runs("listener-cancelled")
                self._remove(entry)
                return True
        return False

    def clear_listeners(self) -> None:
        """Unregister every listener and abort their in-flight runs."""
        for entry in list(self._entries.values()):
            entry.abort_runs("listener-cleared")
        self._entries.clear()

    def _remove(self, entry: _ListenerEntry) -> None:
        self._entries.pop(entry.id, None)

    async def join(self) -> None:
        """Wait until every effect that is currently running has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------

    def __call__(self, api: MiddlewareApi, action: Action, next_dispatch: Dispatch) -> Any:
        original_state = api.get_state()
        result = next_dispatch(action)
        current_state = api.get_state()

        for entry in list(self._entries.values()):
            try:
                matched = entry.predicate(action, current_state, original_state)
            except Exception:
                _logger.exception("Listener %d predicate failed for %s", entry.id, action.type)
                continue
            if matched:
                self._start_effect(entry, action, api, original_state)
        return result

    def _start_effect(self, entry: _ListenerEntry, action: Action, api: MiddlewareApi, original_state: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _logger.warning("No running event loop; listener %d skipped for %s", entry.id, action.type)
            return

        run = _Run(signal=AbortSignal())
        if entry.cancel_active:
            entry.abort_runs("listener-cancelled", keep=run)
        listener_api = ListenerApi(
            middleware=self,
            entry=entry,
            run=run,
            api=api,
            original_state=original_state,
        )
        entry.runs.add(run)
        task = loop.create_task(
            self._run_effect(entry, run, action, listener_api),
            name=f"listener-{entry.id}:{action.type}",
        )
        run.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_effect(self, entry: _ListenerEntry, run: _Run, action: Action, listener_api: ListenerApi) -> None:
        try:
            await entry.effect(action, listener_api)
        except TaskAbortError as exc:
            _logger.debug("Listener %d aborted for %s: %s", entry.id, action.type, exc.reason)
        except Exception:
            _logger.exception("Listener %d effect failed for %s", entry.id, action.type)
        finally:
            run.signal.abort("listener-completed")
            entry.runs.discard(run)
