"""Async request lifecycle (pending / fulfilled / rejected).

An :class:`AsyncThunk` wraps an externally-sourced async operation.
Dispatching ``thunk(arg)`` through the store:

1. evaluates the optional ``condition``; ``False`` abandons the call
   (no action, no external call);
2. commits ``<prefix>/pending`` synchronously;
3. runs the payload creator as an asyncio task;
4. commits ``<prefix>/fulfilled`` with the result, or
   ``<prefix>/rejected`` with a :class:`SerializedError`.

Failures of the payload creator never escape the dispatch boundary:
they become lifecycle state.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pyfeed.exceptions import ThunkRejectedError
from pyfeed.state.actions import Action, ActionCreator, Matcher, is_any_of

_logger = logging.getLogger(__name__)

A = TypeVar("A")
R = TypeVar("R")

UNKNOWN_ERROR_MESSAGE = "Unknown Error"
ABORTED_ERROR_MESSAGE = "Aborted"

Dispatch = Callable[[Any], Any]
GetState = Callable[[], Any]


class LoadStatus(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class SerializedError:
    """Plain-data view of an exception, safe to keep in state."""

    name: str
    message: str


def serialize_error(exc: BaseException) -> SerializedError:
    """Normalize *exc*, falling back to ``"Unknown Error"`` when it has no message."""
    message = str(exc).strip()
    return SerializedError(name=type(exc).__name__, message=message or UNKNOWN_ERROR_MESSAGE)


@dataclass(frozen=True, slots=True)
class ThunkMeta:
    request_id: str
    arg: Any
    request_status: str


@dataclass(frozen=True, slots=True)
class ThunkApi:
    """Capabilities handed to conditions and payload creators."""

    dispatch: Dispatch
    get_state: GetState
    extra: Any
    request_id: str


PayloadCreator = Callable[[A, ThunkApi], Awaitable[R]]
Condition = Callable[[A, ThunkApi], bool]


class ThunkHandle:
    """Awaitable result of dispatching a thunk.

    Awaiting it yields the settled action (``None`` when the condition
    skipped the invocation).  It never raises for a rejected call; use
    :meth:`unwrap` to get the payload or an exception instead.

    The wait is shielded: cancelling the awaiting coroutine (e.g. through
    ``asyncio.wait_for``) leaves the invocation running to completion.
    """

    def __init__(self, future: asyncio.Future[Action | None], *, request_id: str, skipped: bool = False) -> None:
        self._future = future
        self.request_id = request_id
        self.skipped = skipped

    def __await__(self) -> Generator[Any, None, Action | None]:
        return asyncio.shield(self._future).__await__()

    @property
    def task(self) -> asyncio.Future[Action | None]:
        """The underlying invocation (already resolved when skipped)."""
        return self._future

    def done(self) -> bool:
        return self._future.done()

    async def unwrap(self) -> Any:
        action = await asyncio.shield(self._future)
        if action is None:
            raise ThunkRejectedError(
                SerializedError(name="ConditionError", message="Aborted due to condition callback returning false.")
            )
        if action.error is not None:
            raise ThunkRejectedError(action.error)
        return action.payload


@dataclass(frozen=True, slots=True)
class ThunkCall:
    """A dispatchable request to start one invocation of a thunk."""

    thunk: AsyncThunk[Any, Any]
    arg: Any = None

    def start(self, dispatch: Dispatch, get_state: GetState, extra: Any) -> ThunkHandle:
        return self.thunk.start(self.arg, dispatch=dispatch, get_state=get_state, extra=extra)


class AsyncThunk(Generic[A, R]):
    """Action-creator family for one async operation."""

    def __init__(
        self,
        type_prefix: str,
        payload_creator: PayloadCreator[A, R],
        *,
        condition: Condition[A] | None = None,
    ) -> None:
        self.type_prefix = type_prefix
        self._payload_creator = payload_creator
        self._condition = condition
        self.pending: ActionCreator[None] = ActionCreator(f"{type_prefix}/pending")
        self.fulfilled: ActionCreator[R] = ActionCreator(f"{type_prefix}/fulfilled")
        self.rejected: ActionCreator[None] = ActionCreator(f"{type_prefix}/rejected")
        self.settled: Matcher = is_any_of(self.fulfilled, self.rejected)

    def __call__(self, arg: A | None = None) -> ThunkCall:
        return ThunkCall(thunk=self, arg=arg)

    def __repr__(self) -> str:
        return f"AsyncThunk({self.type_prefix!r})"

    def start(self, arg: A, *, dispatch: Dispatch, get_state: GetState, extra: Any) -> ThunkHandle:
        loop = asyncio.get_running_loop()
        request_id = secrets.token_hex(8)
        api = ThunkApi(dispatch=dispatch, get_state=get_state, extra=extra, request_id=request_id)

        if self._condition is not None and not self._condition(arg, api):
            _logger.debug("Skipping %s: condition returned false", self.type_prefix)
            skipped: asyncio.Future[Action | None] = loop.create_future()
            skipped.set_result(None)
            return ThunkHandle(skipped, request_id=request_id, skipped=True)

        meta = ThunkMeta(request_id=request_id, arg=arg, request_status="pending")
        dispatch(self.pending(meta=meta))
        task = loop.create_task(self._execute(arg, api, meta), name=f"{self.type_prefix}:{request_id}")
        task.add_done_callback(lambda done: self._reject_if_cancelled(done, api, meta))
        return ThunkHandle(task, request_id=request_id)

    def _reject_if_cancelled(self, task: asyncio.Future[Action], api: ThunkApi, meta: ThunkMeta) -> None:
        # A started invocation always settles, even when its task is cancelled.
        if not task.cancelled():
            return
        _logger.warning("%s cancelled while in flight", self.type_prefix)
        error = SerializedError(name="AbortError", message=ABORTED_ERROR_MESSAGE)
        api.dispatch(self.rejected(meta=replace(meta, request_status="rejected"), error=error))

    async def _execute(self, arg: A, api: ThunkApi, meta: ThunkMeta) -> Action:
        try:
            payload = await self._payload_creator(arg, api)
        except Exception as exc:
            error = serialize_error(exc)
            _logger.warning("%s rejected: %s", self.type_prefix, error.message)
            action = self.rejected(meta=replace(meta, request_status="rejected"), error=error)
        else:
            action = self.fulfilled(payload, meta=replace(meta, request_status="fulfilled"))
        api.dispatch(action)
        return action


def create_async_thunk(
    type_prefix: str,
    payload_creator: PayloadCreator[A, R],
    *,
    condition: Condition[A] | None = None,
) -> AsyncThunk[A, R]:
    """Create an :class:`AsyncThunk` for *type_prefix*."""
    return AsyncThunk(type_prefix, payload_creator, condition=condition)
