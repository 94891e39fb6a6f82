from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

import pytest

from pyfeed.exceptions import StoreError
from pyfeed.state.actions import INIT, Action, ActionCreator, is_all_of, is_any_of
from pyfeed.state.slice import AsyncThunkSpec, create_slice
from pyfeed.state.store import MiddlewareApi, combine_reducers, configure_store, logging_middleware


@dataclass(frozen=True)
class _Count:
    value: int = 0


@dataclass(frozen=True)
class _Root:
    left: _Count
    right: _Count


left_slice = create_slice(
    name="left",
    initial_state=_Count(),
    reducers={"incremented": lambda state, action: replace(state, value=state.value + 1)},
    selectors={"select_value": lambda state: state.value},
)
right_slice = create_slice(
    name="right",
    initial_state=_Count(),
    reducers={
        "incremented": lambda state, action: replace(state, value=state.value + action.payload),
        "ignored": lambda state, action: None,
    },
    extra_cases=[(left_slice.actions.incremented, lambda state, action: replace(state, value=state.value + 100))],
)


def _store(**kwargs: Any) -> Any:
    return configure_store(
        {"left": left_slice.reducer, "right": right_slice.reducer},
        state_type=_Root,
        **kwargs,
    )


def test_initial_state_is_seeded_from_slices() -> None:
    store = _store()
    assert store.get_state() == _Root(left=_Count(), right=_Count())


def test_dispatch_runs_reducers_and_extra_cases() -> None:
    store = _store()
    store.dispatch(left_slice.actions.incremented())
    store.dispatch(right_slice.actions.incremented(5))

    state = store.get_state()
    assert state.left.value == 1
    assert state.right.value == 105


def test_unhandled_action_keeps_root_identity() -> None:
    store = _store()
    before = store.get_state()
    store.dispatch(Action(type="unknown/action"))
    assert store.get_state() is before


def test_case_reducer_returning_none_keeps_state() -> None:
    store = _store()
    before = store.get_state()
    store.dispatch(right_slice.actions.ignored())
    assert store.get_state() is before


def test_unchanged_slices_keep_identity() -> None:
    store = _store()
    before = store.get_state()
    store.dispatch(right_slice.actions.incremented(1))
    after = store.get_state()
    assert after.left is before.left
    assert after.right is not before.right


def test_combine_reducers_defaults_to_read_only_mapping() -> None:
    reducer = combine_reducers({"left": left_slice.reducer})
    state = reducer(None, INIT())
    assert state["left"] == _Count()
    with pytest.raises(TypeError):
        state["left"] = _Count(1)  # type: ignore[index]


def test_subscribe_and_unsubscribe() -> None:
    store = _store()
    calls: list[int] = []
    unsubscribe = store.subscribe(lambda: calls.append(store.get_state().left.value))

    store.dispatch(left_slice.actions.incremented())
    unsubscribe()
    store.dispatch(left_slice.actions.incremented())

    assert calls == [1]


def test_failing_subscriber_does_not_break_dispatch() -> None:
    store = _store()

    def boom() -> None:
        raise RuntimeError("subscriber failed")

    store.subscribe(boom)
    store.dispatch(left_slice.actions.incremented())
    assert store.get_state().left.value == 1


def test_reducers_may_not_dispatch() -> None:
    holder: dict[str, Any] = {}

    def reducer(state: Any, action: Action) -> Any:
        if action.type == "nested":
            holder["store"].dispatch(Action(type="inner"))
        return state or _Count()

    store = configure_store(reducer)
    holder["store"] = store
    with pytest.raises(StoreError):
        store.dispatch(Action(type="nested"))


def test_dispatching_non_action_raises() -> None:
    store = _store()
    with pytest.raises(StoreError):
        store.dispatch({"type": "left/incremented"})


def test_middleware_runs_in_order_around_reducers() -> None:
    events: list[str] = []

    def outer(api: MiddlewareApi, action: Action, next_dispatch: Any) -> Any:
        events.append(f"outer:before:{api.get_state().left.value}")
        result = next_dispatch(action)
        events.append(f"outer:after:{api.get_state().left.value}")
        return result

    def inner(api: MiddlewareApi, action: Action, next_dispatch: Any) -> Any:
        events.append("inner")
        return next_dispatch(action)

    store = _store(middleware=[outer, inner])
    returned = store.dispatch(left_slice.actions.incremented())

    assert events == ["outer:before:0", "inner", "outer:after:1"]
    assert returned.type == "left/incremented"


def test_logging_middleware_logs_action_types(caplog: pytest.LogCaptureFixture) -> None:
    store = _store(middleware=[logging_middleware])
    with caplog.at_level(logging.DEBUG, logger="pyfeed.state.store"):
        store.dispatch(left_slice.actions.incremented())
    assert "dispatch left/incremented" in caplog.text


def test_bound_slice_selectors_read_root_state() -> None:
    store = _store()
    store.dispatch(left_slice.actions.incremented())
    selectors = left_slice.get_selectors(lambda root: root.left)
    assert selectors.select_value(store.get_state()) == 1


def test_replace_reducer_reseeds_new_keys() -> None:
    store = configure_store({"left": left_slice.reducer})
    store.replace_reducer(combine_reducers({"left": left_slice.reducer, "right": right_slice.reducer}))
    assert store.get_state()["right"] == _Count()


def test_replace_reducer_seeds_new_slice_on_dataclass_root() -> None:
    @dataclass(frozen=True)
    class _LeftOnly:
        left: _Count

    store = configure_store({"left": left_slice.reducer}, state_type=_LeftOnly)
    store.dispatch(left_slice.actions.incremented())

    store.replace_reducer(combine_reducers({"left": left_slice.reducer, "right": right_slice.reducer}, _Root))

    assert store.get_state() == _Root(left=_Count(1), right=_Count())


def test_action_creator_and_matchers() -> None:
    ping = ActionCreator[str]("test/ping")
    pong = ActionCreator[str]("test/pong")

    action = ping("hello")
    assert action == Action(type="test/ping", payload="hello")
    assert ping.match(action)
    assert not pong.match(action)
    assert is_any_of(ping, pong)(action)
    assert not is_all_of(ping, pong)(action)
    assert is_all_of(ping, lambda a: a.payload == "hello")(action)

    with pytest.raises(ValueError):
        ActionCreator("")


def test_duplicate_action_names_are_rejected() -> None:
    async def noop(_arg: Any, _api: Any) -> None:
        return None

    with pytest.raises(ValueError):
        create_slice(
            name="dup",
            initial_state=_Count(),
            reducers={"same": lambda state, action: state},
            thunks={"same": AsyncThunkSpec(payload_creator=noop)},
        )
