"""Users slice: read-mostly user directory, refreshed wholesale."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from pyfeed._api import users as _users_api
from pyfeed.features.auth import select_current_username
from pyfeed.models.user import User
from pyfeed.state.actions import Action
from pyfeed.state.entity import EntityAdapter, EntityState
from pyfeed.state.lifecycle import AsyncThunk, LoadStatus, ThunkApi
from pyfeed.state.selectors import create_selector
from pyfeed.state.slice import AsyncThunkSpec, create_slice

# No comparer: users are ordered by id.
users_adapter: EntityAdapter[User] = EntityAdapter()


@dataclass(frozen=True)
class UsersState(EntityState[User]):
    status: LoadStatus = LoadStatus.IDLE
    error: str | None = None


def _should_fetch_users(_arg: Any, api: ThunkApi) -> bool:
    return api.get_state().users.status != LoadStatus.PENDING


async def _fetch_users(_arg: Any, api: ThunkApi) -> list[User]:
    return await _users_api.fetch_users(api.extra)


def _pending(state: UsersState, action: Action) -> UsersState:
    return replace(state, status=LoadStatus.PENDING)


def _fulfilled(state: UsersState, action: Action) -> UsersState:
    return users_adapter.set_all(replace(state, status=LoadStatus.SUCCEEDED, error=None), action.payload)


def _rejected(state: UsersState, action: Action) -> UsersState:
    return replace(state, status=LoadStatus.REJECTED, error=action.error.message)


users_slice = create_slice(
    name="users",
    initial_state=users_adapter.get_initial_state(UsersState),
    thunks={
        "fetch_users": AsyncThunkSpec(
            payload_creator=_fetch_users,
            condition=_should_fetch_users,
            pending=_pending,
            fulfilled=_fulfilled,
            rejected=_rejected,
        ),
    },
    selectors={
        "select_users_status": lambda state: state.status,
        "select_users_error": lambda state: state.error,
    },
)

fetch_users: AsyncThunk[None, list[User]] = users_slice.actions.fetch_users

_local = users_slice.get_selectors(lambda root: root.users)
select_users_status = _local.select_users_status
select_users_error = _local.select_users_error

_entity = users_adapter.get_selectors(lambda root: root.users)
select_all_users = _entity.select_all
select_user_by_id = _entity.select_by_id
select_user_entities = _entity.select_entities

select_current_user = create_selector(
    select_current_username,
    select_user_entities,
    combiner=lambda username, entities: entities.get(username) if username else None,
    name="select_current_user",
)
