"""Auth slice: who is logged in."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from pyfeed._api import auth as _auth_api
from pyfeed.models.user import LoginRequest
from pyfeed.state.actions import Action
from pyfeed.state.lifecycle import AsyncThunk, ThunkApi
from pyfeed.state.slice import AsyncThunkSpec, create_slice


@dataclass(frozen=True)
class AuthState:
    current_username: str | None = None


async def _login(username: str, api: ThunkApi) -> str:
    request = LoginRequest(username=username)
    return await _auth_api.login(api.extra, request)


async def _logout(_arg: Any, api: ThunkApi) -> None:
    await _auth_api.logout(api.extra)


def _logged_in(state: AuthState, action: Action) -> AuthState:
    return replace(state, current_username=action.payload)


def _logged_out(state: AuthState, action: Action) -> AuthState:
    return replace(state, current_username=None)


auth_slice = create_slice(
    name="auth",
    initial_state=AuthState(),
    thunks={
        "login": AsyncThunkSpec(payload_creator=_login, fulfilled=_logged_in),
        "logout": AsyncThunkSpec(payload_creator=_logout, fulfilled=_logged_out),
    },
    selectors={
        "select_current_username": lambda state: state.current_username,
    },
)

login: AsyncThunk[str, str] = auth_slice.actions.login
logout: AsyncThunk[None, None] = auth_slice.actions.logout

select_current_username = auth_slice.get_selectors(lambda root: root.auth).select_current_username
