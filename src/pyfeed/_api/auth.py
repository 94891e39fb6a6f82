"""Session endpoints: /fakeApi/login and /fakeApi/logout.

The API keeps no meaningful response body for these calls; success is
signalled by a 2xx status alone.
"""

from __future__ import annotations

from pyfeed._transport import Transport
from pyfeed.models.user import LoginRequest

LOGIN_ENDPOINT = "/fakeApi/login"
LOGOUT_ENDPOINT = "/fakeApi/logout"


async def login(transport: Transport, request: LoginRequest) -> str:
    await transport.post(LOGIN_ENDPOINT, {"username": request.username})
    return request.username


async def logout(transport: Transport) -> None:
    await transport.post(LOGOUT_ENDPOINT, {})
