"""User endpoints: /fakeApi/users."""

from __future__ import annotations

from pyfeed._api._common import parse_many
from pyfeed._transport import Transport
from pyfeed.models.user import User

USERS_ENDPOINT = "/fakeApi/users"


async def fetch_users(transport: Transport) -> list[User]:
    response = await transport.get(USERS_ENDPOINT)
    return parse_many(User, response, endpoint=USERS_ENDPOINT)
