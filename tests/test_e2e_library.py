from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyfeed.client import FeedClient
from pyfeed.config import FeedConfig
from pyfeed.exceptions import FeedError, FeedTransportError
from pyfeed.features.auth import select_current_username
from pyfeed.features.notifications import select_all_notifications
from pyfeed.features.posts import (
    fetch_posts,
    select_all_posts,
    select_post_by_id,
    select_posts_by_user,
    select_posts_error,
    select_posts_status,
)
from pyfeed.features.users import (
    select_all_users,
    select_current_user,
    select_user_by_id,
    select_users_error,
    select_users_status,
)
from pyfeed.models.post import ReactionName
from pyfeed.models.user import User
from pyfeed.state.lifecycle import LoadStatus


@dataclass
class FakeFeedBackend:
    users: list[dict[str, Any]] = field(
        default_factory=lambda: [{"id": 0, "name": "Tom"}, {"id": 1, "name": "Ann"}]
    )
    posts: list[dict[str, Any]] = field(
        default_factory=lambda: [
            {
                "id": "1",
                "title": "First Post!",
                "content": "Hello!",
                "user": "0",
                "date": "2024-01-01T10:00:00.000Z",
                "reactions": {"thumbsUp": 0, "tada": 0, "heart": 0, "rocket": 0, "eyes": 0},
            },
            {
                "id": "2",
                "title": "Second Post",
                "content": "More text",
                "user": "1",
                "date": "2024-01-02T10:00:00.000Z",
                "reactions": {"thumbsUp": 1, "tada": 0, "heart": 0, "rocket": 0, "eyes": 0},
            },
        ]
    )
    calls: dict[str, int] = field(default_factory=dict)
    fail_endpoints: set[str] = field(default_factory=set)
    gate: asyncio.Event | None = None
    _next_id: int = 100

    def _record_call(self, method: str, path: str) -> None:
        key = f"{method} {path}"
        self.calls[key] = self.calls.get(key, 0) + 1

    async def get(self, path: str) -> Any:
        self._record_call("GET", path)
        if self.gate is not None:
            await self.gate.wait()
        if path in self.fail_endpoints:
            raise FeedTransportError(f"HTTP 500 from {path}: boom", status_code=500, endpoint=path)
        if path == "/fakeApi/users":
            return {"data": list(self.users)}
        if path == "/fakeApi/posts":
            return list(self.posts)
        raise AssertionError(f"Unexpected endpoint in fake backend: GET {path}")

    async def post(self, path: str, body: Any) -> Any:
        self._record_call("POST", path)
        if path in self.fail_endpoints:
            raise FeedTransportError(f"HTTP 500 from {path}: boom", status_code=500, endpoint=path)
        if path in ("/fakeApi/login", "/fakeApi/logout"):
            return None
        if path == "/fakeApi/posts":
            self._next_id += 1
            created = {"id": str(self._next_id), "date": "2024-02-01T10:00:00.000Z", **body}
            self.posts.append(created)
            return created
        raise AssertionError(f"Unexpected endpoint in fake backend: POST {path}")


@pytest.fixture
def config() -> FeedConfig:
    return FeedConfig(base_url="http://feed.invalid", notification_delay=0.05)


@pytest.fixture
def backend() -> FakeFeedBackend:
    return FakeFeedBackend()


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_fetch_users_walks_through_lifecycle(config: FeedConfig, backend: FakeFeedBackend) -> None:
    async with FeedClient(config, transport=backend) as client:
        statuses: list[LoadStatus] = []
        client.subscribe(lambda: statuses.append(client.select(select_users_status)))

        assert client.select(select_users_status) == LoadStatus.IDLE
        await client.fetch_users()

        assert statuses == [LoadStatus.PENDING, LoadStatus.SUCCEEDED]
        assert client.select(select_all_users) == [User(id="0", name="Tom"), User(id="1", name="Ann")]
        assert client.select(select_user_by_id, "0") == User(id="0", name="Tom")
        assert client.select(select_user_by_id, "missing") is None
        assert client.select(select_users_error) is None


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_client_happy_path(config: FeedConfig, backend: FakeFeedBackend) -> None:
    async with FeedClient(config, transport=backend) as client:
        await client.login("0")
        await client.fetch_users()
        await client.fetch_posts()

        assert client.select(select_current_username) == "0"
        assert client.select(select_current_user) == User(id="0", name="Tom")
        assert [post.id for post in client.select(select_all_posts)] == ["2", "1"]
        assert [post.id for post in client.select(select_posts_by_user, "0")] == ["1"]

        client.add_reaction("1", ReactionName.HEART)
        client.add_reaction("1", "heart")
        post = client.select(select_post_by_id, "1")
        assert post is not None and post.reactions.heart == 2

        client.update_post("1", title="Edited", content="Changed")
        post = client.select(select_post_by_id, "1")
        assert post is not None and post.title == "Edited"

        action = await client.add_new_post(title="Third", content="Fresh", user="0")
        assert action is not None
        assert [post.id for post in client.select(select_all_posts)] == ["101", "2", "1"]
        assert [n.message for n in client.select(select_all_notifications)] == ["New post added!"]

        await client.feed.listeners.join()
        assert client.select(select_all_notifications) == []

        await client.logout()
        assert client.select(select_current_username) is None
        assert client.select(select_all_posts) == []
        assert client.select(select_posts_status) == LoadStatus.IDLE
        # The user directory survives a logout.
        assert len(client.select(select_all_users)) == 2

    assert backend.calls == {
        "POST /fakeApi/login": 1,
        "GET /fakeApi/users": 1,
        "GET /fakeApi/posts": 1,
        "POST /fakeApi/posts": 1,
        "POST /fakeApi/logout": 1,
    }


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_concurrent_fetches_issue_one_request(config: FeedConfig, backend: FakeFeedBackend) -> None:
    backend.gate = asyncio.Event()

    async with FeedClient(config, transport=backend) as client:
        first = asyncio.ensure_future(client.fetch_posts())
        await asyncio.sleep(0)
        skipped = await client.fetch_posts()
        assert skipped is None

        backend.gate.set()
        assert await first is not None

    assert backend.calls["GET /fakeApi/posts"] == 1


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_exit_waits_for_dropped_requests(config: FeedConfig, backend: FakeFeedBackend) -> None:
    backend.gate = asyncio.Event()

    async with FeedClient(config, transport=backend) as client:
        handle = client.dispatch(fetch_posts())
        asyncio.get_running_loop().call_later(0.01, backend.gate.set)
        feed = client.feed

    assert handle.done()
    assert select_posts_status(feed.state) == LoadStatus.SUCCEEDED
    assert len(select_all_posts(feed.state)) == 2


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_failed_fetch_is_recorded_not_raised(config: FeedConfig, backend: FakeFeedBackend) -> None:
    backend.fail_endpoints.add("/fakeApi/posts")

    async with FeedClient(config, transport=backend) as client:
        action = await client.fetch_posts()
        assert action is not None and action.error is not None

        assert client.select(select_posts_status) == LoadStatus.REJECTED
        assert client.select(select_posts_error) == "HTTP 500 from /fakeApi/posts: boom"

        backend.fail_endpoints.clear()
        await client.fetch_posts()
        assert client.select(select_posts_status) == LoadStatus.SUCCEEDED


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_exit_aborts_pending_notification_removal(config: FeedConfig, backend: FakeFeedBackend) -> None:
    slow = FeedConfig(base_url=config.base_url, notification_delay=30.0)

    async with FeedClient(slow, transport=backend) as client:
        await client.add_new_post(title="Hi", content="There", user="1")
        feed = client.feed

    # Leaving the context aborted the delayed removal instead of waiting for it.
    assert len(feed.state.notifications.ids) == 1


def test_client_requires_context_manager() -> None:
    client = FeedClient(transport=FakeFeedBackend())
    with pytest.raises(FeedError):
        _ = client.state
