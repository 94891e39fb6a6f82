"""High-level async client for the feed API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pyfeed._transport import HttpTransport, Transport
from pyfeed.app import FeedStore, RootState, create_store
from pyfeed.config import FeedConfig
from pyfeed.exceptions import FeedError
from pyfeed.features.auth import login, logout
from pyfeed.features.posts import add_new_post, fetch_posts, post_updated, reaction_added
from pyfeed.features.users import fetch_users
from pyfeed.models.post import NewPost, PostUpdate, ReactionAdded, ReactionName
from pyfeed.state.actions import Action
from pyfeed.state.lifecycle import ThunkHandle

_logger = logging.getLogger(__name__)


class FeedClient:
    """Async client owning the HTTP session, the transport and the store.

    Usage::

        async with FeedClient(config) as client:
            await client.login("alice")
            await client.fetch_posts()
            posts = client.select(select_all_posts)

    Async operations return the settled action (``None`` when deduplicated);
    failures are recorded in the store's status/error fields, not raised.
    """

    def __init__(
        self,
        config: FeedConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config or FeedConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._feed: FeedStore | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FeedClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        self._feed = create_store(self._transport, self._config)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._feed is not None:
            # Let dropped requests settle while the session is still open.
            await self._feed.store.join()
            self._feed.listeners.clear_listeners()
            await self._feed.listeners.join()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._feed = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_feed(self) -> FeedStore:
        if self._feed is None:
            raise FeedError("Client not initialized. Use 'async with FeedClient(...) as client:'")
        return self._feed

    async def _run(self, handle: ThunkHandle) -> Action | None:
        action = await handle
        if action is None:
            _logger.debug("Request %s skipped (already in progress or loaded)", handle.request_id)
        return action

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> RootState:
        return self._require_feed().state

    @property
    def feed(self) -> FeedStore:
        return self._require_feed()

    def select(self, selector: Callable[..., Any], *args: Any) -> Any:
        """Run *selector* against the current root state."""
        return selector(self.state, *args)

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self._require_feed().store.subscribe(listener)

    def dispatch(self, action: Any) -> Any:
        return self._require_feed().store.dispatch(action)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def login(self, username: str) -> Action | None:
        return await self._run(self.dispatch(login(username)))

    async def logout(self) -> Action | None:
        return await self._run(self.dispatch(logout()))

    async def fetch_posts(self) -> Action | None:
        return await self._run(self.dispatch(fetch_posts()))

    async def fetch_users(self) -> Action | None:
        return await self._run(self.dispatch(fetch_users()))

    async def add_new_post(self, *, title: str, content: str, user: str) -> Action | None:
        return await self._run(self.dispatch(add_new_post(NewPost(title=title, content=content, user=user))))

    def update_post(self, post_id: str, *, title: str, content: str) -> None:
        self.dispatch(post_updated(PostUpdate(id=post_id, title=title, content=content)))

    def add_reaction(self, post_id: str, reaction: ReactionName | str) -> None:
        self.dispatch(reaction_added(ReactionAdded(post_id=post_id, reaction=ReactionName(reaction))))
