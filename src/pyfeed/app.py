"""Store wiring: the root state shape and the store factory.

The store is an explicit object built by :func:`create_store` and handed
to whoever needs it; nothing here is a module-level singleton.
"""

from __future__ import annotations

from dataclasses import dataclass

from pyfeed._transport import Transport
from pyfeed.config import FeedConfig
from pyfeed.features.auth import AuthState, auth_slice
from pyfeed.features.notifications import NotificationsState, notifications_slice
from pyfeed.features.posts import PostsState, add_posts_listeners, posts_slice
from pyfeed.features.users import UsersState, users_slice
from pyfeed.state.listener import ListenerMiddleware
from pyfeed.state.store import Middleware, Store, configure_store, logging_middleware


@dataclass(frozen=True)
class RootState:
    auth: AuthState
    posts: PostsState
    users: UsersState
    notifications: NotificationsState


@dataclass(frozen=True)
class FeedStore:
    """The store together with the listener middleware feeding it."""

    store: Store
    listeners: ListenerMiddleware
    config: FeedConfig

    @property
    def state(self) -> RootState:
        state: RootState = self.store.get_state()
        return state


def create_store(transport: Transport, config: FeedConfig | None = None) -> FeedStore:
    """Build the feed store; *transport* is handed to every async operation."""
    config = config or FeedConfig()
    listeners = ListenerMiddleware()

    middleware: list[Middleware] = [listeners]
    if config.log_actions:
        middleware.insert(0, logging_middleware)

    store = configure_store(
        {
            "auth": auth_slice.reducer,
            "posts": posts_slice.reducer,
            "users": users_slice.reducer,
            "notifications": notifications_slice.reducer,
        },
        state_type=RootState,
        middleware=middleware,
        extra=transport,
    )
    add_posts_listeners(listeners, notification_delay=config.notification_delay)
    return FeedStore(store=store, listeners=listeners, config=config)
