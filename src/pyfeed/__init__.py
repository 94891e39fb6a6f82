"""pyfeed - Async normalized state store for a social feed API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfeed")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfeed.app import FeedStore, RootState, create_store
from pyfeed.client import FeedClient
from pyfeed.config import FeedConfig
from pyfeed.exceptions import (
    DuplicateEntityError,
    FeedApiError,
    FeedConfigError,
    FeedError,
    FeedTransportError,
    StoreError,
    TaskAbortError,
    ThunkRejectedError,
)
from pyfeed.models import (
    NewPost,
    Notification,
    NotificationVariant,
    Post,
    PostUpdate,
    ReactionAdded,
    ReactionName,
    Reactions,
    User,
)
from pyfeed.state.actions import Action, ActionCreator
from pyfeed.state.entity import EntityAdapter, EntityState
from pyfeed.state.lifecycle import AsyncThunk, LoadStatus, create_async_thunk
from pyfeed.state.listener import ListenerMiddleware
from pyfeed.state.selectors import create_selector
from pyfeed.state.slice import AsyncThunkSpec, create_slice
from pyfeed.state.store import Store, configure_store

__all__ = [
    "__version__",
    "Action",
    "ActionCreator",
    "AsyncThunk",
    "AsyncThunkSpec",
    "DuplicateEntityError",
    "EntityAdapter",
    "EntityState",
    "FeedApiError",
    "FeedClient",
    "FeedConfig",
    "FeedConfigError",
    "FeedError",
    "FeedStore",
    "FeedTransportError",
    "ListenerMiddleware",
    "LoadStatus",
    "NewPost",
    "Notification",
    "NotificationVariant",
    "Post",
    "PostUpdate",
    "ReactionAdded",
    "ReactionName",
    "Reactions",
    "RootState",
    "Store",
    "StoreError",
    "TaskAbortError",
    "ThunkRejectedError",
    "User",
    "configure_store",
    "create_async_thunk",
    "create_selector",
    "create_slice",
    "create_store",
]
