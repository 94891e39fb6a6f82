"""Data models for feed records and requests."""

from pyfeed.models._base import FeedBaseModel, FeedRequestModel
from pyfeed.models.notification import Notification, NotificationVariant
from pyfeed.models.post import (
    NewPost,
    Post,
    PostUpdate,
    ReactionAdded,
    ReactionName,
    Reactions,
)
from pyfeed.models.user import LoginRequest, User

__all__ = [
    "FeedBaseModel",
    "FeedRequestModel",
    "LoginRequest",
    "NewPost",
    "Notification",
    "NotificationVariant",
    "Post",
    "PostUpdate",
    "ReactionAdded",
    "ReactionName",
    "Reactions",
    "User",
]
