"""Transient notification model."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import Field

from pyfeed.models._base import FeedBaseModel


class NotificationVariant(StrEnum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(FeedBaseModel):
    """A toast-style message shown to the user until removed."""

    id: str
    message: str
    variant: NotificationVariant = NotificationVariant.INFO
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


def compare_latest_first(left: Notification, right: Notification) -> int:
    return (left.created_at < right.created_at) - (left.created_at > right.created_at)
