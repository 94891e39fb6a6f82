"""Client configuration for pyfeed."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyfeed.exceptions import FeedConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, value: str) -> float:
    try:
        result = float(value)
    except ValueError as exc:
        raise FeedConfigError(f"{name} must be a number, got {value!r}") from exc
    if result < 0:
        raise FeedConfigError(f"{name} must be non-negative, got {value!r}")
    return result


@dataclasses.dataclass(frozen=True)
class FeedConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Base URL of the feed API (the ``/fakeApi/...`` paths are
        appended to it).
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    notification_delay : float
        Seconds a transient notification stays visible before the
        listener removes it.
    log_actions : bool
        Install the action logging middleware (debug level).
    """

    base_url: str = "http://localhost:3000"
    request_timeout: float = 10.0
    notification_delay: float = 5.0
    log_actions: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> FeedConfig:
        """Create configuration from ``FEED_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        FeedConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("FEED_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")

        timeout_env = env.get("FEED_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_float("FEED_REQUEST_TIMEOUT", timeout_env)

        delay_env = env.get("FEED_NOTIFICATION_DELAY")
        if delay_env is not None and "notification_delay" not in overrides:
            config_kwargs["notification_delay"] = _env_float("FEED_NOTIFICATION_DELAY", delay_env)

        if "log_actions" not in overrides:
            config_kwargs["log_actions"] = _env_bool(env.get("FEED_LOG_ACTIONS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
