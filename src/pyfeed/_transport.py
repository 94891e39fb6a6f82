"""HTTP transport for the feed API."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from pyfeed.config import FeedConfig
from pyfeed.exceptions import FeedTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get(self, path: str) -> Any: ...

    async def post(self, path: str, body: Any) -> Any: ...


class HttpTransport:
    """JSON-over-HTTP transport backed by an ``aiohttp.ClientSession``."""

    def __init__(self, config: FeedConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get(self, path: str) -> Any:
        return await self._request("GET", path)

    async def post(self, path: str, body: Any) -> Any:
        return await self._request("POST", path, body)

    async def _request(self, method: str, path: str, body: Any = None) -> Any:
        url = f"{self._config.base_url}{path}"
        headers = {"accept": "application/json"}
        data: str | None = None
        if body is not None:
            headers["content-type"] = "application/json; charset=UTF-8"
            data = json.dumps(body, separators=(",", ":"))

        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(method, url, data=data, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status < 200 or resp.status >= 300:
                    raise FeedTransportError(
                        f"HTTP {resp.status} from {path}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=path,
                    )
        except FeedTransportError:
            raise
        except TimeoutError as exc:
            raise FeedTransportError(f"Request to {path} timed out", endpoint=path) from exc
        except aiohttp.ClientError as exc:
            raise FeedTransportError(
                f"Request to {path} failed: {exc}",
                endpoint=path,
            ) from exc

        if not text.strip():
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise FeedTransportError(
                f"Invalid JSON from {path}: {text[:200]}",
                endpoint=path,
            ) from exc
