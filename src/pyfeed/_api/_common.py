"""Shared response parsing helpers for endpoint modules."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from pyfeed.exceptions import FeedApiError

M = TypeVar("M", bound=BaseModel)


def unwrap_data(response: Any) -> Any:
    """Return ``response["data"]`` for enveloped payloads, else the response itself."""
    if isinstance(response, dict) and set(response) == {"data"}:
        return response["data"]
    return response


def parse_one(model: type[M], response: Any, *, endpoint: str) -> M:
    data = unwrap_data(response)
    if not isinstance(data, dict):
        raise FeedApiError(f"Expected an object from {endpoint}, got {type(data).__name__}", endpoint=endpoint)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise FeedApiError(f"Invalid {model.__name__} from {endpoint}: {exc}", endpoint=endpoint) from exc


def parse_many(model: type[M], response: Any, *, endpoint: str) -> list[M]:
    data = unwrap_data(response)
    if not isinstance(data, list):
        raise FeedApiError(f"Expected a list from {endpoint}, got {type(data).__name__}", endpoint=endpoint)
    try:
        return [model.model_validate(item) for item in data]
    except ValidationError as exc:
        raise FeedApiError(f"Invalid {model.__name__} list from {endpoint}: {exc}", endpoint=endpoint) from exc
