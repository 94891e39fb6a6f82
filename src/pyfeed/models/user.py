"""User model."""

from __future__ import annotations

from pydantic import Field, field_validator

from pyfeed.models._base import FeedBaseModel, FeedRequestModel


class User(FeedBaseModel):
    id: str
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value


class LoginRequest(FeedRequestModel):
    username: str = Field(min_length=1)
