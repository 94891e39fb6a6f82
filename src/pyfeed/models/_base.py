"""Base model for feed API records.

Every record model inherits from :class:`FeedBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields;
* frozen instances, so a record held in the store can only change by
  being replaced through the entity adapter.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FeedBaseModel(BaseModel):
    """Base for immutable records kept in the store."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class FeedRequestModel(BaseModel):
    """Base for validated consumer input."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
