"""Post and reaction models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, Field, NonNegativeInt, field_validator

from pyfeed.models._base import FeedBaseModel, FeedRequestModel


class ReactionName(StrEnum):
    """The fixed set of reactions a post can receive (wire names)."""

    THUMBS_UP = "thumbsUp"
    TADA = "tada"
    HEART = "heart"
    ROCKET = "rocket"
    EYES = "eyes"


class Reactions(FeedBaseModel):
    """Per-reaction counters of a post."""

    thumbs_up: NonNegativeInt = 0
    tada: NonNegativeInt = 0
    heart: NonNegativeInt = 0
    rocket: NonNegativeInt = 0
    eyes: NonNegativeInt = 0

    def count(self, reaction: ReactionName) -> int:
        return int(getattr(self, _FIELD_BY_REACTION[ReactionName(reaction)]))

    def incremented(self, reaction: ReactionName) -> Reactions:
        """Return a copy with *reaction* counted once more."""
        name = _FIELD_BY_REACTION[ReactionName(reaction)]
        return self.model_copy(update={name: getattr(self, name) + 1})


_FIELD_BY_REACTION: dict[ReactionName, str] = {
    ReactionName.THUMBS_UP: "thumbs_up",
    ReactionName.TADA: "tada",
    ReactionName.HEART: "heart",
    ReactionName.ROCKET: "rocket",
    ReactionName.EYES: "eyes",
}


class Post(FeedBaseModel):
    """A post in the feed.

    ``user`` holds the author's user id and ``date`` the ISO-8601
    creation timestamp, matching the API payload keys.
    """

    id: str
    title: str
    content: str = ""
    user: str = Field(default="", validation_alias=AliasChoices("user", "authorId", "author_id"))
    """Author user id."""
    date: str = Field(default="", validation_alias=AliasChoices("date", "createdAt", "created_at"))
    """ISO-8601 creation timestamp."""
    reactions: Reactions = Field(default_factory=Reactions)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # Some backends send numeric ids.
        if isinstance(value, int):
            return str(value)
        return value


def compare_newest_first(left: Post, right: Post) -> int:
    """``cmp``-style comparer ordering posts by descending ``date``."""
    return (left.date < right.date) - (left.date > right.date)


class NewPost(FeedRequestModel):
    """Payload for creating a post."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    user: str = Field(min_length=1)


class PostUpdate(FeedRequestModel):
    """Edit of an existing post's text."""

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)


class ReactionAdded(FeedRequestModel):
    """A reaction click on a post."""

    post_id: str = Field(min_length=1)
    reaction: ReactionName
