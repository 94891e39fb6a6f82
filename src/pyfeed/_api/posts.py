"""Post endpoints: /fakeApi/posts."""

from __future__ import annotations

from pyfeed._api._common import parse_many, parse_one
from pyfeed._transport import Transport
from pyfeed.models.post import NewPost, Post

POSTS_ENDPOINT = "/fakeApi/posts"


async def fetch_posts(transport: Transport) -> list[Post]:
    response = await transport.get(POSTS_ENDPOINT)
    return parse_many(Post, response, endpoint=POSTS_ENDPOINT)


async def create_post(transport: Transport, new_post: NewPost) -> Post:
    """Create a post; the server assigns the id, date and reactions."""
    response = await transport.post(POSTS_ENDPOINT, new_post.model_dump())
    return parse_one(Post, response, endpoint=POSTS_ENDPOINT)
