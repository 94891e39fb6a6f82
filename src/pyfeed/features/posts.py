"""Posts slice: the normalized post collection and its fetch lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from pyfeed._api import posts as _posts_api
from pyfeed.features.auth import logout
from pyfeed.features.notifications import notification_removed, notification_shown
from pyfeed.models.notification import Notification, NotificationVariant
from pyfeed.models.post import NewPost, Post, PostUpdate, ReactionAdded, compare_newest_first
from pyfeed.state.actions import Action, ActionCreator
from pyfeed.state.entity import EntityAdapter, EntityState
from pyfeed.state.lifecycle import AsyncThunk, LoadStatus, ThunkApi
from pyfeed.state.listener import ListenerApi, ListenerMiddleware
from pyfeed.state.selectors import create_selector
from pyfeed.state.slice import AsyncThunkSpec, create_slice

_logger = logging.getLogger(__name__)

POST_ADDED_NOTIFICATION_ID = "post-added"

posts_adapter: EntityAdapter[Post] = EntityAdapter(sort_comparer=compare_newest_first)


@dataclass(frozen=True)
class PostsState(EntityState[Post]):
    status: LoadStatus = LoadStatus.IDLE
    error: str | None = None


initial_state: PostsState = posts_adapter.get_initial_state(PostsState)


# ----------------------------------------------------------------------
# Synchronous reducers
# ----------------------------------------------------------------------


def _post_updated(state: PostsState, action: Action) -> PostsState:
    update = PostUpdate.model_validate(action.payload)
    return posts_adapter.update_one(state, update.id, {"title": update.title, "content": update.content})


def _reaction_added(state: PostsState, action: Action) -> PostsState:
    request = ReactionAdded.model_validate(action.payload)
    post = state.entities.get(request.post_id)
    if post is None:
        # The post may have been evicted by a refresh; nothing to count.
        return state
    return posts_adapter.update_one(state, post.id, {"reactions": post.reactions.incremented(request.reaction)})


# ----------------------------------------------------------------------
# Async operations
# ----------------------------------------------------------------------


def _should_fetch_posts(_arg: Any, api: ThunkApi) -> bool:
    status = api.get_state().posts.status
    return status not in (LoadStatus.PENDING, LoadStatus.SUCCEEDED)


async def _fetch_posts(_arg: Any, api: ThunkApi) -> list[Post]:
    return await _posts_api.fetch_posts(api.extra)


def _fetch_pending(state: PostsState, action: Action) -> PostsState:
    return replace(state, status=LoadStatus.PENDING)


def _fetch_fulfilled(state: PostsState, action: Action) -> PostsState:
    return posts_adapter.set_all(replace(state, status=LoadStatus.SUCCEEDED, error=None), action.payload)


def _fetch_rejected(state: PostsState, action: Action) -> PostsState:
    return replace(state, status=LoadStatus.REJECTED, error=action.error.message)


async def _add_new_post(new_post: NewPost, api: ThunkApi) -> Post:
    return await _posts_api.create_post(api.extra, NewPost.model_validate(new_post))


def _post_added(state: PostsState, action: Action) -> PostsState:
    return posts_adapter.add_one(state, action.payload)


def _reset(state: PostsState, action: Action) -> PostsState:
    return initial_state


posts_slice = create_slice(
    name="posts",
    initial_state=initial_state,
    reducers={
        "post_updated": _post_updated,
        "reaction_added": _reaction_added,
    },
    thunks={
        "fetch_posts": AsyncThunkSpec(
            payload_creator=_fetch_posts,
            condition=_should_fetch_posts,
            pending=_fetch_pending,
            fulfilled=_fetch_fulfilled,
            rejected=_fetch_rejected,
        ),
        "add_new_post": AsyncThunkSpec(payload_creator=_add_new_post, fulfilled=_post_added),
    },
    # Clear out the posts whenever the user logs out.
    extra_cases=[(logout.fulfilled, _reset)],
    selectors={
        "select_posts_status": lambda state: state.status,
        "select_posts_error": lambda state: state.error,
    },
)

post_updated: ActionCreator[PostUpdate] = posts_slice.actions.post_updated
reaction_added: ActionCreator[ReactionAdded] = posts_slice.actions.reaction_added
fetch_posts: AsyncThunk[None, list[Post]] = posts_slice.actions.fetch_posts
add_new_post: AsyncThunk[NewPost, Post] = posts_slice.actions.add_new_post


# ----------------------------------------------------------------------
# Selectors
# ----------------------------------------------------------------------

_local = posts_slice.get_selectors(lambda root: root.posts)
select_posts_status = _local.select_posts_status
select_posts_error = _local.select_posts_error

_entity = posts_adapter.get_selectors(lambda root: root.posts)
select_all_posts = _entity.select_all
select_post_by_id = _entity.select_by_id
select_post_ids = _entity.select_ids

select_posts_by_user = create_selector(
    select_all_posts,
    lambda _state, user_id: user_id,
    combiner=lambda posts, user_id: [post for post in posts if post.user == user_id],
    cache_size=32,
    name="select_posts_by_user",
)


# ----------------------------------------------------------------------
# Listeners
# ----------------------------------------------------------------------


def add_posts_listeners(listeners: ListenerMiddleware, *, notification_delay: float) -> Callable[[], None]:
    """Show a "New post added!" notification and remove it after a delay.

    A newer added post restarts the timer: the earlier run is aborted
    and the notification, which shares one id, is replaced.
    """

    async def show_post_added(action: Action, api: ListenerApi) -> None:
        api.dispatch(
            notification_shown(
                Notification(
                    id=POST_ADDED_NOTIFICATION_ID,
                    message="New post added!",
                    variant=NotificationVariant.SUCCESS,
                )
            )
        )
        await api.delay(notification_delay)
        _logger.debug("Removing notification %s", POST_ADDED_NOTIFICATION_ID)
        api.dispatch(notification_removed(POST_ADDED_NOTIFICATION_ID))

    return listeners.start_listening(actor=add_new_post.fulfilled, effect=show_post_added, cancel_active=True)
