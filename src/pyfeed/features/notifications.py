"""Notifications slice: transient messages shown to the user."""

from __future__ import annotations

from dataclasses import dataclass

from pyfeed.models.notification import Notification, compare_latest_first
from pyfeed.state.actions import Action, ActionCreator
from pyfeed.state.entity import EntityAdapter, EntityState
from pyfeed.state.slice import create_slice

notifications_adapter: EntityAdapter[Notification] = EntityAdapter(sort_comparer=compare_latest_first)


@dataclass(frozen=True)
class NotificationsState(EntityState[Notification]):
    pass


def _shown(state: NotificationsState, action: Action) -> NotificationsState:
    # Re-showing a notification with a known id replaces it.
    return notifications_adapter.set_one(state, Notification.model_validate(action.payload))


def _removed(state: NotificationsState, action: Action) -> NotificationsState:
    return notifications_adapter.remove_one(state, action.payload)


notifications_slice = create_slice(
    name="notifications",
    initial_state=notifications_adapter.get_initial_state(NotificationsState),
    reducers={
        "notification_shown": _shown,
        "notification_removed": _removed,
    },
)

notification_shown: ActionCreator[Notification] = notifications_slice.actions.notification_shown
notification_removed: ActionCreator[str] = notifications_slice.actions.notification_removed

_selectors = notifications_adapter.get_selectors(lambda root: root.notifications)
select_all_notifications = _selectors.select_all
select_notification_by_id = _selectors.select_by_id
