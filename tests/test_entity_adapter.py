from __future__ import annotations

import random
from dataclasses import dataclass

import pytest

from pyfeed.exceptions import DuplicateEntityError
from pyfeed.features.posts import PostsState, posts_adapter
from pyfeed.models.post import Post, compare_newest_first
from pyfeed.state.entity import EntityAdapter, EntityState
from pyfeed.state.lifecycle import LoadStatus


def _post(post_id: str, date: str, *, title: str | None = None, user: str = "0") -> Post:
    return Post(id=post_id, title=title or f"Post {post_id}", content="body", user=user, date=date)


def _assert_consistent(state: EntityState[Post]) -> None:
    assert len(set(state.ids)) == len(state.ids)
    assert sorted(state.ids) == sorted(state.entities)


# ------------------------------------------------------------------
# Ordering
# ------------------------------------------------------------------


def test_ids_are_ordered_by_descending_date() -> None:
    state = posts_adapter.get_initial_state()
    state = posts_adapter.add_one(state, _post("jan", "2024-01-01"))
    state = posts_adapter.add_one(state, _post("mar", "2024-03-01"))
    state = posts_adapter.add_one(state, _post("feb", "2024-02-01"))

    assert state.ids == ("mar", "feb", "jan")


def test_ties_are_broken_by_id() -> None:
    state = posts_adapter.set_all(
        posts_adapter.get_initial_state(),
        [_post("b", "2024-01-01"), _post("c", "2024-01-01"), _post("a", "2024-01-01")],
    )
    assert state.ids == ("a", "b", "c")


def test_without_comparer_ids_are_ordered_by_id_not_insertion() -> None:
    adapter: EntityAdapter[Post] = EntityAdapter()
    state = adapter.get_initial_state()
    for post_id in ("2", "0", "1"):
        state = adapter.add_one(state, _post(post_id, "2024-01-01"))
    assert state.ids == ("0", "1", "2")


def test_update_reorders_when_sort_field_changes() -> None:
    state = posts_adapter.set_all(
        posts_adapter.get_initial_state(),
        [_post("a", "2024-01-01"), _post("b", "2024-02-01")],
    )
    state = posts_adapter.update_one(state, "a", {"date": "2024-05-01"})
    assert state.ids == ("a", "b")


# ------------------------------------------------------------------
# Mutations
# ------------------------------------------------------------------


def test_set_all_is_idempotent() -> None:
    posts = [_post("1", "2024-01-01"), _post("2", "2024-02-01")]
    once = posts_adapter.set_all(posts_adapter.get_initial_state(), posts)
    twice = posts_adapter.set_all(once, posts)
    assert once == twice


def test_set_all_replaces_previous_records() -> None:
    state = posts_adapter.set_all(posts_adapter.get_initial_state(), [_post("1", "2024-01-01")])
    state = posts_adapter.set_all(state, [_post("2", "2024-01-02")])
    assert state.ids == ("2",)
    assert "1" not in state.entities


def test_add_one_rejects_duplicate_id() -> None:
    state = posts_adapter.add_one(posts_adapter.get_initial_state(), _post("1", "2024-01-01"))

    with pytest.raises(DuplicateEntityError) as info:
        posts_adapter.add_one(state, _post("1", "2024-06-01", title="other"))

    assert info.value.entity_id == "1"
    assert state.entities["1"].title == "Post 1"


def test_add_many_is_atomic() -> None:
    state = posts_adapter.add_one(posts_adapter.get_initial_state(), _post("1", "2024-01-01"))

    with pytest.raises(DuplicateEntityError):
        posts_adapter.add_many(state, [_post("2", "2024-01-02"), _post("1", "2024-01-03")])

    assert state.ids == ("1",)


def test_update_one_merges_changes() -> None:
    state = posts_adapter.add_one(posts_adapter.get_initial_state(), _post("1", "2024-01-01"))
    updated = posts_adapter.update_one(state, "1", {"title": "Edited"})

    assert updated.entities["1"].title == "Edited"
    assert updated.entities["1"].content == "body"
    assert state.entities["1"].title == "Post 1"


def test_update_one_missing_id_returns_same_state() -> None:
    state = posts_adapter.add_one(posts_adapter.get_initial_state(), _post("1", "2024-01-01"))
    assert posts_adapter.update_one(state, "missing", {"title": "x"}) is state


def test_upsert_inserts_then_merges() -> None:
    state = posts_adapter.upsert_one(posts_adapter.get_initial_state(), _post("1", "2024-01-01"))
    state = posts_adapter.upsert_one(state, Post(id="1", title="Merged"))

    post = state.entities["1"]
    assert post.title == "Merged"
    # Fields the incoming record did not set are kept.
    assert post.date == "2024-01-01"


def test_set_one_replaces_wholesale() -> None:
    state = posts_adapter.add_one(posts_adapter.get_initial_state(), _post("1", "2024-01-01"))
    state = posts_adapter.set_one(state, Post(id="1", title="Fresh"))
    assert state.entities["1"].date == ""


def test_remove_one_reindexes_and_ignores_unknown() -> None:
    state = posts_adapter.set_all(
        posts_adapter.get_initial_state(),
        [_post("1", "2024-01-01"), _post("2", "2024-01-02")],
    )
    removed = posts_adapter.remove_one(state, "2")
    assert removed.ids == ("1",)
    assert posts_adapter.remove_one(removed, "nope") is removed
    assert posts_adapter.remove_all(removed).ids == ()


def test_extra_state_fields_survive_operations() -> None:
    state = posts_adapter.get_initial_state(PostsState, status=LoadStatus.SUCCEEDED)
    state = posts_adapter.add_one(state, _post("1", "2024-01-01"))

    assert isinstance(state, PostsState)
    assert state.status == LoadStatus.SUCCEEDED
    assert state.error is None


def test_entities_view_is_read_only() -> None:
    state = posts_adapter.add_one(posts_adapter.get_initial_state(), _post("1", "2024-01-01"))
    with pytest.raises(TypeError):
        state.entities["2"] = _post("2", "2024-01-01")  # type: ignore[index]


def test_plain_mapping_records_are_supported() -> None:
    adapter: EntityAdapter[dict[str, str]] = EntityAdapter(select_id=lambda record: record["key"])
    state = adapter.add_one(adapter.get_initial_state(), {"key": "k1", "value": "a"})
    state = adapter.update_one(state, "k1", {"value": "b"})
    assert state.entities["k1"] == {"key": "k1", "value": "b"}


def test_dataclass_records_are_supported() -> None:
    @dataclass(frozen=True)
    class Tag:
        id: str
        label: str

    adapter: EntityAdapter[Tag] = EntityAdapter()
    state = adapter.upsert_one(adapter.get_initial_state(), Tag(id="t", label="one"))
    state = adapter.upsert_one(state, Tag(id="t", label="two"))
    assert state.entities["t"].label == "two"


def test_ids_always_match_entities_over_random_operations() -> None:
    rng = random.Random(1234)
    state = posts_adapter.get_initial_state()

    for _ in range(500):
        post_id = str(rng.randrange(15))
        date = f"2024-01-{rng.randrange(1, 28):02d}"
        op = rng.choice(["add", "set_one", "upsert", "update", "remove", "set_all"])
        if op == "add":
            try:
                state = posts_adapter.add_one(state, _post(post_id, date))
            except DuplicateEntityError:
                assert post_id in state.entities
        elif op == "set_one":
            state = posts_adapter.set_one(state, _post(post_id, date))
        elif op == "upsert":
            state = posts_adapter.upsert_one(state, _post(post_id, date))
        elif op == "update":
            state = posts_adapter.update_one(state, post_id, {"date": date})
        elif op == "remove":
            state = posts_adapter.remove_one(state, post_id)
        else:
            count = rng.randrange(5)
            state = posts_adapter.set_all(
                state, [_post(str(rng.randrange(15)), date) for _ in range(count)]
            )

        _assert_consistent(state)
        expected = sorted(state.entities.values(), key=lambda post: post.id)
        expected.sort(key=lambda post: post.date, reverse=True)
        assert list(state.ids) == [post.id for post in expected]


# ------------------------------------------------------------------
# Selectors
# ------------------------------------------------------------------


def test_selectors_expose_list_lookup_and_total() -> None:
    selectors = posts_adapter.get_selectors()
    state = posts_adapter.set_all(
        posts_adapter.get_initial_state(),
        [_post("1", "2024-01-01"), _post("2", "2024-02-01")],
    )

    assert [post.id for post in selectors.select_all(state)] == ["2", "1"]
    assert selectors.select_ids(state) == ("2", "1")
    assert selectors.select_total(state) == 2
    assert selectors.select_by_id(state, "1") is state.entities["1"]
    assert selectors.select_by_id(state, "missing") is None


def test_select_all_is_memoized_on_collection_identity() -> None:
    selectors = posts_adapter.get_selectors()
    state = posts_adapter.set_all(posts_adapter.get_initial_state(), [_post("1", "2024-01-01")])

    first = selectors.select_all(state)
    assert selectors.select_all(state) is first

    changed = posts_adapter.update_one(state, "1", {"title": "x"})
    assert selectors.select_all(changed) is not first


def test_compare_newest_first_is_antisymmetric() -> None:
    older = _post("1", "2024-01-01")
    newer = _post("2", "2024-02-01")
    assert compare_newest_first(newer, older) < 0
    assert compare_newest_first(older, newer) > 0
    assert compare_newest_first(older, older) == 0
