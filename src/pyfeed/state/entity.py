"""Normalized entity collections.

An :class:`EntityState` keeps records in an id-indexed mapping plus an
ordered tuple of ids.  The :class:`EntityAdapter` is the only component
that builds new collections: every operation takes a state and returns
a new one (or the *same* object when nothing changed), re-deriving the
id order from the adapter's comparer.

Invariant: ``state.ids`` is always a permutation of
``state.entities.keys()`` with no duplicates.
"""

from __future__ import annotations

import dataclasses
import functools
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from pyfeed.exceptions import DuplicateEntityError
from pyfeed.state.selectors import create_selector

T = TypeVar("T")
S = TypeVar("S", bound="EntityState[Any]")

Comparer = Callable[[Any, Any], int]


def _empty_entities() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class EntityState(Generic[T]):
    """Read-only normalized collection.

    Slice states extend this class with their own scalar fields
    (``status``, ``error``...); adapter operations preserve them.
    """

    ids: tuple[str, ...] = ()
    entities: Mapping[str, T] = field(default_factory=_empty_entities)


def _default_select_id(entity: Any) -> str:
    if isinstance(entity, Mapping):
        return str(entity["id"])
    return str(entity.id)


def _changes_of(entity: Any) -> dict[str, Any]:
    """Return the fields *entity* carries, for a shallow merge."""
    if isinstance(entity, BaseModel):
        return {name: getattr(entity, name) for name in entity.model_fields_set}
    if isinstance(entity, Mapping):
        return dict(entity)
    if dataclasses.is_dataclass(entity):
        return {f.name: getattr(entity, f.name) for f in dataclasses.fields(entity)}
    raise TypeError(f"Unsupported entity type: {type(entity).__name__}")


def _merge(entity: Any, changes: Mapping[str, Any]) -> Any:
    if not changes:
        return entity
    if isinstance(entity, BaseModel):
        return entity.model_copy(update=dict(changes))
    if isinstance(entity, Mapping):
        return {**entity, **changes}
    if dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        return dataclasses.replace(entity, **changes)
    raise TypeError(f"Unsupported entity type: {type(entity).__name__}")


@dataclass(frozen=True)
class EntitySelectors(Generic[T]):
    """Selectors bound to one collection.

    Every selector accepts and ignores extra positional arguments so it
    can be used as an input of a parameterized :func:`create_selector`.
    """

    select_ids: Callable[..., tuple[str, ...]]
    select_entities: Callable[..., Mapping[str, T]]
    select_all: Callable[..., list[T]]
    select_total: Callable[..., int]
    select_by_id: Callable[[Any, str], T | None]


class EntityAdapter(Generic[T]):
    """Pure operations over an :class:`EntityState`.

    Parameters
    ----------
    select_id
        Extract the id of a record. Defaults to ``record.id`` (or
        ``record["id"]`` for mappings).
    sort_comparer
        ``cmp``-style function ``(a, b) -> int``.  Ties, and collections
        without a comparer, are ordered by id so the ordering is total.
    """

    def __init__(
        self,
        *,
        select_id: Callable[[T], str] | None = None,
        sort_comparer: Comparer | None = None,
    ) -> None:
        self._select_id = select_id or _default_select_id
        self._sort_comparer = sort_comparer
        self._sort_key = functools.cmp_to_key(self._compare)

    def select_id(self, entity: T) -> str:
        return self._select_id(entity)

    def _compare(self, left: tuple[str, T], right: tuple[str, T]) -> int:
        if self._sort_comparer is not None:
            result = self._sort_comparer(left[1], right[1])
            if result:
                return result
        return (left[0] > right[0]) - (left[0] < right[0])

    def _sorted_ids(self, entities: Mapping[str, T]) -> tuple[str, ...]:
        return tuple(entity_id for entity_id, _ in sorted(entities.items(), key=self._sort_key))

    def _commit(self, state: S, entities: dict[str, T]) -> S:
        return dataclasses.replace(
            state,
            ids=self._sorted_ids(entities),
            entities=MappingProxyType(entities),
        )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def get_initial_state(self, state_type: type[S] | None = None, **extra: Any) -> S:
        """Return an empty collection of *state_type* with *extra* fields set."""
        cls: Any = state_type or EntityState
        return cls(**extra)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_all(self, state: S, entities: Iterable[T]) -> S:
        """Replace the whole collection."""
        replacement: dict[str, T] = {}
        for entity in entities:
            replacement[self.select_id(entity)] = entity
        return self._commit(state, replacement)

    def add_one(self, state: S, entity: T) -> S:
        """Insert *entity*; raise :class:`DuplicateEntityError` if its id exists."""
        return self.add_many(state, [entity])

    def add_many(self, state: S, entities: Iterable[T]) -> S:
        """Insert every entity, or none of them if any id is already taken."""
        working = dict(state.entities)
        for entity in entities:
            entity_id = self.select_id(entity)
            if entity_id in working:
                raise DuplicateEntityError(entity_id)
            working[entity_id] = entity
        if len(working) == len(state.entities):
            return state
        return self._commit(state, working)

    def set_one(self, state: S, entity: T) -> S:
        """Insert or replace *entity* wholesale."""
        working = dict(state.entities)
        working[self.select_id(entity)] = entity
        return self._commit(state, working)

    def update_one(self, state: S, entity_id: str, changes: Mapping[str, Any]) -> S:
        """Shallow-merge *changes* into an existing record; no-op if absent."""
        existing = state.entities.get(entity_id)
        if existing is None or not changes:
            return state
        updated = _merge(existing, changes)
        working = dict(state.entities)
        new_id = self.select_id(updated)
        if new_id != entity_id:
            del working[entity_id]
        working[new_id] = updated
        return self._commit(state, working)

    def upsert_one(self, state: S, entity: T) -> S:
        """Insert *entity*, or merge its fields into the existing record."""
        return self.upsert_many(state, [entity])

    def upsert_many(self, state: S, entities: Iterable[T]) -> S:
        working = dict(state.entities)
        for entity in entities:
            entity_id = self.select_id(entity)
            existing = working.get(entity_id)
            working[entity_id] = entity if existing is None else _merge(existing, _changes_of(entity))
        return self._commit(state, working)

    def remove_one(self, state: S, entity_id: str) -> S:
        return self.remove_many(state, [entity_id])

    def remove_many(self, state: S, entity_ids: Iterable[str]) -> S:
        """Remove the given ids; unknown ids are ignored."""
        doomed = {entity_id for entity_id in entity_ids if entity_id in state.entities}
        if not doomed:
            return state
        working = {key: value for key, value in state.entities.items() if key not in doomed}
        return self._commit(state, working)

    def remove_all(self, state: S) -> S:
        if not state.ids:
            return state
        return self._commit(state, {})

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    def get_selectors(self, select_state: Callable[[Any], EntityState[T]] | None = None) -> EntitySelectors[T]:
        """Build selectors, optionally bound to a root-state accessor."""
        select = select_state or (lambda state: state)

        def select_ids(state: Any, *_args: Any) -> tuple[str, ...]:
            return select(state).ids

        def select_entities(state: Any, *_args: Any) -> Mapping[str, T]:
            return select(state).entities

        def select_total(state: Any, *_args: Any) -> int:
            return len(select(state).ids)

        def select_by_id(state: Any, entity_id: str) -> T | None:
            return select(state).entities.get(entity_id)

        select_all = create_selector(
            select_ids,
            select_entities,
            combiner=lambda ids, entities: [entities[entity_id] for entity_id in ids],
            name="select_all",
        )

        return EntitySelectors(
            select_ids=select_ids,
            select_entities=select_entities,
            select_all=select_all,
            select_total=select_total,
            select_by_id=select_by_id,
        )
