"""Memoized derived selectors.

A :class:`MemoizedSelector` is composed of input selectors and a
combiner.  On each call every input selector runs against
``(state, *args)``; the combiner only runs again when at least one
input result changed since a cached call.  Containers are compared by
identity (state snapshots are immutable, so identity is equality),
scalars such as ids and status strings by value.

``cache_size`` bounds how many distinct input combinations are kept.
The default of 1 mirrors the common "last call" memoization; a larger
value keeps one entry per argument, e.g. per user id in a
"posts by user" selector.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any

_logger = logging.getLogger(__name__)

_SCALARS = (str, int, float, bool, bytes, type(None))

Selector = Callable[..., Any]


def _same(left: Any, right: Any) -> bool:
    if left is right:
        return True
    if isinstance(left, _SCALARS) and type(left) is type(right):
        return bool(left == right)
    return False


def _input_key(values: tuple[Any, ...]) -> Hashable:
    parts: list[Hashable] = []
    for value in values:
        if isinstance(value, _SCALARS):
            parts.append((type(value), value))
        else:
            parts.append(id(value))
    return tuple(parts)


class MemoizedSelector:
    """Selector whose combiner only re-runs when its inputs change."""

    def __init__(
        self,
        input_selectors: tuple[Selector, ...],
        combiner: Callable[..., Any],
        *,
        cache_size: int = 1,
        name: str | None = None,
    ) -> None:
        if not input_selectors:
            raise ValueError("create_selector needs at least one input selector")
        if cache_size < 1:
            raise ValueError("cache_size must be >= 1")
        self._inputs = input_selectors
        self._combiner = combiner
        self._cache_size = cache_size
        # key -> (input values, result); input values are kept so ids stay valid.
        self._cache: OrderedDict[Hashable, tuple[tuple[Any, ...], Any]] = OrderedDict()
        self._recomputations = 0
        self.__name__ = name or getattr(combiner, "__name__", "selector")

    @property
    def recomputations(self) -> int:
        """How many times the combiner has run."""
        return self._recomputations

    def reset_recomputations(self) -> None:
        self._recomputations = 0

    def clear_cache(self) -> None:
        self._cache.clear()

    def __call__(self, state: Any, *args: Any) -> Any:
        values = tuple(select(state, *args) for select in self._inputs)
        key = _input_key(values)
        cached = self._cache.get(key)
        if cached is not None:
            cached_values, result = cached
            if all(_same(a, b) for a, b in zip(cached_values, values, strict=True)):
                self._cache.move_to_end(key)
                return result

        result = self._combiner(*values)
        self._recomputations += 1
        self._cache[key] = (values, result)
        self._cache.move_to_end(key)
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)
        _logger.debug("Selector %s recomputed (%d)", self.__name__, self._recomputations)
        return result

    def __repr__(self) -> str:
        return f"MemoizedSelector({self.__name__!r}, cache_size={self._cache_size})"


def create_selector(
    *input_selectors: Selector,
    combiner: Callable[..., Any],
    cache_size: int = 1,
    name: str | None = None,
) -> MemoizedSelector:
    """Compose *input_selectors* into a memoized selector.

    Example::

        select_posts_by_user = create_selector(
            select_all_posts,
            lambda state, user_id: user_id,
            combiner=lambda posts, user_id: [p for p in posts if p.user == user_id],
            cache_size=16,
        )
    """
    return MemoizedSelector(input_selectors, combiner, cache_size=cache_size, name=name)
