"""
Ordering
========

``OrderedSequence`` materializes its source, sorts it by a key selector and
a ``-1/0/1`` comparer, and serves the sorted items.

Secondary keys (``then_by`` and friends) always re-sort the original,
unsorted items with a composed two-level comparer instead of refining the
already sorted view.

Usage:
    >>> people = from_array([{'a': 1, 'b': 2}, {'a': 1, 'b': 1}, {'a': 0, 'b': 5}])
    >>> people.order_by("x => x['a']").then_by("x => x['b']").to_array()
    [{'a': 0, 'b': 5}, {'a': 1, 'b': 1}, {'a': 1, 'b': 2}]
"""

import functools
from typing import Any, Callable, List

from .comparers import to_comparer_safe, to_selector_safe
from .cursors import ArrayCursor
from .sequence import Sequence, from_array

__all__ = ['OrderedSequence']


class OrderedSequence(Sequence):
    """A sorted snapshot of a sequence."""

    def __init__(self, source: Sequence, selector: Any, comparer: Any = None):
        self._order_comparer = to_comparer_safe(comparer)
        self._order_selector = to_selector_safe(selector)
        self._original_items: List[Any] = source.to_array()

        keyed = [(self._order_selector(x), x) for x in self._original_items]
        keyed.sort(key=functools.cmp_to_key(lambda x, y: self._order_comparer(x[0], y[0])))

        super().__init__(ArrayCursor([value for _, value in keyed]))

    @property
    def comparer(self) -> Callable[[Any, Any], int]:
        return self._order_comparer

    @property
    def selector(self) -> Callable[..., Any]:
        return self._order_selector

    def then(self, comparer: Any = None) -> 'OrderedSequence':
        return self.then_by(True, comparer)

    def then_by(self, selector: Any, comparer: Any = None) -> 'OrderedSequence':
        """Add a secondary sort key; ties of the current keys are ordered by it."""
        secondary_comparer = to_comparer_safe(comparer)
        secondary_selector = to_selector_safe(selector)
        primary_selector = self._order_selector
        primary_comparer = self._order_comparer

        def levels(x):
            return primary_selector(x), secondary_selector(x)

        def compare(x, y):
            result = primary_comparer(x[0], y[0])
            if result != 0:
                return result
            return secondary_comparer(x[1], y[1])

        return OrderedSequence(from_array(self._original_items), levels, compare)

    def then_by_descending(self, selector: Any, comparer: Any = None) -> 'OrderedSequence':
        c = to_comparer_safe(comparer)
        return self.then_by(selector, lambda x, y: c(y, x))

    def then_descending(self, comparer: Any = None) -> 'OrderedSequence':
        return self.then_by_descending(True, comparer)

    def __repr__(self):
        return f"OrderedSequence(items={len(self._original_items)})"
