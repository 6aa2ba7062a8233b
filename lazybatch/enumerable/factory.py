"""
Sequence Factory
================

Module-level entry points for building sequences and short-hands for the
most common one-off queries.

Usage:
    >>> from_range(1, 3).to_array()
    [1, 2, 3]
    >>> from_range(0, 3, 5).to_array()
    [0, 5, 10]
    >>> sort([3, 1, 2]).to_array()
    [1, 2, 3]
"""

from typing import Any

from ..compiler.lambda_compiler import as_func, fit_arguments
from .ordering import OrderedSequence
from .sequence import (
    Sequence,
    as_enumerable,
    from_array,
    from_iterable,
    from_object,
    is_enumerable,
)

__all__ = [
    'as_enumerable', 'create', 'each', 'from_array', 'from_iterable',
    'from_object', 'from_range', 'is_enumerable', 'repeat', 'sort', 'sort_desc',
]


def create(*items) -> Sequence:
    """Sequence over the given arguments."""
    return from_array(list(items))


def from_range(start: Any, count: int, incrementor: Any = 1) -> Sequence:
    """
    ``count`` values beginning with ``start``.

    ``incrementor`` is either a step added to the previous value or a
    function ``f(value, info)`` returning the next one, where ``info`` holds
    ``remaining_count``, ``start_value`` and ``total_count``.
    """
    func = as_func(incrementor, throw_on_invalid=False)
    if callable(func):
        step = fit_arguments(func, default_arity=1)
    else:
        step = lambda value, info: value + incrementor

    values = []
    value = start
    remaining = count
    while remaining > 0:
        values.append(value)
        value = step(value, {
            'remaining_count': remaining,
            'start_value': start,
            'total_count': count,
        })
        remaining -= 1
    return from_array(values)


def repeat(value: Any, count: int) -> Sequence:
    return from_array([value] * max(count, 0))


def each(items: Any, action: Any) -> Any:
    """``as_enumerable(items).each(action)``"""
    return as_enumerable(items).each(action)


def sort(items: Any, comparer: Any = None, selector: Any = None) -> OrderedSequence:
    """``as_enumerable(items).order_by(selector, comparer)``"""
    return as_enumerable(items).order_by(selector, comparer)


def sort_desc(items: Any, comparer: Any = None, selector: Any = None) -> OrderedSequence:
    """``as_enumerable(items).order_by_descending(selector, comparer)``"""
    return as_enumerable(items).order_by_descending(selector, comparer)
