"""LINQ-style lazy sequences: cursors, operators, ordering and casting."""

from lazybatch.enumerable.comparers import (
    to_comparer_safe,
    to_equality_comparer_safe,
    to_predicate_safe,
)
from lazybatch.enumerable.cursors import ArrayCursor, Cursor, IterableCursor, ObjectCursor
from lazybatch.enumerable.factory import (
    as_enumerable,
    create,
    each,
    from_array,
    from_iterable,
    from_object,
    from_range,
    is_enumerable,
    repeat,
    sort,
    sort_desc,
)
from lazybatch.enumerable.ordering import OrderedSequence
from lazybatch.enumerable.sequence import Grouping, ItemContext, Sequence

__all__ = [
    'ArrayCursor', 'Cursor', 'IterableCursor', 'ObjectCursor',
    'Grouping', 'ItemContext', 'OrderedSequence', 'Sequence',
    'as_enumerable', 'create', 'each', 'from_array', 'from_iterable',
    'from_object', 'from_range', 'is_enumerable', 'repeat', 'sort', 'sort_desc',
    'to_comparer_safe', 'to_equality_comparer_safe', 'to_predicate_safe',
]
