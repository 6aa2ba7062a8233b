"""
Sequence
========

One concrete, pull-based sequence type over a pluggable ``Cursor``.

``select`` (and ``cast``, which builds on it) is the only deferred operator:
it attaches a projection and returns the same instance. Every other operator
drains the cursor with ``move_next`` and returns a new array-backed sequence
or a terminal value. Sequences are therefore single-pass; array and object
backed ones can be rewound with ``reset()``.

Item callbacks are called as ``f(item, index, ctx)``. Python callables that
take fewer parameters only receive the leading ones, and any callback may be
a lambda string such as ``"x => x * 2"``. Setting ``ctx.cancel = True`` stops
the iteration after the current item.

Usage:
    >>> seq = from_array([3, 1, 2, 3])
    >>> seq.where("x => x > 1").distinct().to_array()
    [3, 2]
"""

from collections import abc
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..compiler.lambda_compiler import as_callback, as_func, fit_arguments
from ..data.observable import Observable, ObservableList
from ..errors import EmptySequence, InvalidSequenceSource, MultipleMatches
from .casting import get_converter, get_type_check
from .comparers import (
    to_comparer_safe,
    to_equality_comparer_safe,
    to_predicate_safe,
)
from .cursors import ArrayCursor, Cursor, IterableCursor, ObjectCursor

_UNSET = object()


@dataclass
class ItemContext:
    """Per-item state handed to callbacks as third argument."""
    sequence: 'Sequence'
    index: int
    item: Any
    key: Any
    cancel: bool = False


def _match_all(*args) -> bool:
    return True


def _or_default_args(predicate_or_default: Any, default_value: Any):
    """
    Resolve the arguments of the ``*_or_default`` operators.

    With a single argument, a callable (or a valid lambda string) is the
    predicate and anything else is the default value.
    """
    if predicate_or_default is _UNSET:
        return _match_all, None

    if default_value is _UNSET:
        func = as_func(predicate_or_default, throw_on_invalid=False)
        if callable(func):
            return fit_arguments(func), None
        return _match_all, predicate_or_default

    return to_predicate_safe(predicate_or_default), default_value


class Sequence:
    """
    A sequence of items read through a cursor.

    Usage:
        >>> seq = from_array([1, 2, 3]).select("x => x * 10")
        >>> seq.move_next(), seq.current
        (True, 10)
    """

    def __init__(self, cursor: Cursor):
        self._cursor = cursor
        self._selector: Optional[Callable] = None
        self._position = -1

    # ---- Cursor primitives ----

    def move_next(self) -> bool:
        """Advance one element; False (without side effects) once exhausted."""
        if self._cursor.move_next():
            self._position += 1
            return True
        return False

    @property
    def current(self) -> Any:
        """The current element, passed through the active projection."""
        if self._position < 0:
            return None
        raw = self._cursor.current
        if self._selector is None:
            return raw
        ctx = ItemContext(self, self._position, raw, self._cursor.key)
        return self._selector(raw, self._position, ctx)

    @property
    def is_valid(self) -> bool:
        """Whether a further element is available."""
        return self._cursor.is_valid

    @property
    def item_key(self) -> Any:
        """Index or property name of the current element."""
        return self._cursor.key

    def reset(self) -> 'Sequence':
        self._cursor.reset()
        self._position = -1
        return self

    def _contexts(self) -> Iterator[ItemContext]:
        index = -1
        while self.move_next():
            index += 1
            ctx = ItemContext(self, index, self.current, self.item_key)
            yield ctx
            if ctx.cancel:
                break

    def __iter__(self) -> Iterator[Any]:
        while self.move_next():
            yield self.current

    def __repr__(self):
        return f"{type(self).__name__}(cursor={type(self._cursor).__name__})"

    # ---- Deferred ----

    def select(self, selector: Any) -> 'Sequence':
        """Attach (or replace) the projection; nothing is enumerated yet."""
        self._selector = as_callback(selector)
        return self

    def cast(self, type_name: Any) -> 'Sequence':
        """Convert every element to ``type_name`` on read (see ``casting``)."""
        converter = get_converter(type_name)
        previous = self._selector
        if previous is None:
            self._selector = lambda x, *args: converter(x)
        else:
            self._selector = lambda x, *args: converter(previous(x, *args))
        return self

    # ---- Filtering and projection ----

    def where(self, predicate: Any) -> 'Sequence':
        predicate = as_callback(predicate)
        return from_array([
            ctx.item for ctx in self._contexts()
            if predicate(ctx.item, ctx.index, ctx)
        ])

    def of_type(self, type_name: Any) -> 'Sequence':
        check = get_type_check(type_name)
        return self.where(lambda x: check(x))

    def select_many(self, selector: Any) -> 'Sequence':
        selector = as_callback(selector)
        items: List[Any] = []
        for ctx in self._contexts():
            items.extend(as_enumerable(selector(ctx.item, ctx.index, ctx)))
        return from_array(items)

    def distinct(self, equality_comparer: Any = None) -> 'Sequence':
        """Unique elements in first-seen order (linear scan, no hashing)."""
        ec = to_equality_comparer_safe(equality_comparer)
        items: List[Any] = []
        for x in self:
            if not any(ec(x, y) for y in items):
                items.append(x)
        return from_array(items)

    def default_if_empty(self, *items) -> 'Sequence':
        """``items`` as new sequence if there is nothing left to read."""
        if not self.is_valid:
            return from_array(list(items))
        return self

    def reverse(self) -> 'Sequence':
        items = self.to_array()
        items.reverse()
        return from_array(items)

    # ---- Partitioning ----

    def skip(self, count: int) -> 'Sequence':
        remaining = [count]

        def skipping(*args):
            if remaining[0] > 0:
                remaining[0] -= 1
                return True
            return False

        return self.skip_while(skipping)

    def skip_last(self) -> 'Sequence':
        """Everything but the last element."""
        return from_array(self.to_array()[:-1])

    def skip_while(self, predicate: Any) -> 'Sequence':
        predicate = as_callback(predicate)
        items: List[Any] = []
        taking = False
        for ctx in self._contexts():
            if not taking and not predicate(ctx.item, ctx.index, ctx):
                taking = True
            if taking:
                items.append(ctx.item)
        return from_array(items)

    def take(self, count: int) -> 'Sequence':
        remaining = [count]

        def taking(*args):
            if remaining[0] > 0:
                remaining[0] -= 1
                return True
            return False

        return self.take_while(taking)

    def take_while(self, predicate: Any) -> 'Sequence':
        predicate = as_callback(predicate)
        items: List[Any] = []
        for ctx in self._contexts():
            if not predicate(ctx.item, ctx.index, ctx):
                break
            items.append(ctx.item)
        return from_array(items)

    # ---- Set operations ----

    def concat(self, second: Any) -> 'Sequence':
        items = self.to_array()
        items.extend(as_enumerable(second))
        return from_array(items)

    def except_(self, second: Any, equality_comparer: Any = None) -> 'Sequence':
        """Elements of this sequence not found in ``second``."""
        ec = to_equality_comparer_safe(equality_comparer)
        others = as_enumerable(second).distinct(ec).to_array()
        return from_array([x for x in self if not any(ec(x, y) for y in others)])

    def intersect(self, second: Any, equality_comparer: Any = None) -> 'Sequence':
        """Elements of this sequence also found in ``second`` (duplicates kept)."""
        ec = to_equality_comparer_safe(equality_comparer)
        others = as_enumerable(second).distinct(ec).to_array()
        return from_array([x for x in self if any(ec(x, y) for y in others)])

    def union(self, second: Any, equality_comparer: Any = None) -> 'Sequence':
        return self.concat(second).distinct(equality_comparer)

    def zip(self, second: Any, selector: Any) -> 'Sequence':
        """Pairs elements by position: ``selector(x, y, index, ctx1, ctx2)``."""
        second = as_enumerable(second)
        selector = as_callback(selector, default_arity=2)
        items: List[Any] = []
        index = -1
        while self.move_next() and second.move_next():
            index += 1
            ctx1 = ItemContext(self, index, self.current, self.item_key)
            ctx2 = ItemContext(second, index, second.current, second.item_key)
            items.append(selector(ctx1.item, ctx2.item, index, ctx1, ctx2))
            if ctx1.cancel or ctx2.cancel:
                break
        return from_array(items)

    # ---- Grouping and joining ----

    def _group_pairs(self, key_selector: Any, key_equality_comparer: Any = None) -> List[list]:
        ks = as_callback(key_selector)
        kc = to_equality_comparer_safe(key_equality_comparer)
        groups: List[list] = []
        for ctx in self._contexts():
            key = ks(ctx.item, ctx.index, ctx)
            for group in groups:
                if kc(group[0], key):
                    group[1].append(ctx.item)
                    break
            else:
                groups.append([key, [ctx.item]])
        return groups

    def group_by(self, key_selector: Any, key_equality_comparer: Any = None) -> 'Sequence':
        """
        One ``Grouping`` per distinct key, in first-seen order.

        Keys are compared pairwise with ``key_equality_comparer`` against
        every existing group, so unhashable keys work.
        """
        return from_array([
            Grouping(key, values)
            for key, values in self._group_pairs(key_selector, key_equality_comparer)
        ])

    def join(self, inner: Any, outer_key_selector: Any, inner_key_selector: Any,
             result_selector: Any, key_equality_comparer: Any = None) -> 'Sequence':
        """``result_selector(outer, inner)`` for every pair with matching keys."""
        inner = as_enumerable(inner)
        rs = as_callback(result_selector, default_arity=2)
        kc = to_equality_comparer_safe(key_equality_comparer)

        outer_groups = self._group_pairs(outer_key_selector)
        inner_groups = inner._group_pairs(inner_key_selector)

        items: List[Any] = []
        for outer_key, outer_values in outer_groups:
            for inner_key, inner_values in inner_groups:
                if not kc(outer_key, inner_key):
                    continue
                for x in outer_values:
                    for y in inner_values:
                        items.append(rs(x, y))
        return from_array(items)

    def group_join(self, inner: Any, outer_key_selector: Any, inner_key_selector: Any,
                   result_selector: Any, key_equality_comparer: Any = None) -> 'Sequence':
        """
        ``result_selector(outer, inner_sequence)`` once per outer element.

        ``inner_sequence`` holds every inner element with a matching key and
        is empty if there is none.
        """
        inner = as_enumerable(inner)
        rs = as_callback(result_selector, default_arity=2)
        kc = to_equality_comparer_safe(key_equality_comparer)

        outer_groups = self._group_pairs(outer_key_selector)
        inner_groups = inner._group_pairs(inner_key_selector)

        items: List[Any] = []
        for outer_key, outer_values in outer_groups:
            matches: List[Any] = []
            for inner_key, inner_values in inner_groups:
                if kc(outer_key, inner_key):
                    matches.extend(inner_values)
            for x in outer_values:
                items.append(rs(x, from_array(list(matches))))
        return from_array(items)

    # ---- Ordering ----

    def order(self, comparer: Any = None) -> 'Sequence':
        return self.order_by(True, comparer)

    def order_by(self, selector: Any, comparer: Any = None) -> 'Sequence':
        from .ordering import OrderedSequence
        return OrderedSequence(self, selector, comparer)

    def order_by_descending(self, selector: Any, comparer: Any = None) -> 'Sequence':
        c = to_comparer_safe(comparer)
        return self.order_by(selector, lambda x, y: c(y, x))

    def order_descending(self, comparer: Any = None) -> 'Sequence':
        return self.order_by_descending(True, comparer)

    # ---- Element access ----

    def first(self, predicate: Any = None) -> Any:
        predicate = to_predicate_safe(predicate)
        for ctx in self._contexts():
            if predicate(ctx.item, ctx.index, ctx):
                return ctx.item
        raise EmptySequence("Sequence contains no matching element")

    def first_or_default(self, predicate_or_default: Any = _UNSET, default_value: Any = _UNSET) -> Any:
        predicate, default = _or_default_args(predicate_or_default, default_value)
        for ctx in self._contexts():
            if predicate(ctx.item, ctx.index, ctx):
                return ctx.item
        return default

    def last(self, predicate: Any = None) -> Any:
        predicate = to_predicate_safe(predicate)
        found = False
        result = None
        for ctx in self._contexts():
            if predicate(ctx.item, ctx.index, ctx):
                result = ctx.item
                found = True
        if not found:
            raise EmptySequence("Sequence contains no matching element")
        return result

    def last_or_default(self, predicate_or_default: Any = _UNSET, default_value: Any = _UNSET) -> Any:
        predicate, result = _or_default_args(predicate_or_default, default_value)
        for ctx in self._contexts():
            if predicate(ctx.item, ctx.index, ctx):
                result = ctx.item
        return result

    def single(self, predicate: Any = None) -> Any:
        predicate = to_predicate_safe(predicate)
        found = False
        result = None
        for ctx in self._contexts():
            if predicate(ctx.item, ctx.index, ctx):
                if found:
                    raise MultipleMatches("Sequence contains more than one matching element")
                result = ctx.item
                found = True
        if not found:
            raise EmptySequence("Sequence contains no matching element")
        return result

    def single_or_default(self, predicate_or_default: Any = _UNSET, default_value: Any = _UNSET) -> Any:
        predicate, result = _or_default_args(predicate_or_default, default_value)
        found = False
        for ctx in self._contexts():
            if predicate(ctx.item, ctx.index, ctx):
                if found:
                    raise MultipleMatches("Sequence contains more than one matching element")
                result = ctx.item
                found = True
        return result

    def element_at(self, index: int) -> Any:
        return self.first(lambda x, i: i == index)

    def element_at_or_default(self, index: int, default_value: Any = None) -> Any:
        return self.first_or_default(lambda x, i: i == index, default_value)

    # ---- Quantifiers and aggregates ----

    def all(self, predicate: Any) -> bool:
        predicate = as_callback(predicate)
        for ctx in self._contexts():
            if not predicate(ctx.item, ctx.index, ctx):
                return False
        return True

    def any(self, predicate: Any = None) -> bool:
        predicate = to_predicate_safe(predicate)
        for ctx in self._contexts():
            if predicate(ctx.item, ctx.index, ctx):
                return True
        return False

    def contains(self, item: Any, equality_comparer: Any = None) -> bool:
        ec = to_equality_comparer_safe(equality_comparer)
        return self.any(lambda x: ec(x, item))

    def count(self, predicate: Any = None) -> int:
        predicate = to_predicate_safe(predicate)
        return sum(1 for ctx in self._contexts() if predicate(ctx.item, ctx.index, ctx))

    def sequence_equal(self, other: Any, equality_comparer: Any = None) -> bool:
        other = as_enumerable(other)
        ec = to_equality_comparer_safe(equality_comparer)
        while self.move_next():
            if not other.move_next():
                return False
            if not ec(self.current, other.current):
                return False
        return not other.move_next()

    def aggregate(self, accumulator: Any, default_value: Any = None) -> Any:
        """
        Fold the sequence with ``accumulator(result, item, index, ctx)``.

        The first element seeds the result; an empty sequence gives
        ``default_value``.
        """
        acc = as_callback(accumulator, default_arity=2)
        result = default_value
        is_first = True
        for ctx in self._contexts():
            if is_first:
                result = ctx.item
                is_first = False
            else:
                result = acc(result, ctx.item, ctx.index, ctx)
        return result

    def average(self, default_value: Any = None) -> Any:
        total = 0.0
        count = 0
        for x in self:
            total += float(x)
            count += 1
        return total / count if count else default_value

    def max(self, default_value: Any = None) -> Any:
        return self.aggregate(lambda result, x: x if x > result else result, default_value)

    def min(self, default_value: Any = None) -> Any:
        return self.aggregate(lambda result, x: x if x < result else result, default_value)

    def sum(self, default_value: Any = None) -> Any:
        return self.aggregate(lambda result, x: result + x, default_value)

    # ---- Iteration ----

    def each(self, action: Any) -> Any:
        """Invoke ``action`` for every element; returns the last return value."""
        action = as_callback(action)
        result = None
        for ctx in self._contexts():
            result = action(ctx.item, ctx.index, ctx)
        return result

    # ---- Conversion ----

    def to_array(self) -> List[Any]:
        return list(self)

    def push_to_array(self, target: Any) -> 'Sequence':
        """Append the remaining elements to ``target`` (list or ``ObservableList``)."""
        for x in self:
            target.append(x)
        return self

    def to_lookup(self, key_selector: Any, key_equality_comparer: Any = None) -> Dict[Any, 'Grouping']:
        """Group into a dict keyed by group key. Keys must be hashable; use group_by otherwise."""
        lookup = {}
        for group in self.group_by(key_selector, key_equality_comparer):
            try:
                lookup[group.key] = group
            except TypeError as e:
                raise TypeError(
                    f"to_lookup needs hashable keys, got {group.key!r}; use group_by instead"
                ) from e
        return lookup

    def _keyed_items(self, key_selector: Any):
        if key_selector is None:
            ks = lambda x, index, key: key
        else:
            ks = as_callback(key_selector, default_arity=3)
        for ctx in self._contexts():
            yield ks(ctx.item, ctx.index, ctx.key), ctx.item

    def to_object(self, key_selector: Any = None) -> Dict[Any, Any]:
        """
        Dict of the remaining elements.

        Keys come from ``key_selector(item, index, key)``; by default the
        element's own key (list index or property name) is used.
        """
        return dict(self._keyed_items(key_selector))

    def to_observable(self, key_selector: Any = None) -> Observable:
        observable = Observable()
        for key, x in self._keyed_items(key_selector):
            observable.set(key, x)
        return observable

    def to_observable_array(self) -> ObservableList:
        return ObservableList(self.to_array())


class Grouping(Sequence):
    """A sequence of the elements sharing ``key``."""

    def __init__(self, key: Any, items: Any):
        super().__init__(ArrayCursor(list(items)))
        self.key = key

    def __repr__(self):
        return f"Grouping(key={self.key!r})"


# ---- Constructors ----

def from_array(items: Any = None) -> Sequence:
    """Sequence over a list, tuple, string, range or ``ObservableList``."""
    return Sequence(ArrayCursor([] if items is None else items))


def from_object(obj: Any = None) -> Sequence:
    """Sequence over the values of a mapping or the public attributes of an object."""
    return Sequence(ObjectCursor({} if obj is None else obj))


def from_iterable(iterable: Any) -> Sequence:
    """Sequence over a one-shot iterable such as a generator."""
    return Sequence(IterableCursor(iterable))


def is_enumerable(value: Any) -> bool:
    return isinstance(value, Sequence)


def as_enumerable(value: Any, throw_on_invalid: bool = True) -> Optional[Sequence]:
    """
    Return ``value`` as a sequence.

    Sequences are returned unchanged; array-likes and ``None`` are read by
    index, mappings and plain objects by property, any other iterable
    through a one-shot cursor. Anything else raises
    ``InvalidSequenceSource``, or gives ``None`` when ``throw_on_invalid``
    is false.
    """
    if is_enumerable(value):
        return value

    if value is None or isinstance(value, abc.Sequence):
        return from_array(value)

    if isinstance(value, abc.Mapping):
        return from_object(value)

    if isinstance(value, abc.Iterable):
        return from_iterable(value)

    if not callable(value) and hasattr(value, '__dict__'):
        return from_object(value)

    if not value:
        return from_array()

    if throw_on_invalid:
        raise InvalidSequenceSource(value)
    return None
