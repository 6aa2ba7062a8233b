"""
Cursors
=======

A cursor is the mutable position state behind a ``Sequence``. The sequence
type is implemented once; what varies is how the next item is fetched:

    ArrayCursor     - indexable containers (list, tuple, str, range, ObservableList)
    ObjectCursor    - mappings and plain objects, keyed by property name
    IterableCursor  - generators and other one-shot iterables

All cursors share the same contract:

    - ``move_next()`` advances exactly one element and returns True, or
      returns False (repeatedly) once exhausted without touching ``current``
    - ``is_valid`` tells whether a further element is available
    - ``key`` is the index / property name of the current element
    - ``reset()`` rewinds to "before first element"
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional

from ..errors import NotResettable


class Cursor(ABC):
    """Position state of a sequence."""

    @abstractmethod
    def move_next(self) -> bool:
        ...

    @property
    @abstractmethod
    def current(self) -> Any:
        ...

    @property
    @abstractmethod
    def is_valid(self) -> bool:
        ...

    @property
    @abstractmethod
    def key(self) -> Any:
        ...

    @abstractmethod
    def reset(self):
        ...


class ArrayCursor(Cursor):
    """Cursor over anything supporting ``len()`` and integer indexing."""

    def __init__(self, items: Any):
        self._items = items
        self._index = -1

    @property
    def items(self) -> Any:
        return self._items

    def move_next(self) -> bool:
        if self.is_valid:
            self._index += 1
            return True
        return False

    @property
    def current(self) -> Any:
        if self._index < 0:
            return None
        return self._items[self._index]

    @property
    def is_valid(self) -> bool:
        return (self._index + 1) < len(self._items)

    @property
    def key(self) -> Optional[int]:
        return self._index if self._index >= 0 else None

    def reset(self):
        self._index = -1


class ObjectCursor(Cursor):
    """
    Cursor over the properties of an object.

    Mappings are walked by key; other objects by their public instance
    attributes. The key list is captured when the cursor is created.
    """

    def __init__(self, obj: Any):
        self._obj = obj
        self._is_mapping = isinstance(obj, Mapping)
        if self._is_mapping:
            self._keys: List[Any] = list(obj.keys())
        else:
            self._keys = [k for k in vars(obj) if not k.startswith('_')]
        self._index = -1

    def move_next(self) -> bool:
        if self.is_valid:
            self._index += 1
            return True
        return False

    @property
    def current(self) -> Any:
        if self._index < 0:
            return None
        if self._is_mapping:
            return self._obj[self.key]
        return getattr(self._obj, self.key)

    @property
    def is_valid(self) -> bool:
        return (self._index + 1) < len(self._keys)

    @property
    def key(self) -> Any:
        return self._keys[self._index] if self._index >= 0 else None

    def reset(self):
        self._index = -1


class IterableCursor(Cursor):
    """
    Cursor over a one-shot iterable such as a generator.

    One element of lookahead is buffered to answer ``is_valid``. Once an
    element has been consumed the cursor cannot be rewound.
    """

    def __init__(self, iterable: Iterable):
        self._iterator = iter(iterable)
        self._index = -1
        self._current: Any = None
        self._peeked = False
        self._has_pending = False
        self._pending: Any = None

    def _peek(self) -> bool:
        if not self._peeked:
            try:
                self._pending = next(self._iterator)
                self._has_pending = True
            except StopIteration:
                self._has_pending = False
            self._peeked = True
        return self._has_pending

    def move_next(self) -> bool:
        if not self._peek():
            return False
        self._current = self._pending
        self._pending = None
        self._peeked = False
        self._index += 1
        return True

    @property
    def current(self) -> Any:
        return self._current

    @property
    def is_valid(self) -> bool:
        return self._peek()

    @property
    def key(self) -> Optional[int]:
        return self._index if self._index >= 0 else None

    def reset(self):
        if self._index >= 0:
            raise NotResettable("Sequence is backed by a one-shot iterable and was already consumed")
