"""
Observable Data
===============

Shared, change-notifying containers used as the batch-wide blackboard:

    - Observable: key/value bag (a ``MutableMapping``)
    - ObservableList: ordered item list (a ``MutableSequence``)

Subscribers registered with ``on_change`` are called synchronously after
every mutation.
"""

from collections.abc import MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional


@dataclass
class PropertyChange:
    """A property of an ``Observable`` was set or removed."""
    name: str
    old_value: Any
    value: Any


@dataclass
class ListChange:
    """Items were added to, replaced in or removed from an ``ObservableList``."""
    action: str  # 'add' | 'update' | 'delete'
    index: int
    items: List[Any]


class _Notifier:
    def __init__(self):
        self._subscribers: List[Callable] = []

    def on_change(self, callback: Callable) -> Callable:
        """Subscribe to changes; returns ``callback`` so it can be used as decorator."""
        self._subscribers.append(callback)
        return callback

    def off_change(self, callback: Callable):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify(self, change):
        for callback in list(self._subscribers):
            callback(change)


class Observable(_Notifier, MutableMapping):
    """
    Key/value bag with change notifications.

    Usage:
        >>> obj = Observable(a=1)
        >>> obj.set('b', 2)
        >>> obj.get('b')
        2
        >>> sorted(obj.keys())
        ['a', 'b']
    """

    def __init__(self, properties: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__()
        self._values: Dict[str, Any] = {}
        self._values.update(properties or {})
        self._values.update(kwargs)

    def set(self, name: str, value: Any):
        old = self._values.get(name)
        self._values[name] = value
        if old is not value:
            self._notify(PropertyChange(name, old, value))

    def set_properties(self, properties: Optional[Dict[str, Any]]) -> 'Observable':
        if properties:
            for name, value in properties.items():
                self.set(name, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any):
        self.set(name, value)

    def __delitem__(self, name: str):
        old = self._values.pop(name)
        self._notify(PropertyChange(name, old, None))

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"Observable({self._values!r})"


class ObservableList(_Notifier, MutableSequence):
    """
    List with change notifications.

    Besides the regular list protocol it offers the array-style
    ``push``, ``get_item``, ``set_item`` and ``length``.
    """

    def __init__(self, items: Optional[Iterable[Any]] = None):
        super().__init__()
        self._items: List[Any] = list(items or [])

    def push(self, *items) -> int:
        """Append one or more items; returns the new length."""
        if items:
            start = len(self._items)
            self._items.extend(items)
            self._notify(ListChange('add', start, list(items)))
        return len(self._items)

    def get_item(self, index: int) -> Any:
        return self._items[index]

    def set_item(self, index: int, value: Any):
        self[index] = value

    @property
    def length(self) -> int:
        return len(self._items)

    def to_list(self) -> List[Any]:
        return list(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __setitem__(self, index, value):
        self._items[index] = value
        self._notify(ListChange('update', index, [value]))

    def __delitem__(self, index):
        removed = self._items[index]
        del self._items[index]
        self._notify(ListChange('delete', index, removed if isinstance(index, slice) else [removed]))

    def __len__(self) -> int:
        return len(self._items)

    def insert(self, index: int, value: Any):
        self._items.insert(index, value)
        self._notify(ListChange('add', index, [value]))

    def __eq__(self, other):
        if isinstance(other, ObservableList):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    def __repr__(self):
        return f"ObservableList({self._items!r})"
