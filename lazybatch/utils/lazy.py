"""Values created on first use."""

from typing import Any, Callable, Generic, TypeVar

T = TypeVar('T')


class Lazy(Generic[T]):
    """
    Creates its value once, when ``value`` is read for the first time.

    Usage:
        >>> config = Lazy(lambda: {'retries': 3})
        >>> config.is_value_created
        False
        >>> config.value['retries']
        3
        >>> config.is_value_created
        True
    """

    def __init__(self, value_factory: Callable[[], T]):
        self._value_factory = value_factory
        self._value: Any = None
        self._is_value_created = False

    @property
    def is_value_created(self) -> bool:
        return self._is_value_created

    @property
    def value(self) -> T:
        if not self._is_value_created:
            self._value = self._value_factory()
            self._is_value_created = True
        return self._value

    def reset(self) -> 'Lazy[T]':
        """Forget the value; the factory runs again on the next access."""
        self._is_value_created = False
        self._value = None
        return self
