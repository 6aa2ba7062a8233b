"""Default predicates and comparers used by the sequence operators."""

from typing import Any, Callable

from ..compiler.lambda_compiler import as_callback, as_func


def default_comparer(x: Any, y: Any) -> int:
    if x < y:
        return -1
    if x > y:
        return 1
    return 0


def strict_equals(x: Any, y: Any) -> bool:
    return type(x) is type(y) and x == y


def loose_equals(x: Any, y: Any) -> bool:
    return x == y


def identity(x: Any) -> Any:
    return x


def to_comparer_safe(comparer: Any) -> Callable[[Any, Any], int]:
    """Comparer from a callable / lambda string; ``None`` gives ``default_comparer``."""
    comparer = as_func(comparer)
    if not comparer:
        return default_comparer
    return comparer


def to_equality_comparer_safe(equality_comparer: Any) -> Callable[[Any, Any], bool]:
    """
    Equality comparer from a callable / lambda string.

    ``True`` selects strict equality (same type and equal), ``None`` plain ``==``.
    """
    if equality_comparer is True:
        return strict_equals
    equality_comparer = as_func(equality_comparer)
    if not equality_comparer:
        return loose_equals
    return equality_comparer


def to_predicate_safe(predicate: Any) -> Callable[..., bool]:
    """Item predicate fitted to ``(item, index, ctx)``; ``None`` matches everything."""
    if not predicate:
        return lambda *args: True
    return as_callback(predicate)


def to_selector_safe(selector: Any) -> Callable[..., Any]:
    """Item selector fitted to ``(item, index, ctx)``; ``None``/``True`` give identity."""
    if selector is True or not selector:
        return identity
    return as_callback(selector)
