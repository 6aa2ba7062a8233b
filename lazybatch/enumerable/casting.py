"""
Casting
=======

Converters for ``Sequence.cast`` and type checks for ``Sequence.of_type``.

Recognized type tags (case-insensitive, surrounding whitespace ignored):

    ''                                  no conversion / every element
    'null', 'undefined', 'none'         None
    'number'                            int or float
    'float'
    'int', 'integer'
    'str', 'string'
    'enumerable', 'seq', 'sequence'     Sequence
    'array'                             list
    'observable'                        Observable
    'observablearray'                   ObservableList
    'bool', 'boolean'
    'func', 'function'                  callable

Any other tag raises ``UnsupportedCast``.

The numeric casts ('number', 'float', 'int') map falsy elements to zero and
let the ``ValueError`` from ``float()``/``int()`` propagate for non-numeric
strings such as ``'abc'``; it surfaces when the element is read.
"""

from typing import Any, Callable, Dict

from ..data.observable import Observable, ObservableList
from ..errors import UnsupportedCast

TYPE_ALIASES: Dict[str, str] = {
    '': '',
    'null': 'null', 'undefined': 'null', 'none': 'null',
    'number': 'number',
    'float': 'float',
    'int': 'int', 'integer': 'int',
    'str': 'str', 'string': 'str',
    'enumerable': 'sequence', 'seq': 'sequence', 'sequence': 'sequence',
    'array': 'array',
    'observable': 'observable',
    'observablearray': 'observablearray',
    'bool': 'bool', 'boolean': 'bool',
    'func': 'function', 'function': 'function',
}


def normalize_type_name(type_name: Any) -> str:
    key = '' if type_name is None else str(type_name).strip().lower()
    if key not in TYPE_ALIASES:
        raise UnsupportedCast(type_name)
    return TYPE_ALIASES[key]


def _is_number(x: Any) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def _to_number(x: Any) -> Any:
    if not x:
        return 0.0
    if _is_number(x):
        return x
    return float(x)


def _to_int(x: Any) -> int:
    if not x:
        return 0
    if isinstance(x, str):
        try:
            return int(x.strip())
        except ValueError:
            return int(float(x))
    return int(x)


def _to_sequence(x: Any):
    from .sequence import as_enumerable
    return as_enumerable(x)


def _constant(x: Any) -> Callable[[], Any]:
    return lambda: x


_CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    '': lambda x: x,
    'null': lambda x: None,
    'number': _to_number,
    'float': lambda x: float(x) if x else 0.0,
    'int': _to_int,
    'str': lambda x: '' if x is None else str(x),
    'sequence': _to_sequence,
    'array': lambda x: _to_sequence(x).to_array(),
    'observable': lambda x: _to_sequence(x).to_observable(),
    'observablearray': lambda x: _to_sequence(x).to_observable_array(),
    'bool': bool,
    'function': _constant,
}


def _is_sequence(x: Any) -> bool:
    from .sequence import is_enumerable
    return is_enumerable(x)


_CHECKS: Dict[str, Callable[[Any], bool]] = {
    '': lambda x: True,
    'null': lambda x: x is None,
    'number': _is_number,
    'float': lambda x: isinstance(x, float),
    'int': lambda x: isinstance(x, int) and not isinstance(x, bool),
    'str': lambda x: isinstance(x, str),
    'sequence': _is_sequence,
    'array': lambda x: isinstance(x, (list, tuple)),
    'observable': lambda x: isinstance(x, Observable),
    'observablearray': lambda x: isinstance(x, ObservableList),
    'bool': lambda x: isinstance(x, bool),
    'function': callable,
}


def get_converter(type_name: Any) -> Callable[[Any], Any]:
    """Converter for ``cast``; raises ``UnsupportedCast`` for unknown tags."""
    return _CONVERTERS[normalize_type_name(type_name)]


def get_type_check(type_name: Any) -> Callable[[Any], bool]:
    """Predicate for ``of_type``; raises ``UnsupportedCast`` for unknown tags."""
    return _CHECKS[normalize_type_name(type_name)]
