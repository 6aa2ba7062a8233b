"""Small helpers shared across lazybatch."""

from lazybatch.utils.helpers import Timer, format_ns, format_overhead
from lazybatch.utils.lazy import Lazy

__all__ = ['Lazy', 'Timer', 'format_ns', 'format_overhead']
