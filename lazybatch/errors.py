"""
Errors
======

Exception hierarchy shared by the lambda compiler, the enumerable engine
and the batch engine. Every error derives from ``LazyBatchError`` and from
the builtin exception closest in meaning, so callers may catch either.
"""

from typing import Any, Optional


class LazyBatchError(Exception):
    """Base class for all lazybatch errors."""


class InvalidExpression(LazyBatchError, ValueError):
    """A lambda string could not be parsed or uses forbidden syntax."""

    def __init__(self, expression: Any, reason: str = "invalid lambda expression"):
        self.expression = expression
        self.reason = reason
        super().__init__(f"{reason}: {expression!r}")


class EmptySequence(LazyBatchError, LookupError):
    """A terminal operator found no (matching) element."""

    def __init__(self, message: str = "Sequence contains no matching element"):
        super().__init__(message)


class MultipleMatches(LazyBatchError, LookupError):
    """single() found more than one matching element."""

    def __init__(self, message: str = "Sequence contains more than one matching element"):
        super().__init__(message)


class UnsupportedCast(LazyBatchError, TypeError):
    """cast() / of_type() got a type tag outside the recognized set."""

    def __init__(self, type_name: Any):
        self.type_name = type_name
        super().__init__(f"Cannot cast to unsupported type {type_name!r}")


class InvalidSequenceSource(LazyBatchError, TypeError):
    """A value cannot be used as the source of a sequence."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"{value!r} is no valid value to use as sequence")


class NotResettable(LazyBatchError, RuntimeError):
    """reset() was called on a one-shot sequence that was already consumed."""


class DuplicateOperationId(LazyBatchError, ValueError):
    """Two operations of the same batch were given the same id."""

    def __init__(self, operation_id: Any, index: int):
        self.operation_id = operation_id
        self.index = index
        super().__init__(
            f"ID {operation_id!r} has already been defined in operation #{index}"
        )


class StepError(LazyBatchError):
    """
    An unhandled exception escaped a batch operation.

    Raised out of ``Batch.start()``; the original exception is chained
    as ``__cause__``.
    """

    def __init__(
        self,
        index: int,
        phase: Any,
        operation_id: Optional[Any] = None,
        error: Optional[BaseException] = None,
    ):
        self.index = index
        self.phase = phase
        self.operation_id = operation_id
        self.error = error
        phase_name = getattr(phase, 'value', phase)
        label = f"#{index}" if operation_id is None else f"#{index} ({operation_id!r})"
        super().__init__(f"Operation {label} failed in '{phase_name}' phase: {error!r}")
