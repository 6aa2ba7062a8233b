"""
Batch Contexts
==============

Per-step state of a running batch.

An ``OperationContext`` is created fresh for every operation and handed to
each of its hooks. Field lifecycles:

    prev_value      read-only; the previous step's ``next_value``
    next_value      write-only; becomes the next step's ``prev_value``
    result, value   carried across the whole batch unless reassigned;
                    ``Batch.start()`` returns the final ``result``
    invoke_*        gates for the remaining phases of this step
    cancelled       checked after every phase; stops the whole batch
    skip_while_predicate
                    consulted before each following step; a match skips
                    all of that step's hooks
    next_invoke_strategy
                    overrides how the following step is advanced
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..compiler.lambda_compiler import as_func
from ..data.observable import Observable, ObservableList

if TYPE_CHECKING:
    from .batch import Batch
    from .operation import BatchOperation

logger = logging.getLogger(__name__)


class ExecutionContext(Enum):
    """Phase an ``OperationContext`` is currently in."""
    BEFORE = 'before'
    EXECUTION = 'execution'
    AFTER = 'after'
    SUCCESS = 'success'
    ERROR = 'error'
    COMPLETE = 'complete'
    FINISHED = 'finished'
    CANCELLED = 'cancelled'


class InvokeStrategy(Enum):
    """How the engine moves on to the next operation."""
    AUTOMATIC = 'automatic'  # right after the current one completed
    MANUAL = 'manual'        # only when a hook calls ctx.invoke_next()


def _noop():
    pass


@dataclass
class OperationContext:
    """
    Mutable state of a single operation run.

    Usage:
        >>> def step(ctx):
        ...     ctx.items.append(ctx.index)
        ...     ctx.next_value = 'forwarded'
        ...     if ctx.prev_value == 'stop':
        ...         ctx.cancel()
    """
    batch: 'Batch'
    operation: Optional['BatchOperation'] = None
    index: Optional[int] = None
    prev_value: Any = None
    next_value: Any = None
    result: Any = None
    value: Any = None

    invoke_before: bool = True
    invoke_action: bool = True
    invoke_after: bool = True
    invoke_success: bool = True
    invoke_error: bool = True
    invoke_complete: bool = True

    cancelled: bool = False
    execution_context: Optional[ExecutionContext] = None
    error: Optional[BaseException] = None
    skip_while_predicate: Optional[Callable[['OperationContext'], bool]] = None
    next_invoke_strategy: Optional[InvokeStrategy] = None

    check_if_finished_action: Callable[[], None] = field(default=_noop, repr=False)
    invoke_next_action: Callable[[], None] = field(default=_noop, repr=False)

    # ---- Flow control ----

    def cancel(self, flag: bool = True) -> 'OperationContext':
        self.cancelled = flag
        return self

    def check_if_finished(self) -> 'OperationContext':
        """Mark this operation as finished for the ``when_all_finished`` rendezvous."""
        self.check_if_finished_action()
        return self

    def invoke_next(self) -> 'OperationContext':
        """Run the rest of the pipeline now (required under ``InvokeStrategy.MANUAL``)."""
        self.invoke_next_action()
        return self

    def skip(self, count: int = 1) -> 'OperationContext':
        """Skip the hooks of the next ``count`` operations."""
        remaining = [count]

        def predicate(ctx):
            remaining[0] -= 1
            return remaining[0] >= 0

        return self.skip_while(predicate)

    def skip_all(self, flag: bool = True) -> 'OperationContext':
        return self.skip_while(lambda ctx: flag)

    def skip_next(self, flag: bool = True) -> 'OperationContext':
        return self.skip(1 if flag else 0)

    def skip_while(self, predicate: Any) -> 'OperationContext':
        self.skip_while_predicate = as_func(predicate)
        return self

    # ---- Setters ----

    def set_execution_context(self, value: ExecutionContext) -> 'OperationContext':
        self.execution_context = value
        return self

    def set_error(self, error: Optional[BaseException]) -> 'OperationContext':
        self.error = error
        return self

    def set_next_invoke_strategy(self, value: Optional[InvokeStrategy]) -> 'OperationContext':
        self.next_invoke_strategy = value
        return self

    def set_result_and_value(self, value: Any) -> 'OperationContext':
        self.result = value
        self.value = value
        return self

    # ---- Position ----

    @property
    def is_first(self) -> Optional[bool]:
        if self.index is None:
            return None
        return self.index == 0

    @property
    def is_last(self) -> Optional[bool]:
        if self.index is None:
            return None
        return self.index >= len(self.batch.operations) - 1

    @property
    def is_between(self) -> Optional[bool]:
        if self.index is None:
            return None
        return not self.is_first and not self.is_last

    # ---- Batch accessors ----

    @property
    def context(self) -> Optional[str]:
        """Name of the current phase, e.g. ``'execution'``."""
        if self.execution_context is None:
            return None
        return self.execution_context.value

    @property
    def id(self) -> Optional[str]:
        return self.operation.id if self.operation is not None else None

    @property
    def name(self) -> Optional[str]:
        return self.operation.name if self.operation is not None else None

    @property
    def batch_id(self) -> Optional[str]:
        return self.batch.id

    @property
    def batch_name(self) -> Optional[str]:
        return self.batch.name

    @property
    def items(self) -> ObservableList:
        return self.batch.items

    @property
    def object(self) -> Observable:
        return self.batch.object

    # ---- Logging ----

    def log(self, message: Any) -> 'OperationContext':
        """Send ``message`` to every logger registered on the batch."""
        entry = LogContext(self, datetime.now(), message)
        for log_action in list(self.batch.loggers):
            try:
                log_action(entry)
            except Exception:
                logger.warning(f"Batch logger {log_action!r} failed", exc_info=True)
        return self


@dataclass
class LogContext:
    """A message sent through ``OperationContext.log``."""
    context: OperationContext
    time: datetime
    message: Any

    @property
    def batch(self) -> 'Batch':
        return self.context.batch

    @property
    def operation(self) -> Optional['BatchOperation']:
        return self.context.operation
