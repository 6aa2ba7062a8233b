"""
Batch Engine
============

Runs an ordered list of ``BatchOperation`` steps sequentially on the
calling thread. Every step walks through these phases, each recorded on its
``OperationContext``:

    before -> execution -> after -> success -> complete

``before`` and ``after`` are batch-wide hooks, the others belong to the
operation. An exception raised in ``before``/``execution``/``after`` is
routed to the step's ``error`` hook; without one the batch aborts with a
``StepError`` unless the step ignores errors. Once ``success`` has been
entered, an exception is no longer routed to ``error``. A ``StepError``
raised by a nested batch is routed like any other exception.

Cancellation (``ctx.cancel()``) is checked after every phase and halts the
whole batch after invoking ``when_cancelled``. When every step has passed
its finish check, ``when_all_finished`` is invoked exactly once.

Usage:
    >>> batch = Batch(lambda ctx: ctx.items.append(ctx.index))
    >>> _ = batch.first_operation.next(lambda ctx: ctx.items.append(ctx.index))
    >>> batch.start()
    >>> batch.items.to_list()
    [0, 1]
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..compiler.lambda_compiler import as_func
from ..data.observable import Observable, ObservableList
from ..errors import StepError
from .context import ExecutionContext, InvokeStrategy, OperationContext
from .operation import BatchOperation

logger = logging.getLogger(__name__)


@dataclass
class _RunState:
    """Values carried from one step to the next during ``Batch.start()``."""
    finished: List[bool]
    previous_value: Any = None
    result: Any = None
    value: Any = None
    next_invoke_strategy: Optional[InvokeStrategy] = None
    skip_while: Optional[Callable[[OperationContext], bool]] = None
    cancelled: bool = False
    all_finished: bool = False
    fatal: Optional[StepError] = None


class Batch:
    """
    An ordered pipeline of operations sharing ``object`` and ``items``.

    Args:
        first_action: action of the first operation (callable or lambda string)
        invoke_strategy: default for advancing between operations
        invoke_finished_check_for_all: run the finish check after every
            ``complete`` phase instead of leaving it to the steps
        enable_logging: configure ``logging`` at DEBUG level

    Usage:
        >>> batch = Batch(lambda ctx: ctx.set_result_and_value(10))
        >>> _ = batch.first_operation.next(lambda ctx: ctx.set_result_and_value(ctx.value * 2))
        >>> batch.start()
        20
    """

    def __init__(
        self,
        first_action: Any,
        invoke_strategy: Optional[InvokeStrategy] = InvokeStrategy.AUTOMATIC,
        invoke_finished_check_for_all: bool = False,
        enable_logging: bool = False,
    ):
        self.id: Optional[str] = None
        self.name: Optional[str] = None
        self.invoke_strategy = invoke_strategy
        self._invoke_finished_check_for_all = invoke_finished_check_for_all

        self.before_action: Optional[Callable] = None
        self.after_action: Optional[Callable] = None
        self.when_all_finished_action: Optional[Callable] = None
        self.when_cancelled_action: Optional[Callable] = None
        self.loggers: List[Callable] = []

        self._items = ObservableList()
        self._object = Observable()
        self._operations: List[BatchOperation] = []
        self._result: Any = None
        self._value: Any = None

        if enable_logging:
            logging.basicConfig(level=logging.DEBUG)

        self._first_operation = BatchOperation(self, first_action)

    def __repr__(self):
        return f"Batch(id={self.id!r}, operations={len(self._operations)})"

    # ---- Accessors ----

    @property
    def first_operation(self) -> BatchOperation:
        return self._first_operation

    @property
    def operations(self) -> List[BatchOperation]:
        return self._operations

    @property
    def items(self) -> ObservableList:
        return self._items

    @property
    def object(self) -> Observable:
        return self._object

    # ---- Configuration ----

    def before(self, action: Any) -> 'Batch':
        self.before_action = as_func(action)
        return self

    def after(self, action: Any) -> 'Batch':
        self.after_action = as_func(action)
        return self

    def when_all_finished(self, action: Any) -> 'Batch':
        self.when_all_finished_action = as_func(action)
        return self

    def when_cancelled(self, action: Any) -> 'Batch':
        self.when_cancelled_action = as_func(action)
        return self

    def add_items(self, *items) -> 'Batch':
        self._items.push(*items)
        return self

    def add_logger(self, action: Any) -> 'Batch':
        self.loggers.append(as_func(action))
        return self

    def invoke_finished_check_for_all(self, flag: bool = True) -> 'Batch':
        self._invoke_finished_check_for_all = flag
        return self

    def set_invoke_strategy(self, value: Optional[InvokeStrategy]) -> 'Batch':
        self.invoke_strategy = value
        return self

    def set_object_properties(self, properties: Optional[Dict[str, Any]]) -> 'Batch':
        self._object.set_properties(properties)
        return self

    def set_result(self, value: Any) -> 'Batch':
        self._result = value
        return self

    def set_value(self, value: Any) -> 'Batch':
        self._value = value
        return self

    def set_result_and_value(self, value: Any) -> 'Batch':
        return self.set_result(value).set_value(value)

    # ---- Execution ----

    def start(self) -> Any:
        """Run all operations; returns the final ``result``."""
        state = _RunState(
            finished=[False] * len(self._operations),
            result=self._result,
            value=self._value,
        )
        logger.debug(f"Starting batch {self.id!r} with {len(self._operations)} operation(s)")
        self._run_from(state, 0)
        logger.debug(f"Batch {self.id!r} returned {state.result!r}")
        return state.result

    def _run_from(self, state: _RunState, index: int):
        while index < len(self._operations) and not state.cancelled:
            if not self._run_operation(state, index):
                return
            index += 1

    def _resolve_strategy(self, state: _RunState, operation: BatchOperation) -> InvokeStrategy:
        for strategy in (state.next_invoke_strategy, operation.invoke_strategy, self.invoke_strategy):
            if strategy is not None:
                return strategy
        return InvokeStrategy.AUTOMATIC

    def _run_operation(self, state: _RunState, index: int) -> bool:
        """Run one step; True if the engine should advance to the next one."""
        operation = self._operations[index]
        ctx = OperationContext(
            batch=self,
            operation=operation,
            index=index,
            prev_value=state.previous_value,
            result=state.result,
            value=state.value,
        )
        strategy = self._resolve_strategy(state, operation)
        next_invoked = []

        def invoke_next():
            if next_invoked or state.cancelled:
                return
            next_invoked.append(True)
            self._carry(state, ctx)
            self._run_from(state, index + 1)

        ctx.invoke_next_action = invoke_next
        ctx.check_if_finished_action = lambda: self._mark_finished(state, index, ctx)

        if state.skip_while is not None and state.skip_while(ctx):
            logger.debug(f"Skipping operation #{index} ({operation.id!r})")
            ctx.next_value = ctx.prev_value
            ctx.check_if_finished()
            return True
        state.skip_while = None

        handle_error = True
        try:
            if ctx.invoke_before and self.before_action and not operation.skip_before_action:
                ctx.set_execution_context(ExecutionContext.BEFORE)
                self.before_action(ctx)
                if self._check_if_cancelled(state, ctx):
                    return False

            if ctx.invoke_action and operation.action:
                ctx.set_execution_context(ExecutionContext.EXECUTION)
                operation.action(ctx)
                if self._check_if_cancelled(state, ctx):
                    return False

            if ctx.invoke_after and self.after_action:
                ctx.set_execution_context(ExecutionContext.AFTER)
                self.after_action(ctx)
                if self._check_if_cancelled(state, ctx):
                    return False

            if ctx.invoke_success and operation.success_action:
                handle_error = False
                ctx.set_execution_context(ExecutionContext.SUCCESS)
                operation.success_action(ctx)
                if self._check_if_cancelled(state, ctx):
                    return False
        except Exception as e:
            # a fatal error of this run's own continuation passes through untouched
            if e is state.fatal:
                raise
            self._handle_error(state, ctx, e, handle_error)
            if self._check_if_cancelled(state, ctx):
                return False

        if not self._complete(state, ctx):
            return False

        if next_invoked or strategy is not InvokeStrategy.AUTOMATIC:
            return False
        self._carry(state, ctx)
        return True

    def _handle_error(self, state: _RunState, ctx: OperationContext, error: Exception, handle_error: bool):
        operation = ctx.operation
        phase = ctx.execution_context
        ctx.set_error(error)
        ctx.set_execution_context(ExecutionContext.ERROR)

        if handle_error and operation.error_action and ctx.invoke_error:
            logger.debug(f"Operation #{ctx.index} failed in '{phase.value}', invoking error hook: {error!r}")
            self._invoke_guarded(state, ctx, ExecutionContext.ERROR, operation.error_action)
        elif operation.ignore_operation_errors:
            logger.debug(f"Operation #{ctx.index} failed in '{phase.value}', error ignored: {error!r}")
        else:
            self._fail(state, StepError(ctx.index, phase, operation.id, error), error)

    def _complete(self, state: _RunState, ctx: OperationContext) -> bool:
        ctx.set_execution_context(ExecutionContext.COMPLETE)
        if ctx.invoke_complete and ctx.operation.complete_action:
            self._invoke_guarded(state, ctx, ExecutionContext.COMPLETE, ctx.operation.complete_action)
        if self._invoke_finished_check_for_all:
            ctx.check_if_finished()
        return not self._check_if_cancelled(state, ctx)

    def _invoke_guarded(self, state: _RunState, ctx: OperationContext, phase: ExecutionContext, hook: Callable):
        """Hooks outside error routing: a failure aborts the batch."""
        try:
            hook(ctx)
        except Exception as e:
            if e is state.fatal:
                raise
            self._fail(state, StepError(ctx.index, phase, ctx.id, e), e)

    def _fail(self, state: _RunState, step_error: StepError, cause: Exception):
        state.fatal = step_error
        logger.debug(f"Batch {self.id!r} aborted: {step_error}")
        raise step_error from cause

    def _check_if_cancelled(self, state: _RunState, ctx: OperationContext) -> bool:
        if not ctx.cancelled:
            return False

        ctx.set_execution_context(ExecutionContext.CANCELLED)
        if not state.cancelled:
            state.cancelled = True
            logger.debug(f"Batch {self.id!r} cancelled by operation #{ctx.index}")
            if self.when_cancelled_action:
                self.when_cancelled_action(ctx)
        return True

    def _carry(self, state: _RunState, ctx: OperationContext):
        state.previous_value = ctx.next_value
        state.result = ctx.result
        state.value = ctx.value
        state.next_invoke_strategy = ctx.next_invoke_strategy
        state.skip_while = ctx.skip_while_predicate

    def _mark_finished(self, state: _RunState, index: int, ctx: OperationContext):
        state.finished[index] = True
        if state.all_finished or not all(state.finished):
            return

        state.all_finished = True
        logger.debug(f"All operations of batch {self.id!r} finished")
        if self.when_all_finished_action:
            finished_ctx = OperationContext(
                batch=self,
                prev_value=ctx.next_value,
                result=ctx.result,
                value=ctx.value,
                execution_context=ExecutionContext.FINISHED,
            )
            self.when_all_finished_action(finished_ctx)


def new_batch(first_action: Any) -> BatchOperation:
    """Create a batch and return its first operation for chaining."""
    return Batch(first_action).first_operation
