"""
Batch Operation
===============

One step of a ``Batch``. Operations are created by the batch (the first
one) or by chaining ``next``/``then``; every setter returns the operation
so a whole pipeline reads as one expression. Batch-wide settings (global
``before``/``after`` hooks, loggers, shared state, finish handling) are
forwarded to the owning batch.
"""

from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from ..compiler.lambda_compiler import as_func
from ..data.observable import Observable, ObservableList
from ..errors import DuplicateOperationId
from .context import InvokeStrategy

if TYPE_CHECKING:
    from .batch import Batch

Hook = Callable[..., Any]


class BatchOperation:
    """
    A single step with its own ``success``/``error``/``complete`` hooks.

    Usage:
        >>> result = (new_batch(lambda ctx: ctx.set_result_and_value(1))
        ...     .set_id('load')
        ...     .next(lambda ctx: ctx.set_result_and_value(ctx.value + 1))
        ...     .error(lambda ctx: ctx.log(ctx.error))
        ...     .start())
        >>> result
        2
    """

    def __init__(self, batch: 'Batch', action: Any, append: bool = True):
        self._batch = batch
        self._id: Optional[str] = None
        self.action: Optional[Hook] = as_func(action)
        self.name: Optional[str] = None
        self.success_action: Optional[Hook] = None
        self.error_action: Optional[Hook] = None
        self.complete_action: Optional[Hook] = None
        self.ignore_operation_errors = False
        self.skip_before_action = False
        self.invoke_strategy: Optional[InvokeStrategy] = None

        if append:
            batch.operations.append(self)

    def __repr__(self):
        return f"BatchOperation(id={self._id!r}, name={self.name!r})"

    # ---- Identity ----

    @property
    def batch(self) -> 'Batch':
        return self._batch

    @property
    def id(self) -> Optional[str]:
        return self._id

    @id.setter
    def id(self, value: Optional[str]):
        if value is not None:
            for index, operation in enumerate(self._batch.operations):
                if operation is not self and operation.id == value:
                    raise DuplicateOperationId(value, index)
        self._id = value

    def set_id(self, value: Optional[str]) -> 'BatchOperation':
        self.id = value
        return self

    def set_name(self, value: Optional[str]) -> 'BatchOperation':
        self.name = value
        return self

    @property
    def batch_id(self) -> Optional[str]:
        return self._batch.id

    @batch_id.setter
    def batch_id(self, value: Optional[str]):
        self._batch.id = value

    @property
    def batch_name(self) -> Optional[str]:
        return self._batch.name

    @batch_name.setter
    def batch_name(self, value: Optional[str]):
        self._batch.name = value

    def set_batch_id(self, value: Optional[str]) -> 'BatchOperation':
        self._batch.id = value
        return self

    def set_batch_name(self, value: Optional[str]) -> 'BatchOperation':
        self._batch.name = value
        return self

    # ---- Own hooks ----

    def success(self, action: Any) -> 'BatchOperation':
        self.success_action = as_func(action)
        return self

    def error(self, action: Any) -> 'BatchOperation':
        self.error_action = as_func(action)
        return self

    def complete(self, action: Any) -> 'BatchOperation':
        self.complete_action = as_func(action)
        return self

    def ignore_errors(self, flag: bool = True) -> 'BatchOperation':
        """Swallow exceptions this step has no ``error`` hook for."""
        self.ignore_operation_errors = flag
        return self

    def skip_before(self, flag: bool = True) -> 'BatchOperation':
        """Do not run the batch-wide ``before`` hook for this step."""
        self.skip_before_action = flag
        return self

    def set_invoke_strategy(self, value: Optional[InvokeStrategy]) -> 'BatchOperation':
        self.invoke_strategy = value
        return self

    # ---- Chaining ----

    def next(self, action: Any) -> 'BatchOperation':
        """Append a new operation to the batch and return it."""
        return BatchOperation(self._batch, action)

    def then(self, action: Any) -> 'BatchOperation':
        return self.next(action)

    def start(self) -> Any:
        """Run the whole batch; returns its final ``result``."""
        return self._batch.start()

    # ---- Forwarded to the batch ----

    @property
    def before_action(self) -> Optional[Hook]:
        return self._batch.before_action

    @property
    def after_action(self) -> Optional[Hook]:
        return self._batch.after_action

    @property
    def items(self) -> ObservableList:
        return self._batch.items

    @property
    def object(self) -> Observable:
        return self._batch.object

    def before(self, action: Any) -> 'BatchOperation':
        self._batch.before(action)
        return self

    def after(self, action: Any) -> 'BatchOperation':
        self._batch.after(action)
        return self

    def when_all_finished(self, action: Any) -> 'BatchOperation':
        self._batch.when_all_finished(action)
        return self

    def when_cancelled(self, action: Any) -> 'BatchOperation':
        self._batch.when_cancelled(action)
        return self

    def add_items(self, *items) -> 'BatchOperation':
        self._batch.add_items(*items)
        return self

    def add_logger(self, action: Any) -> 'BatchOperation':
        self._batch.add_logger(action)
        return self

    def invoke_finished_check_for_all(self, flag: bool = True) -> 'BatchOperation':
        self._batch.invoke_finished_check_for_all(flag)
        return self

    def set_object_properties(self, properties: Optional[Dict[str, Any]]) -> 'BatchOperation':
        self._batch.set_object_properties(properties)
        return self

    def set_result(self, value: Any) -> 'BatchOperation':
        self._batch.set_result(value)
        return self

    def set_value(self, value: Any) -> 'BatchOperation':
        self._batch.set_value(value)
        return self

    def set_result_and_value(self, value: Any) -> 'BatchOperation':
        self._batch.set_result_and_value(value)
        return self
