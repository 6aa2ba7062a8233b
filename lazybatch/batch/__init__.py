"""Sequential batch operations with hooks, skipping and cancellation."""

from lazybatch.batch.batch import Batch, new_batch
from lazybatch.batch.context import ExecutionContext, InvokeStrategy, LogContext, OperationContext
from lazybatch.batch.operation import BatchOperation

__all__ = [
    'Batch', 'BatchOperation', 'ExecutionContext', 'InvokeStrategy',
    'LogContext', 'OperationContext', 'new_batch',
]
