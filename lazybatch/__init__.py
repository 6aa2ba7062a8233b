"""
LazyBatch: Lazy Sequences and Sequential Batch Operations for Python
====================================================================

LazyBatch bundles two small engines that share one callback convention:
anywhere a function is expected, an arrow-function string such as
``"x => x * 2"`` may be passed instead.

Core Components:
    - compiler: sandboxed lambda-string compiler (AST based, no eval)
    - enumerable: pull-based sequences with LINQ-style operators
    - batch: ordered operation pipelines with hooks, skipping and cancellation
    - data: observable key/value bag and list shared by batch steps

Usage:
    >>> import lazybatch
    >>> lazybatch.from_array([3, 1, 2]).where("x => x > 1").order().to_array()
    [2, 3]

    >>> (lazybatch.new_batch(lambda ctx: ctx.set_result_and_value(1))
    ...     .next("ctx => ctx.set_result_and_value(ctx.value + 1)")
    ...     .start())
    2
"""

__version__ = "1.0.0"
__author__ = "LazyBatch Team"

from lazybatch.compiler.lambda_compiler import LambdaCompiler, as_func
from lazybatch.enumerable import (
    Grouping,
    OrderedSequence,
    Sequence,
    as_enumerable,
    create,
    each,
    from_array,
    from_iterable,
    from_object,
    from_range,
    is_enumerable,
    repeat,
    sort,
    sort_desc,
)
from lazybatch.batch import (
    Batch,
    BatchOperation,
    ExecutionContext,
    InvokeStrategy,
    OperationContext,
    new_batch,
)
from lazybatch.data import Observable, ObservableList
from lazybatch.utils.lazy import Lazy
from lazybatch.errors import (
    DuplicateOperationId,
    EmptySequence,
    InvalidExpression,
    InvalidSequenceSource,
    LazyBatchError,
    MultipleMatches,
    NotResettable,
    StepError,
    UnsupportedCast,
)

__all__ = [
    # Compiler
    'LambdaCompiler',
    'as_func',
    # Enumerable
    'Grouping',
    'OrderedSequence',
    'Sequence',
    'as_enumerable',
    'create',
    'each',
    'from_array',
    'from_iterable',
    'from_object',
    'from_range',
    'is_enumerable',
    'repeat',
    'sort',
    'sort_desc',
    # Batch
    'Batch',
    'BatchOperation',
    'ExecutionContext',
    'InvokeStrategy',
    'OperationContext',
    'new_batch',
    # Data
    'Lazy',
    'Observable',
    'ObservableList',
    # Errors
    'DuplicateOperationId',
    'EmptySequence',
    'InvalidExpression',
    'InvalidSequenceSource',
    'LazyBatchError',
    'MultipleMatches',
    'NotResettable',
    'StepError',
    'UnsupportedCast',
]
