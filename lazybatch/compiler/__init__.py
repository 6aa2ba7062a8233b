"""Lambda-string compilation."""

from lazybatch.compiler.lambda_compiler import (
    LambdaCompiler,
    LambdaFunction,
    as_callback,
    as_func,
    fit_arguments,
)

__all__ = [
    'LambdaCompiler',
    'LambdaFunction',
    'as_callback',
    'as_func',
    'fit_arguments',
]
