"""
Lambda Compiler
===============

Turns arrow-function strings such as ``"(x, y) => x + y"`` into callables.

The body is parsed with the ``ast`` module, checked against a whitelist of
node types and then interpreted by a small tree-walking evaluator each time
the function is called. Nothing is handed to ``eval``/``exec``, so a lambda
string can only do what its whitelisted syntax allows:

    - literals, tuples, lists, dicts, sets and f-strings
    - arithmetic, comparison, boolean and conditional expressions
    - subscripts and slices
    - attribute access (``x.k`` reads ``x['k']`` on mappings); private
      names starting with ``_`` are rejected
    - calls of parameters, public methods and whitelisted builtins;
      ``str.format`` templates may not reach private names either

A body that ends with ``;`` is a statement list (``return``, simple
assignment, bare expressions), optionally wrapped in ``{ ... }``::

    "x => y = x * 2; return y + 1;"

Usage:
    >>> add = as_func("(x, y) => x + y")
    >>> add(2, 3)
    5
    >>> as_func("x => x.name")({"name": "a"})
    'a'
"""

import ast
import functools
import inspect
import logging
import operator
import re
import string
import textwrap
from collections.abc import Mapping
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from ..errors import InvalidExpression

logger = logging.getLogger(__name__)

# <ws> ( <params> ) <ws> =>
_ARROW = re.compile(r'^(\s*)(\(?)([^)]*?)(\)?)(\s*)=>', re.S)


BINARY_OPS = {
    ast.Add: operator.add, ast.Sub: operator.sub, ast.Mult: operator.mul,
    ast.Div: operator.truediv, ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod, ast.Pow: operator.pow,
    ast.LShift: operator.lshift, ast.RShift: operator.rshift,
    ast.BitAnd: operator.and_, ast.BitOr: operator.or_,
    ast.BitXor: operator.xor, ast.MatMult: operator.matmul,
}

UNARY_OPS = {
    ast.UAdd: operator.pos, ast.USub: operator.neg,
    ast.Not: operator.not_, ast.Invert: operator.invert,
}

COMPARE_OPS = {
    ast.Eq: operator.eq, ast.NotEq: operator.ne,
    ast.Lt: operator.lt, ast.LtE: operator.le,
    ast.Gt: operator.gt, ast.GtE: operator.ge,
    ast.Is: operator.is_, ast.IsNot: operator.is_not,
    ast.In: lambda a, b: a in b, ast.NotIn: lambda a, b: a not in b,
}

ALLOWED_NODES: FrozenSet[type] = frozenset({
    ast.Expression, ast.Module, ast.FunctionDef, ast.arguments,
    ast.Return, ast.Assign, ast.Expr, ast.Pass,
    ast.Constant, ast.Name, ast.Load, ast.Store,
    ast.BinOp, ast.UnaryOp, ast.BoolOp, ast.Compare, ast.IfExp,
    ast.Call, ast.keyword, ast.Attribute, ast.Subscript, ast.Slice,
    ast.Tuple, ast.List, ast.Dict, ast.Set,
    ast.JoinedStr, ast.FormattedValue,
    ast.And, ast.Or,
    *BINARY_OPS, *UNARY_OPS, *COMPARE_OPS,
})


class _Validator(ast.NodeVisitor):
    """Rejects every node outside the whitelist."""

    def __init__(self, expression: str):
        self.expression = expression

    def generic_visit(self, node: ast.AST):
        if type(node) not in ALLOWED_NODES:
            raise InvalidExpression(
                self.expression, f"'{type(node).__name__}' is not allowed in a lambda"
            )
        super().generic_visit(node)

    def visit_Name(self, node: ast.Name):
        if node.id.startswith('_'):
            raise InvalidExpression(self.expression, f"private name '{node.id}'")
        self.generic_visit(node)

    def visit_Attribute(self, node: ast.Attribute):
        if node.attr.startswith('_'):
            raise InvalidExpression(self.expression, f"private attribute '{node.attr}'")
        self.generic_visit(node)

    def visit_keyword(self, node: ast.keyword):
        if node.arg is None:
            raise InvalidExpression(self.expression, "'**' unpacking is not allowed")
        self.generic_visit(node)

    def visit_Assign(self, node: ast.Assign):
        for target in node.targets:
            if not isinstance(target, ast.Name):
                raise InvalidExpression(self.expression, "only simple names can be assigned")
        self.generic_visit(node)


_FORMAT_METHODS = ('format', 'format_map')
_PRIVATE_FIELD = re.compile(r'[.\[]\s*_')


def _format_template(func: Any, args: List[Any]) -> Optional[str]:
    """Return the template string when ``func`` is ``str.format``/``str.format_map``."""
    receiver = getattr(func, '__self__', None)
    if isinstance(receiver, str) and getattr(func, '__name__', '') in _FORMAT_METHODS:
        return receiver
    if func is str.format or func is str.format_map:
        return args[0] if args and isinstance(args[0], str) else None
    return None


def _check_format_fields(template: str, source: str):
    """Format fields may not reach private attributes or keys (``{0.__class__}``)."""
    for _, field_name, format_spec, _ in string.Formatter().parse(template):
        if field_name and _PRIVATE_FIELD.search(field_name):
            raise InvalidExpression(source, f"private name in format field {field_name!r}")
        if format_spec:
            _check_format_fields(format_spec, source)


class _Evaluator:
    """Tree-walking interpreter for validated lambda bodies."""

    def __init__(self, scope: Dict[str, Any], builtins: Dict[str, Callable], source: str = ''):
        self.scope = scope
        self.builtins = builtins
        self.source = source

    def run(self, body) -> Any:
        if isinstance(body, ast.Expression):
            return self.eval(body.body)

        for stmt in body:
            if isinstance(stmt, ast.Return):
                return None if stmt.value is None else self.eval(stmt.value)
            if isinstance(stmt, ast.Assign):
                value = self.eval(stmt.value)
                for target in stmt.targets:
                    self.scope[target.id] = value
            elif isinstance(stmt, ast.Expr):
                self.eval(stmt.value)
        return None

    def eval(self, node: ast.AST) -> Any:
        method = getattr(self, f'_eval_{type(node).__name__}')
        return method(node)

    def _eval_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def _eval_Name(self, node: ast.Name) -> Any:
        if node.id in self.scope:
            return self.scope[node.id]
        if node.id in self.builtins:
            return self.builtins[node.id]
        raise NameError(f"name '{node.id}' is not defined")

    def _eval_BinOp(self, node: ast.BinOp) -> Any:
        return BINARY_OPS[type(node.op)](self.eval(node.left), self.eval(node.right))

    def _eval_UnaryOp(self, node: ast.UnaryOp) -> Any:
        return UNARY_OPS[type(node.op)](self.eval(node.operand))

    def _eval_BoolOp(self, node: ast.BoolOp) -> Any:
        is_and = isinstance(node.op, ast.And)
        value = None
        for operand in node.values:
            value = self.eval(operand)
            if is_and and not value:
                return value
            if not is_and and value:
                return value
        return value

    def _eval_Compare(self, node: ast.Compare) -> bool:
        left = self.eval(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.eval(comparator)
            if not COMPARE_OPS[type(op)](left, right):
                return False
            left = right
        return True

    def _eval_IfExp(self, node: ast.IfExp) -> Any:
        return self.eval(node.body) if self.eval(node.test) else self.eval(node.orelse)

    def _eval_Attribute(self, node: ast.Attribute) -> Any:
        value = self.eval(node.value)
        if isinstance(value, Mapping) and node.attr in value:
            return value[node.attr]
        return getattr(value, node.attr)

    def _eval_Subscript(self, node: ast.Subscript) -> Any:
        return self.eval(node.value)[self.eval(node.slice)]

    def _eval_Slice(self, node: ast.Slice) -> slice:
        bounds = [None if n is None else self.eval(n) for n in (node.lower, node.upper, node.step)]
        return slice(*bounds)

    def _eval_Call(self, node: ast.Call) -> Any:
        func = self.eval(node.func)
        args = [self.eval(a) for a in node.args]
        kwargs = {kw.arg: self.eval(kw.value) for kw in node.keywords if kw.arg}
        template = _format_template(func, args)
        if template is not None:
            _check_format_fields(template, self.source)
        return func(*args, **kwargs)

    def _eval_Tuple(self, node: ast.Tuple) -> tuple:
        return tuple(self.eval(e) for e in node.elts)

    def _eval_List(self, node: ast.List) -> list:
        return [self.eval(e) for e in node.elts]

    def _eval_Set(self, node: ast.Set) -> set:
        return {self.eval(e) for e in node.elts}

    def _eval_Dict(self, node: ast.Dict) -> dict:
        return {self.eval(k): self.eval(v) for k, v in zip(node.keys, node.values)}

    def _eval_JoinedStr(self, node: ast.JoinedStr) -> str:
        return ''.join(str(self.eval(v)) for v in node.values)

    def _eval_FormattedValue(self, node: ast.FormattedValue) -> str:
        value = self.eval(node.value)
        if node.conversion == ord('r'):
            value = repr(value)
        elif node.conversion == ord('s'):
            value = str(value)
        elif node.conversion == ord('a'):
            value = ascii(value)
        spec = '' if node.format_spec is None else self.eval(node.format_spec)
        return format(value, spec)


class LambdaFunction:
    """
    A compiled lambda string.

    Missing arguments are bound to ``None``; passing more arguments than
    parameters raises ``TypeError`` like a regular function would.
    """

    def __init__(self, source: str, params: Tuple[str, ...], body, builtins: Dict[str, Callable]):
        self.source = source
        self.params = params
        self._body = body
        self._builtins = builtins
        self.__signature__ = inspect.Signature([
            inspect.Parameter(p, inspect.Parameter.POSITIONAL_OR_KEYWORD, default=None)
            for p in params
        ])

    @property
    def arity(self) -> int:
        return len(self.params)

    def __call__(self, *args):
        if len(args) > len(self.params):
            raise TypeError(
                f"{self.source!r} takes {len(self.params)} arguments but {len(args)} were given"
            )
        scope = dict(zip(self.params, args))
        for name in self.params[len(args):]:
            scope[name] = None
        return _Evaluator(scope, self._builtins, self.source).run(self._body)

    def __repr__(self):
        return f"<LambdaFunction {self.source!r}>"


class LambdaCompiler:
    """
    Compiles arrow-function strings into ``LambdaFunction`` objects.

    Compiled functions are cached by source text; the oldest entry is
    dropped once ``cache_size`` is exceeded.

    Usage:
        >>> compiler = LambdaCompiler()
        >>> is_even = compiler.compile("x => x % 2 == 0")
        >>> is_even(4)
        True
    """

    DEFAULT_BUILTINS: Dict[str, Callable] = {
        'abs': abs, 'all': all, 'any': any, 'bool': bool, 'dict': dict,
        'float': float, 'int': int, 'len': len, 'list': list, 'max': max,
        'min': min, 'round': round, 'set': set, 'sorted': sorted,
        'str': str, 'sum': sum, 'tuple': tuple,
    }
    DEFAULT_CACHE_SIZE = 256

    def __init__(
        self,
        allowed_builtins: Optional[Dict[str, Callable]] = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ):
        self.builtins = dict(self.DEFAULT_BUILTINS if allowed_builtins is None else allowed_builtins)
        self.cache_size = cache_size
        self._cache: Dict[str, LambdaFunction] = {}

    def compile(self, expression: str) -> LambdaFunction:
        """Compile a lambda string, raising ``InvalidExpression`` on bad input."""
        cached = self._cache.get(expression)
        if cached is not None:
            return cached

        params, body_source = self._split(expression)
        body = self._parse_body(expression, body_source)
        func = LambdaFunction(expression, params, body, self.builtins)

        if self.cache_size > 0:
            if len(self._cache) >= self.cache_size:
                self._cache.pop(next(iter(self._cache)))
            self._cache[expression] = func

        logger.debug(f"Compiled lambda {expression!r} with {len(params)} parameter(s)")
        return func

    def as_func(self, value: Any, throw_on_invalid: bool = True) -> Any:
        """
        Return ``value`` as a callable.

        Callables and falsy values are returned unchanged. Anything else is
        compiled as a lambda string; if that fails, ``InvalidExpression`` is
        raised, or ``None`` is returned when ``throw_on_invalid`` is false.
        """
        if callable(value) or not value:
            return value

        try:
            return self.compile(str(value))
        except InvalidExpression:
            if throw_on_invalid:
                raise
            return None

    def clear_cache(self):
        self._cache.clear()

    def _split(self, expression: str) -> Tuple[Tuple[str, ...], str]:
        match = _ARROW.match(expression)
        if not match:
            raise InvalidExpression(expression, "no valid lambda expression")

        open_paren, raw_params, close_paren = match.group(2), match.group(3), match.group(4)
        if bool(open_paren) != bool(close_paren):
            raise InvalidExpression(expression, "mismatched parentheses in parameter list")

        params: List[str] = []
        if raw_params.strip():
            params = [p.strip() for p in raw_params.split(',')]
            if not open_paren and len(params) > 1:
                raise InvalidExpression(expression, "multiple parameters need parentheses")
            for p in params:
                if not p.isidentifier() or p.startswith('_'):
                    raise InvalidExpression(expression, f"invalid parameter name {p!r}")
            if len(set(params)) != len(params):
                raise InvalidExpression(expression, "duplicate parameter name")

        return tuple(params), expression[match.end():].strip()

    def _parse_body(self, expression: str, body: str):
        # "{ ... }" is a block only when it holds statements
        if body.startswith('{') and body.endswith('}') and body[1:-1].strip().endswith(';'):
            body = body[1:-1].strip()

        if not body:
            return []

        try:
            if body.endswith(';'):
                source = "def lambda_body():\n" + textwrap.indent(body, '    ')
                tree = ast.parse(source, mode='exec')
                _Validator(expression).visit(tree)
                return tree.body[0].body
            tree = ast.parse(body, mode='eval')
        except SyntaxError as e:
            raise InvalidExpression(expression, f"syntax error ({e.msg})") from e

        _Validator(expression).visit(tree)
        return tree


def fit_arguments(func: Callable, default_arity: int = 1) -> Callable:
    """
    Wrap ``func`` so it can be called with surplus positional arguments.

    Item callbacks are invoked as ``f(item, index, ctx)``; a one-parameter
    function only receives ``item``. Callables without an introspectable
    signature receive ``default_arity`` arguments.
    """
    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        limit = default_arity
    else:
        if any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
            return func
        limit = sum(
            1 for p in params
            if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        )

    @functools.wraps(func)
    def fitted(*args):
        return func(*args[:limit])

    return fitted


_default_compiler = LambdaCompiler()


def as_func(value: Any, throw_on_invalid: bool = True) -> Any:
    """Module-level ``LambdaCompiler.as_func`` using a shared compiler."""
    return _default_compiler.as_func(value, throw_on_invalid)


def as_callback(value: Any, default_arity: int = 1) -> Optional[Callable]:
    """``as_func`` followed by ``fit_arguments``; falsy values give ``None``."""
    func = as_func(value)
    if not func:
        return None
    return fit_arguments(func, default_arity)
