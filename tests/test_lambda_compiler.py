"""
Tests for the lambda compiler.

Validates:
  - Arrow syntax parsing (bare and parenthesized parameter lists)
  - Expression and statement-list bodies
  - Rejection of malformed and forbidden expressions
  - Argument fitting for item callbacks
"""

import inspect

import pytest
from lazybatch.compiler.lambda_compiler import (
    LambdaCompiler,
    LambdaFunction,
    as_callback,
    as_func,
    fit_arguments,
)
from lazybatch.errors import InvalidExpression


# ---------- as_func ----------

class TestAsFunc:
    def test_two_parameters(self):
        assert as_func("(x, y) => x + y")(2, 3) == 5

    def test_bare_parameter(self):
        assert as_func("x => x * 2")(21) == 42

    def test_no_parameters(self):
        assert as_func("() => 7")() == 7

    def test_callable_passthrough(self):
        def f(x):
            return x
        assert as_func(f) is f

    def test_falsy_passthrough(self):
        assert as_func(None) is None
        assert as_func('') == ''

    def test_invalid_raises(self):
        with pytest.raises(InvalidExpression):
            as_func("bad syntax")

    def test_invalid_without_throw(self):
        assert as_func("bad syntax", throw_on_invalid=False) is None

    def test_invalid_expression_is_value_error(self):
        with pytest.raises(ValueError):
            as_func("x => x +")

    def test_mismatched_parentheses(self):
        with pytest.raises(InvalidExpression):
            as_func("(x => x")

    def test_multiple_parameters_need_parentheses(self):
        with pytest.raises(InvalidExpression):
            as_func("x, y => x")

    def test_duplicate_parameter(self):
        with pytest.raises(InvalidExpression):
            as_func("(x, x) => x")


# ---------- Body grammar ----------

class TestLambdaBodies:
    def test_mapping_attribute_access(self):
        assert as_func("x => x.name")({'name': 'a'}) == 'a'

    def test_object_attribute_access(self):
        class Item:
            def __init__(self):
                self.size = 3
        assert as_func("x => x.size * 2")(Item()) == 6

    def test_method_call(self):
        assert as_func("s => s.upper()")('abc') == 'ABC'

    def test_subscript_and_slice(self):
        assert as_func("xs => xs[1:]")([1, 2, 3]) == [2, 3]
        assert as_func("d => d['k']")({'k': 5}) == 5

    def test_conditional(self):
        f = as_func("x => 'big' if x > 10 else 'small'")
        assert f(11) == 'big'
        assert f(1) == 'small'

    def test_boolean_operators(self):
        f = as_func("(a, b) => a and not b")
        assert f(True, False) is True
        assert f(True, True) is False

    def test_chained_comparison(self):
        f = as_func("x => 0 < x <= 10")
        assert f(5)
        assert not f(11)

    def test_membership(self):
        assert as_func("x => x in (1, 2)")(2)
        assert as_func("x => x not in [1, 2]")(3)

    def test_literals(self):
        assert as_func("x => {'a': x, 'b': [x, x]}")(1) == {'a': 1, 'b': [1, 1]}
        assert as_func("x => {x, x}")(1) == {1}

    def test_f_string(self):
        assert as_func("x => f'{x}!'")(5) == '5!'
        assert as_func("x => f'{x:.1f}'")(2) == '2.0'

    def test_builtins(self):
        assert as_func("xs => len(xs)")([1, 2]) == 2
        assert as_func("xs => sum(xs) / len(xs)")([1, 3]) == 2
        assert as_func("x => str(x)")(3) == '3'

    def test_statement_list(self):
        assert as_func("x => y = x * 2; return y + 1;")(3) == 7

    def test_statement_block(self):
        assert as_func("x => { return x * 3; }")(2) == 6

    def test_statement_list_without_return(self):
        assert as_func("x => y = x;")(1) is None

    def test_missing_arguments_are_none(self):
        assert as_func("(a, b) => b is None")(1) is True

    def test_too_many_arguments(self):
        with pytest.raises(TypeError):
            as_func("x => x")(1, 2)


# ---------- Sandbox ----------

class TestSandbox:
    def test_private_name_rejected(self):
        with pytest.raises(InvalidExpression):
            as_func("x => __import__('os')")

    def test_private_attribute_rejected(self):
        with pytest.raises(InvalidExpression):
            as_func("x => x.__class__")

    def test_comprehension_rejected(self):
        with pytest.raises(InvalidExpression):
            as_func("xs => [i for i in xs]")

    def test_nested_lambda_rejected(self):
        with pytest.raises(InvalidExpression):
            as_func("x => lambda: x")

    def test_import_statement_rejected(self):
        with pytest.raises(InvalidExpression):
            as_func("x => import os;")

    def test_attribute_assignment_rejected(self):
        with pytest.raises(InvalidExpression):
            as_func("x => x.y = 1;")

    def test_unknown_builtin(self):
        f = as_func("x => open(x)")
        with pytest.raises(NameError):
            f('/tmp/file')

    def test_format_field_private_attribute_rejected(self):
        f = as_func("x => '{0.__globals__[__name__]}'.format(x)")
        with pytest.raises(InvalidExpression):
            f(fit_arguments)

    def test_format_map_private_attribute_rejected(self):
        f = as_func("x => '{v._secret}'.format_map(x)")
        with pytest.raises(InvalidExpression):
            f({'v': 1})

    def test_unbound_format_private_index_rejected(self):
        f = as_func("x => str.format('{0[_key]}', x)")
        with pytest.raises(InvalidExpression):
            f({'_key': 1})

    def test_nested_format_spec_checked(self):
        f = as_func("x => '{0:{1.__class__}}'.format(x, x)")
        with pytest.raises(InvalidExpression):
            f(1)

    def test_public_format_fields_allowed(self):
        assert as_func("x => '{0}-{1}'.format(x, 2)")(1) == '1-2'
        assert as_func("x => '{0[k]}:{0[n]:>3}'.format(x)")({'k': 'a', 'n': 7}) == 'a:  7'
        assert as_func("x => '{k}'.format_map(x)")({'k': 'b'}) == 'b'


# ---------- LambdaCompiler ----------

class TestLambdaCompiler:
    def setup_method(self):
        self.compiler = LambdaCompiler()

    def test_compile_returns_lambda_function(self):
        f = self.compiler.compile("(a, b) => a - b")
        assert isinstance(f, LambdaFunction)
        assert f.arity == 2
        assert f.params == ('a', 'b')
        assert list(inspect.signature(f).parameters) == ['a', 'b']

    def test_cache(self):
        f = self.compiler.compile("x => x")
        assert self.compiler.compile("x => x") is f

    def test_cache_eviction(self):
        compiler = LambdaCompiler(cache_size=1)
        f = compiler.compile("x => x")
        compiler.compile("x => x + 1")
        assert compiler.compile("x => x") is not f

    def test_clear_cache(self):
        f = self.compiler.compile("x => x")
        self.compiler.clear_cache()
        assert self.compiler.compile("x => x") is not f

    def test_custom_builtins(self):
        compiler = LambdaCompiler(allowed_builtins={'double': lambda v: v * 2})
        assert compiler.compile("x => double(x)")(3) == 6
        with pytest.raises(NameError):
            compiler.compile("xs => len(xs)")([1])

    def test_as_func_method(self):
        assert self.compiler.as_func("x => x + 1")(1) == 2
        assert self.compiler.as_func("nope", throw_on_invalid=False) is None


# ---------- Argument fitting ----------

class TestFitArguments:
    def test_trims_surplus_arguments(self):
        f = fit_arguments(lambda x: x)
        assert f(1, 2, 3) == 1

    def test_keeps_requested_arguments(self):
        f = fit_arguments(lambda x, i: (x, i))
        assert f('a', 1, object()) == ('a', 1)

    def test_var_positional_untouched(self):
        def f(*args):
            return args
        assert fit_arguments(f) is f

    def test_default_arity_without_signature(self):
        f = fit_arguments(max, default_arity=2)
        assert f(3, 5, 9) == 5

    def test_as_callback(self):
        f = as_callback("x => x * 2")
        assert f(2, 0, None) == 4
        assert as_callback(None) is None
