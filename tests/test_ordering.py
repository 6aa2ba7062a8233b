"""
Tests for ordering, grouping, joining, casting and the factory helpers.

Validates:
  - Stable order_by / then_by with the default and custom comparers
  - First-seen grouping and nested-loop joins
  - The closed set of cast / of_type tags
  - Range, repeat and sort short-hands
"""

import pytest
from lazybatch.enumerable import (
    Grouping,
    OrderedSequence,
    create,
    each,
    from_array,
    from_range,
    repeat,
    sort,
    sort_desc,
)
from lazybatch.enumerable import ordering
from lazybatch.enumerable.casting import normalize_type_name
from lazybatch.data.observable import Observable, ObservableList
from lazybatch.errors import UnsupportedCast


# ---------- Ordering ----------

class TestOrdering:
    def setup_method(self):
        self.rows = [{'a': 1, 'b': 2}, {'a': 1, 'b': 1}, {'a': 0, 'b': 5}]

    def test_order(self):
        assert from_array([3, 1, 2]).order().to_array() == [1, 2, 3]

    def test_order_descending(self):
        assert from_array([3, 1, 2]).order_descending().to_array() == [3, 2, 1]

    def test_order_by_is_stable(self):
        result = from_array(self.rows).order_by("x => x['a']").to_array()
        assert result == [{'a': 0, 'b': 5}, {'a': 1, 'b': 2}, {'a': 1, 'b': 1}]

    def test_order_by_then_by(self):
        result = from_array(self.rows).order_by("x => x.a").then_by("x => x.b").to_array()
        assert result == [{'a': 0, 'b': 5}, {'a': 1, 'b': 1}, {'a': 1, 'b': 2}]

    def test_then_by_descending(self):
        result = (from_array(self.rows)
                  .order_by("x => x.a")
                  .then_by_descending("x => x.b")
                  .to_array())
        assert result == [{'a': 0, 'b': 5}, {'a': 1, 'b': 2}, {'a': 1, 'b': 1}]

    def test_order_by_descending_then_by(self):
        result = (from_array(self.rows)
                  .order_by_descending("x => x.a")
                  .then_by("x => x.b")
                  .to_array())
        assert result == [{'a': 1, 'b': 1}, {'a': 1, 'b': 2}, {'a': 0, 'b': 5}]

    def test_then(self):
        result = from_array([3, 1, 4, 2]).order_by("x => x % 2").then().to_array()
        assert result == [2, 4, 1, 3]

    def test_then_descending(self):
        result = from_array([3, 1, 4, 2]).order_by("x => x % 2").then_descending().to_array()
        assert result == [4, 2, 3, 1]

    def test_three_levels(self):
        rows = [(1, 2, 'b'), (1, 2, 'a'), (0, 9, 'z'), (1, 1, 'c')]
        result = (from_array(rows)
                  .order_by("x => x[0]")
                  .then_by("x => x[1]")
                  .then_by("x => x[2]")
                  .to_array())
        assert result == [(0, 9, 'z'), (1, 1, 'c'), (1, 2, 'a'), (1, 2, 'b')]

    def test_custom_comparer(self):
        result = from_array(['bb', 'a', 'ccc']).order_by("x => len(x)", "(x, y) => y - x").to_array()
        assert result == ['ccc', 'bb', 'a']

    def test_ordered_sequence_type(self):
        ordered = from_array([2, 1]).order()
        assert isinstance(ordered, OrderedSequence)
        assert ordered.reset().to_array() == [1, 2]

    def test_projection_before_order(self):
        result = from_array([1, 2, 3]).select("x => -x").order().to_array()
        assert result == [-3, -2, -1]

    def test_module_exports(self):
        assert ordering.__all__ == ['OrderedSequence']


# ---------- Grouping ----------

class TestGrouping:
    def setup_method(self):
        self.rows = [{'k': 'a', 'v': 1}, {'k': 'b', 'v': 2}, {'k': 'a', 'v': 3}]

    def test_group_by(self):
        groups = from_array(self.rows).group_by("x => x.k").to_array()
        assert [g.key for g in groups] == ['a', 'b']
        assert groups[0].select("x => x.v").to_array() == [1, 3]
        assert isinstance(groups[0], Grouping)

    def test_group_by_unhashable_keys(self):
        groups = from_array([1, 2, 3]).group_by("x => [x % 2]").to_array()
        assert [g.key for g in groups] == [[1], [0]]

    def test_group_by_custom_key_comparer(self):
        groups = from_array(['a', 'A', 'b']).group_by("x => x", "(x, y) => x.lower() == y.lower()").to_array()
        assert [g.to_array() for g in groups] == [['a', 'A'], ['b']]


# ---------- Joins ----------

class TestJoins:
    def setup_method(self):
        self.owners = [{'id': 1, 'name': 'ann'}, {'id': 2, 'name': 'bob'}, {'id': 3, 'name': 'cy'}]
        self.pets = [{'owner': 1, 'pet': 'cat'}, {'owner': 2, 'pet': 'dog'}, {'owner': 1, 'pet': 'fish'}]

    def test_join(self):
        result = from_array(self.owners).join(
            self.pets,
            "o => o.id",
            "p => p.owner",
            "(o, p) => o.name + ':' + p.pet",
        ).to_array()
        assert result == ['ann:cat', 'ann:fish', 'bob:dog']

    def test_group_join(self):
        result = from_array(self.owners).group_join(
            self.pets,
            "o => o.id",
            "p => p.owner",
            lambda o, pets: (o['name'], pets.select("p => p.pet").to_array()),
        ).to_array()
        assert result == [('ann', ['cat', 'fish']), ('bob', ['dog']), ('cy', [])]


# ---------- Casting ----------

class TestCasting:
    def test_cast_int(self):
        assert from_array(['1', '2', 3.7, None]).cast('int').to_array() == [1, 2, 3, 0]

    def test_cast_int_from_float_string(self):
        assert from_array(['2.5']).cast('integer').to_array() == [2]

    def test_cast_str(self):
        assert from_array([1, None, 0]).cast('string').to_array() == ['1', '', '0']

    def test_cast_number(self):
        assert from_array(['1.5', 2, None]).cast('number').to_array() == [1.5, 2, 0.0]

    def test_cast_bool(self):
        assert from_array([0, 1, '']).cast(' bool ').to_array() == [False, True, False]

    def test_cast_null(self):
        assert from_array([1, 2]).cast('undefined').to_array() == [None, None]

    def test_cast_identity(self):
        assert from_array([1, 'a']).cast('').to_array() == [1, 'a']
        assert from_array([1]).cast(None).to_array() == [1]

    def test_cast_function(self):
        funcs = from_array([1, 2]).cast('func').to_array()
        assert [f() for f in funcs] == [1, 2]

    def test_cast_containers(self):
        assert from_array([(1, 2)]).cast('array').to_array() == [[1, 2]]
        observables = from_array([{'a': 1}]).cast('observable').to_array()
        assert isinstance(observables[0], Observable)
        lists = from_array([[1]]).cast('observablearray').to_array()
        assert isinstance(lists[0], ObservableList)

    def test_cast_composes_with_select(self):
        assert from_array([1, 2]).select("x => x * 2").cast('str').to_array() == ['2', '4']

    def test_unsupported_cast(self):
        with pytest.raises(UnsupportedCast):
            from_array([1]).cast('decimal')

    def test_of_type(self):
        items = [1, 'a', 2.5, None, True, [1]]
        assert from_array(items).of_type('number').to_array() == [1, 2.5]
        assert from_array(items).of_type('str').to_array() == ['a']
        assert from_array(items).of_type('null').to_array() == [None]
        assert from_array(items).of_type('boolean').to_array() == [True]
        assert from_array(items).of_type('array').to_array() == [[1]]

    def test_of_type_sequence(self):
        inner = from_array([1])
        assert from_array([inner, [1]]).of_type('seq').to_array() == [inner]

    def test_of_type_unsupported(self):
        with pytest.raises(UnsupportedCast):
            from_array([1]).of_type('date')

    def test_cast_non_numeric_string_raises(self):
        for tag in ('int', 'number', 'float'):
            with pytest.raises(ValueError):
                from_array(['abc']).cast(tag).to_array()

    def test_normalize_type_name(self):
        assert normalize_type_name(' Integer ') == 'int'
        assert normalize_type_name('ObservableArray') == 'observablearray'


# ---------- Factory ----------

class TestFactory:
    def test_create(self):
        assert create(1, 2, 3).to_array() == [1, 2, 3]

    def test_from_range(self):
        assert from_range(1, 3).to_array() == [1, 2, 3]

    def test_from_range_step(self):
        assert from_range(0, 3, 5).to_array() == [0, 5, 10]

    def test_from_range_function(self):
        assert from_range(1, 4, "x => x * 2").to_array() == [1, 2, 4, 8]

    def test_from_range_info(self):
        infos = []

        def step(value, info):
            infos.append(info)
            return value + 1

        from_range(10, 2, step)
        assert infos[0] == {'remaining_count': 2, 'start_value': 10, 'total_count': 2}

    def test_repeat(self):
        assert repeat('a', 3).to_array() == ['a', 'a', 'a']
        assert repeat('a', 0).to_array() == []

    def test_each(self):
        seen = []
        assert each([1, 2], lambda x: seen.append(x) or x) == 2
        assert seen == [1, 2]

    def test_sort(self):
        assert sort([3, 1, 2]).to_array() == [1, 2, 3]
        assert sort_desc([3, 1, 2]).to_array() == [3, 2, 1]

    def test_sort_with_selector(self):
        assert sort(['bb', 'a'], None, "x => len(x)").to_array() == ['a', 'bb']
