"""
Unit tests for value-level type inference
"""

import math

import pytest

from featurelab.type_inference import (
    column_types,
    infer_type,
    is_mixed,
    numeric_columns,
    numeric_values,
    stringify,
    to_number,
)


class TestInferType:
    """Test cases for infer_type"""

    @pytest.mark.parametrize("value", [None, "", float("nan")])
    def test_missing_values_are_null(self, value):
        assert infer_type(value) == "null"

    def test_boolean_before_number(self):
        assert infer_type(True) == "boolean"
        assert infer_type(False) == "boolean"

    @pytest.mark.parametrize("value", [42, 3.5, "42", " 7.25 ", "-3", "1e3"])
    def test_numbers(self, value):
        assert infer_type(value) == "number"

    def test_bare_number_is_never_a_date(self):
        """A plain integer string is claimed as number before date parsing"""
        assert infer_type("20240115") == "number"

    @pytest.mark.parametrize("value", ["2024-01-15", "12/05/2023", "2024-01-15 10:30:00"])
    def test_dates_need_a_separator(self, value):
        assert infer_type(value) == "date"

    @pytest.mark.parametrize("value", ["hello", "North America", "inf", "1_000", "well-known"])
    def test_strings(self, value):
        assert infer_type(value) == "string"


class TestNumberCoercion:
    """Test cases for to_number and stringify"""

    def test_non_finite_and_booleans_are_rejected(self):
        assert to_number("nan") is None
        assert to_number(float("inf")) is None
        assert to_number(True) is None
        assert to_number("abc") is None

    def test_numeric_strings_are_coerced(self):
        assert to_number("12") == 12.0
        assert math.isclose(to_number("0.5"), 0.5)

    def test_stringify(self):
        assert stringify(None) == ""
        assert stringify(True) == "true"
        assert stringify(3.0) == "3"
        assert stringify(2.5) == "2.5"
        assert stringify("x") == "x"


class TestColumnTypes:
    """Test cases for column type sets"""

    def test_type_sets_in_first_seen_order(self):
        rows = [{"a": 1, "b": "x"}, {"a": "", "b": "y"}, {"a": 3, "b": True}]
        types = column_types(rows)

        assert types["a"] == ["number", "null"]
        assert types["b"] == ["string", "boolean"]

    def test_null_counts_towards_mixed(self):
        assert is_mixed(["number", "null"])
        assert not is_mixed(["number"])

    def test_missing_key_is_treated_as_empty(self):
        rows = [{"a": 1, "b": 2}, {"a": 3}]
        assert column_types(rows)["b"] == ["number", "null"]

    def test_empty_table(self):
        assert column_types([]) == {}
        assert numeric_columns([]) == []

    def test_numeric_values_drop_non_numeric(self):
        rows = [{"x": 1}, {"x": ""}, {"x": "n/a"}, {"x": "3"}]
        assert numeric_columns(rows) == ["x"]
        assert numeric_values(rows, "x") == [1.0, 3.0]
