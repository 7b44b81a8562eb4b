#!/usr/bin/env python3
"""
Tests for filter validation, operator translation and column derivation
"""

import pytest

from tradingview_mcp_server.filters import (
    FilterValidationError,
    VALID_OPERATORS,
    convert_filter,
    derive_columns,
    validate_and_convert,
)
from tradingview_mcp_server.models import Predicate


class TestOperatorTranslation:

    @pytest.mark.parametrize("operator,operation", [
        ("greater", "greater"),
        ("less", "less"),
        ("greater_or_equal", "egreater"),
        ("less_or_equal", "eless"),
        ("equal", "equal"),
        ("not_equal", "nequal"),
        ("in_range", "in_range"),
        ("not_in_range", "not_in_range"),
        ("crosses", "crosses"),
        ("crosses_above", "crosses_above"),
        ("crosses_below", "crosses_below"),
        ("match", "match"),
    ])
    def test_operator_codes(self, operator, operation):
        value = [40, 60] if operator in ("in_range", "not_in_range") else 50
        predicate = convert_filter(0, {"field": "RSI", "operator": operator, "value": value})
        assert predicate == Predicate(left="RSI", operation=operation, right=value)

    def test_every_operator_covered(self):
        assert set(VALID_OPERATORS) == {
            "greater", "less", "greater_or_equal", "less_or_equal", "equal", "not_equal",
            "in_range", "not_in_range", "crosses", "crosses_above", "crosses_below", "match",
        }

    def test_field_to_field_comparison(self):
        predicate = convert_filter(0, {"field": "SMA50", "operator": "greater", "value": "SMA200"})
        assert predicate.right == "SMA200"

    def test_in_range_passthrough(self):
        predicate = convert_filter(0, {"field": "RSI", "operator": "in_range", "value": [45, 65]})
        assert predicate.operation == "in_range"
        assert predicate.right == [45, 65]

    def test_membership_list_of_strings(self):
        predicate = convert_filter(
            0, {"field": "exchange", "operator": "in_range", "value": ["NASDAQ", "NYSE", "CBOE"]}
        )
        assert predicate.right == ["NASDAQ", "NYSE", "CBOE"]

    def test_falsy_values_are_present(self):
        zero = convert_filter(0, {"field": "free_cash_flow_ttm", "operator": "greater", "value": 0})
        false = convert_filter(1, {"field": "is_primary", "operator": "equal", "value": False})
        assert zero.right == 0
        assert false.right is False

    def test_order_preserved(self):
        predicates = validate_and_convert([
            {"field": "a", "operator": "greater", "value": 1},
            {"field": "b", "operator": "less", "value": 2},
        ])
        assert [p.left for p in predicates] == ["a", "b"]

    def test_empty_list(self):
        assert validate_and_convert([]) == []


class TestValidationErrors:

    def test_missing_value(self):
        with pytest.raises(FilterValidationError) as exc:
            convert_filter(0, {"field": "RSI", "operator": "greater"})
        message = str(exc.value)
        assert "Invalid filter at index 0" in message
        assert "missing required properties value" in message
        assert "value: missing" in message
        assert "field: 'RSI'" in message

    def test_missing_operator_only(self):
        with pytest.raises(FilterValidationError) as exc:
            convert_filter(0, {"field": "RSI", "value": 50})
        message = str(exc.value)
        assert exc.value.index == 0
        assert "Invalid filter at index 0" in message
        assert "missing required properties operator" in message
        assert "(field: 'RSI', operator: missing, value: 50)" in message

    def test_missing_several_properties(self):
        with pytest.raises(FilterValidationError, match="missing required properties field, operator"):
            convert_filter(0, {"value": 10})

    def test_null_value_counts_as_missing(self):
        with pytest.raises(FilterValidationError, match="missing required properties value"):
            convert_filter(0, {"field": "RSI", "operator": "greater", "value": None})

    @pytest.mark.parametrize("raw,type_name", [
        (None, "null"),
        ("RSI > 50", "str"),
        (42, "int"),
        (["RSI", "greater", 50], "array"),
    ])
    def test_non_object_filter(self, raw, type_name):
        with pytest.raises(FilterValidationError) as exc:
            convert_filter(0, raw)
        assert f"got {type_name}" in str(exc.value)
        assert "expected object with {field, operator, value}" in str(exc.value)

    def test_unknown_operator_lists_valid_ones(self):
        with pytest.raises(FilterValidationError) as exc:
            convert_filter(0, {"field": "RSI", "operator": "between", "value": 1})
        message = str(exc.value)
        assert message.startswith("Invalid filter at index 0: Unknown operator: between")
        for op in VALID_OPERATORS:
            assert op in message

    def test_field_must_be_string(self):
        with pytest.raises(FilterValidationError, match="field must be a string"):
            convert_filter(0, {"field": 5, "operator": "greater", "value": 1})

    def test_error_cites_index_of_first_bad_filter(self):
        filters = [
            {"field": "a", "operator": "greater", "value": 1},
            {"field": "b", "operator": "less", "value": 2},
            {"field": "c", "operator": "greater"},
            {"field": "d", "operator": "nope", "value": 1},
        ]
        with pytest.raises(FilterValidationError) as exc:
            validate_and_convert(filters)
        assert exc.value.index == 2
        assert "index 2" in str(exc.value)

    def test_range_requires_list(self):
        with pytest.raises(FilterValidationError, match="expects \\[min, max\\]"):
            convert_filter(0, {"field": "RSI", "operator": "in_range", "value": 50})

    def test_numeric_range_requires_two_bounds(self):
        with pytest.raises(FilterValidationError, match="exactly 2 numbers"):
            convert_filter(0, {"field": "RSI", "operator": "not_in_range", "value": [1, 2, 3]})

    @pytest.mark.parametrize("operator", ["in_range", "not_in_range"])
    def test_empty_range_rejected(self, operator):
        filters = [
            {"field": "close", "operator": "greater", "value": 10},
            {"field": "RSI", "operator": operator, "value": []},
        ]
        with pytest.raises(FilterValidationError, match="got an empty array") as exc:
            validate_and_convert(filters)
        assert exc.value.index == 1
        assert "index 1" in str(exc.value)

    def test_is_value_error(self):
        assert issubclass(FilterValidationError, ValueError)


class TestDeriveColumns:

    def test_appends_filtered_fields(self):
        columns = derive_columns(
            ["name", "close"],
            [{"field": "RSI"}, {"field": "SMA50"}],
        )
        assert columns == ["name", "close", "RSI", "SMA50"]

    def test_no_duplicates(self):
        columns = derive_columns(
            ["name", "close", "close"],
            [{"field": "close"}, {"field": "RSI"}, {"field": "RSI"}],
        )
        assert columns == ["name", "close", "RSI"]

    def test_does_not_mutate_base(self):
        base = ["name"]
        derive_columns(base, [{"field": "RSI"}])
        assert base == ["name"]
