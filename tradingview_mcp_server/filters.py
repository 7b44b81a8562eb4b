"""
Filter translation for the TradingView scanner.
Validates caller filters of the form {field, operator, value} and converts them
to scanner predicates {left, operation, right}.
"""
from collections.abc import Mapping
from numbers import Number
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import Predicate

# Caller-facing operator -> scanner operation code
OPERATOR_MAP: Dict[str, str] = {
    "greater": "greater",
    "less": "less",
    "greater_or_equal": "egreater",
    "less_or_equal": "eless",
    "equal": "equal",
    "not_equal": "nequal",
    "in_range": "in_range",
    "not_in_range": "not_in_range",
    "crosses": "crosses",
    "crosses_above": "crosses_above",
    "crosses_below": "crosses_below",
    "match": "match",
}

VALID_OPERATORS = tuple(OPERATOR_MAP)

RANGE_OPERATORS = frozenset({"in_range", "not_in_range"})

REQUIRED_PROPERTIES = ("field", "operator", "value")


class FilterValidationError(ValueError):
    """Raised for a malformed caller filter; carries the offending index."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _check_range_value(index: int, operator: str, value: Any) -> None:
    if not isinstance(value, (list, tuple)):
        raise FilterValidationError(
            f"Invalid filter at index {index}: operator '{operator}' expects "
            f"[min, max] or a list of strings, got {_type_name(value)}",
            index
        )
    if not value:
        raise FilterValidationError(
            f"Invalid filter at index {index}: operator '{operator}' expects "
            f"[min, max] or a list of strings, got an empty array",
            index
        )
    if all(_is_number(v) for v in value) and len(value) != 2:
        raise FilterValidationError(
            f"Invalid filter at index {index}: operator '{operator}' expects "
            f"exactly 2 numbers [min, max], got {len(value)}",
            index
        )


def convert_filter(index: int, raw: Any) -> Predicate:
    """Validate one caller filter and return its scanner predicate."""
    if not isinstance(raw, Mapping):
        raise FilterValidationError(
            f"Invalid filter at index {index}: expected object with "
            f"{{field, operator, value}}, got {_type_name(raw)}",
            index
        )

    # Presence, not truthiness: value may legitimately be 0 or False
    missing = [name for name in REQUIRED_PROPERTIES if name not in raw or raw[name] is None]
    if missing:
        state = ", ".join(
            f"{name}: {'missing' if name in missing else repr(raw[name])}"
            for name in REQUIRED_PROPERTIES
        )
        raise FilterValidationError(
            f"Invalid filter at index {index}: missing required properties "
            f"{', '.join(missing)} ({state})",
            index
        )

    if not isinstance(raw["field"], str):
        raise FilterValidationError(
            f"Invalid filter at index {index}: field must be a string, got {_type_name(raw['field'])}",
            index
        )

    operator = raw["operator"]
    operation = OPERATOR_MAP.get(operator) if isinstance(operator, str) else None
    if operation is None:
        raise FilterValidationError(
            f"Invalid filter at index {index}: Unknown operator: {operator}. "
            f"Valid operators: {', '.join(VALID_OPERATORS)}",
            index
        )

    if operator in RANGE_OPERATORS:
        _check_range_value(index, operator, raw["value"])

    return Predicate(left=raw["field"], operation=operation, right=raw["value"])


def validate_and_convert(filters: Iterable[Any]) -> List[Predicate]:
    """
    Convert caller filters to scanner predicates.

    Fails fast on the first invalid filter; the error message cites its index.
    One filter maps to exactly one predicate, in order.
    """
    return [convert_filter(i, f) for i, f in enumerate(filters)]


def derive_columns(base_columns: Sequence[str], filters: Iterable[Mapping]) -> List[str]:
    """
    Base columns followed by every filtered field not already present.

    Duplicates collapse to their first occurrence so filtered fields are always
    retrievable in the response, and row values decode positionally.
    """
    columns = list(dict.fromkeys(base_columns))
    seen = set(columns)
    for f in filters:
        field = f["field"]
        if field not in seen:
            seen.add(field)
            columns.append(field)
    return columns
