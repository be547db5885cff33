from __future__ import annotations

import math
from collections.abc import Hashable, Mapping, Sequence
from decimal import Decimal, InvalidOperation
from enum import IntEnum, StrEnum
from typing import Any

from record_match.fields import ABSENT, FieldAccessor, FieldPath
from record_match.models import ComparisonMode


class ValueKind(StrEnum):
    ABSENT = "absent"
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    LIST = "list"
    RECORD = "record"
    OTHER = "other"


class Ordering(IntEnum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


# Cross-kind sort order; absent and null sort lowest.
_KIND_RANK = {kind: rank for rank, kind in enumerate(ValueKind)}


def kind_of(value: Any) -> ValueKind:
    if value is ABSENT:
        return ValueKind.ABSENT
    if value is None:
        return ValueKind.NULL
    # bool before number: True is an int in Python
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float, Decimal)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    if isinstance(value, Mapping):
        return ValueKind.RECORD
    return ValueKind.OTHER


def is_scalar(value: Any) -> bool:
    return kind_of(value) not in (ValueKind.LIST, ValueKind.RECORD)


class EqualityEngine:
    """Equality, ordering and composite keys over record values.

    Strict mode is type-sensitive deep equality. Fuzzy mode first reduces scalars
    to a canonical token (``3``, ``"3"`` and ``"3.0"`` share one; so do ``True``
    and ``"true"``); lists and records always compare strictly.
    """

    def __init__(self, accessor: FieldAccessor | None = None, mode: ComparisonMode = ComparisonMode.STRICT) -> None:
        self._accessor = accessor or FieldAccessor()
        self._mode = mode

    def equal(self, left: Any, right: Any, mode: ComparisonMode | None = None) -> bool:
        if self._fuzzy(mode) and is_scalar(left) and is_scalar(right):
            return _fuzzy_token(left) == _fuzzy_token(right)
        return _strict_equal(left, right)

    def equal_keys(self, left: Sequence[Any], right: Sequence[Any], mode: ComparisonMode | None = None) -> bool:
        return len(left) == len(right) and all(self.equal(a, b, mode) for a, b in zip(left, right))

    def compare_order(self, left: Any, right: Any, mode: ComparisonMode | None = None) -> Ordering:
        if self._fuzzy(mode) and is_scalar(left) and is_scalar(right):
            return _token_order(_fuzzy_token(left), _fuzzy_token(right))
        return _strict_order(left, right)

    def compare_keys(self, left: Sequence[Any], right: Sequence[Any], mode: ComparisonMode | None = None) -> Ordering:
        for a, b in zip(left, right):
            result = self.compare_order(a, b, mode)
            if result is not Ordering.EQUAL:
                return result
        return _sign(len(left), len(right))

    def composite_key(self, record: Mapping[str, Any], paths: Sequence[str | FieldPath]) -> tuple[Any, ...]:
        return tuple(self._accessor.resolve(record, path) for path in paths)

    def index_key(self, values: Sequence[Any], mode: ComparisonMode | None = None) -> Hashable:
        """Hashable form of a composite key; equal under ``mode`` iff ``equal_keys``."""
        fuzzy = self._fuzzy(mode)
        return tuple(_freeze(value, fuzzy) for value in values)

    def _fuzzy(self, mode: ComparisonMode | None) -> bool:
        return (mode or self._mode) is ComparisonMode.FUZZY


def _strict_equal(left: Any, right: Any) -> bool:
    kind = kind_of(left)
    if kind is not kind_of(right):
        return False
    if kind is ValueKind.LIST:
        return len(left) == len(right) and all(_strict_equal(a, b) for a, b in zip(left, right))
    if kind is ValueKind.RECORD:
        if left.keys() != right.keys():
            return False
        return all(_strict_equal(left[key], right[key]) for key in left)
    return left is right or left == right


def _strict_order(left: Any, right: Any) -> Ordering:
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind is not right_kind:
        return _sign(_KIND_RANK[left_kind], _KIND_RANK[right_kind])
    if left_kind in (ValueKind.ABSENT, ValueKind.NULL):
        return Ordering.EQUAL
    if left_kind is ValueKind.LIST:
        for a, b in zip(left, right):
            result = _strict_order(a, b)
            if result is not Ordering.EQUAL:
                return result
        return _sign(len(left), len(right))
    if left_kind is ValueKind.RECORD:
        return _strict_order(_sorted_items(left), _sorted_items(right))
    if left_kind is ValueKind.OTHER:
        return _sign(repr(left), repr(right))
    return _sign(left, right)


def _sorted_items(record: Mapping[str, Any]) -> list[list[Any]]:
    return [[str(key), record[key]] for key in sorted(record, key=str)]


def _fuzzy_token(value: Any) -> tuple[Any, ...]:
    kind = kind_of(value)
    if kind in (ValueKind.ABSENT, ValueKind.NULL):
        return (kind,)
    if kind is ValueKind.BOOLEAN:
        return (ValueKind.BOOLEAN, value)
    if kind is ValueKind.NUMBER:
        number = _to_decimal(value)
        return (ValueKind.NUMBER, number) if number is not None else (ValueKind.OTHER, repr(value))
    if kind is ValueKind.STRING:
        text = value.strip()
        lowered = text.lower()
        if lowered in ("true", "false"):
            return (ValueKind.BOOLEAN, lowered == "true")
        number = _parse_decimal(text)
        if number is not None:
            return (ValueKind.NUMBER, number)
        return (ValueKind.STRING, value)
    return (ValueKind.OTHER, repr(value))


def _token_order(left: tuple[Any, ...], right: tuple[Any, ...]) -> Ordering:
    if left[0] is not right[0]:
        return _sign(_KIND_RANK[left[0]], _KIND_RANK[right[0]])
    if len(left) == 1:
        return Ordering.EQUAL
    return _sign(left[1], right[1])


def _to_decimal(number: int | float | Decimal) -> Decimal | None:
    if isinstance(number, Decimal):
        return None if number.is_nan() else number
    if isinstance(number, float):
        return None if math.isnan(number) else Decimal(repr(number))
    return Decimal(number)


def _parse_decimal(text: str) -> Decimal | None:
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return None if number.is_nan() else number


def _freeze(value: Any, fuzzy: bool) -> Hashable:
    kind = kind_of(value)
    if kind is ValueKind.LIST:
        return (kind, tuple(_freeze(item, False) for item in value))
    if kind is ValueKind.RECORD:
        return (kind, frozenset((key, _freeze(item, False)) for key, item in value.items()))
    if fuzzy:
        return _fuzzy_token(value)
    if kind in (ValueKind.ABSENT, ValueKind.NULL):
        return (kind,)
    if kind is ValueKind.OTHER:
        return (kind, repr(value))
    return (kind, value)


def _sign(left: Any, right: Any) -> Ordering:
    if left < right:
        return Ordering.LESS
    if left > right:
        return Ordering.GREATER
    return Ordering.EQUAL
