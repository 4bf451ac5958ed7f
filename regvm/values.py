"""Runtime values of the register VM and the objects they carry."""

from __future__ import annotations

import enum
import operator
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence


class ValueType(enum.IntEnum):
    """Tag identifying the kind of a runtime value."""

    I32 = 0
    I64 = 1
    U32 = 2
    U64 = 3
    F64 = 4
    BOOL = 5
    NIL = 6
    STRING = 7
    ARRAY = 8
    ERROR = 9
    RANGE_ITERATOR = 10
    ENUM = 11


_INTEGER_TYPES = frozenset({ValueType.I32, ValueType.I64, ValueType.U32, ValueType.U64})


@dataclass
class Value:
    """A tagged runtime value; ``data`` holds the Python payload."""

    type: ValueType
    data: Any = None

    @property
    def is_integer(self) -> bool:
        return self.type in _INTEGER_TYPES

    @property
    def is_number(self) -> bool:
        return self.type in _INTEGER_TYPES or self.type is ValueType.F64

    @property
    def is_nil(self) -> bool:
        return self.type is ValueType.NIL

    def __str__(self) -> str:
        return format_value(self)


@dataclass
class RangeIterator:
    """Half-open integer range ``[current, end)`` consumed by iteration."""

    current: int
    end: int

    def __iter__(self) -> Iterator[int]:
        return self

    def __next__(self) -> int:
        if self.current >= self.end:
            raise StopIteration
        value = self.current
        self.current += 1
        return value


@dataclass
class ErrorObject:
    """A runtime error carried as a value."""

    error_type: Any
    message: str
    location: Any = None


@dataclass
class EnumValue:
    """An instance of an enum variant with its payload."""

    variant_index: int
    data: tuple = field(default_factory=tuple)
    type_name: str | None = None


def _wrap(n: Any, bits: int, signed: bool) -> int:
    if isinstance(n, bool):
        raise TypeError("expected an integer, got bool")
    n = operator.index(n)
    mask = (1 << bits) - 1
    n &= mask
    if signed and n >= 1 << (bits - 1):
        n -= 1 << bits
    return n


def i32(n: int) -> Value:
    """Signed 32-bit integer, wrapped like a C cast."""
    return Value(ValueType.I32, _wrap(n, 32, True))


def i64(n: int) -> Value:
    """Signed 64-bit integer, wrapped like a C cast."""
    return Value(ValueType.I64, _wrap(n, 64, True))


def u32(n: int) -> Value:
    """Unsigned 32-bit integer, wrapped like a C cast."""
    return Value(ValueType.U32, _wrap(n, 32, False))


def u64(n: int) -> Value:
    """Unsigned 64-bit integer, wrapped like a C cast."""
    return Value(ValueType.U64, _wrap(n, 64, False))


def f64(x: float) -> Value:
    return Value(ValueType.F64, float(x))


def boolean(b: bool) -> Value:
    return Value(ValueType.BOOL, bool(b))


def string(s: str) -> Value:
    if not isinstance(s, str):
        raise TypeError("string value requires str")
    return Value(ValueType.STRING, s)


def array(items: Iterable[Value]) -> Value:
    """Array value holding a fresh list of the given values."""
    elements = list(items)
    for item in elements:
        if not isinstance(item, Value):
            raise TypeError("array elements must be Value instances")
    return Value(ValueType.ARRAY, elements)


def nil() -> Value:
    return Value(ValueType.NIL, None)


def range_iterator(start: int, end: int) -> Value:
    return Value(
        ValueType.RANGE_ITERATOR,
        RangeIterator(_wrap(start, 64, True), _wrap(end, 64, True)),
    )


def error(error_type: Any, message: str, location: Any) -> Value:
    return Value(ValueType.ERROR, ErrorObject(error_type, str(message), location))


def enum_value(variant_index: int, data: Sequence[Value] | None, type_name: str | None) -> Value:
    return Value(ValueType.ENUM, EnumValue(int(variant_index), tuple(data or ()), type_name))


def _format_float(x: float) -> str:
    return "%g" % x


def format_value(value: Value) -> str:
    """Human readable text for a value."""
    kind = value.type
    if kind in _INTEGER_TYPES:
        return str(value.data)
    if kind is ValueType.F64:
        return _format_float(value.data)
    if kind is ValueType.BOOL:
        return "true" if value.data else "false"
    if kind is ValueType.NIL:
        return "nil"
    if kind is ValueType.STRING:
        return value.data
    if kind is ValueType.ARRAY:
        return "[" + ", ".join(format_value(v) for v in value.data) + "]"
    if kind is ValueType.RANGE_ITERATOR:
        it = value.data
        return f"range({it.current}..{it.end})"
    if kind is ValueType.ERROR:
        err = value.data
        return f"{err.error_type}: {err.message}"
    if kind is ValueType.ENUM:
        ev = value.data
        head = f"{ev.type_name or 'enum'}::{ev.variant_index}"
        if ev.data:
            head += "(" + ", ".join(format_value(v) for v in ev.data) + ")"
        return head
    return "unknown"