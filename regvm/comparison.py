"""Value ordering and the merge-based sort used by ``sorted()``."""

from __future__ import annotations

from typing import Callable, Iterable

from regvm.values import Value, ValueType

MIN_RUN = 32

_TYPE_NAMES = {
    ValueType.I32: "i32",
    ValueType.I64: "i64",
    ValueType.U32: "u32",
    ValueType.U64: "u64",
    ValueType.F64: "f64",
    ValueType.BOOL: "bool",
    ValueType.NIL: "nil",
    ValueType.STRING: "string",
    ValueType.ARRAY: "array",
    ValueType.ERROR: "error",
    ValueType.RANGE_ITERATOR: "range",
    ValueType.ENUM: "enum",
}

# Only these kinds take part in numeric ordering; 64-bit integers do not.
_ORDERED_NUMBERS = frozenset({ValueType.I32, ValueType.U32, ValueType.F64})


class ComparisonError(Exception):
    """Raised when two values have no defined ordering."""


def value_type_name(value: Value) -> str:
    """Name of a value's runtime type as the language spells it."""
    return _TYPE_NAMES.get(value.type, "unknown")


def compare_values(a: Value, b: Value) -> int:
    """Return -1, 0 or 1 as ``a`` orders before, with, or after ``b``."""
    if a.type in _ORDERED_NUMBERS and b.type in _ORDERED_NUMBERS:
        da, db = float(a.data), float(b.data)
        return (da > db) - (da < db)
    if a.type is ValueType.STRING and b.type is ValueType.STRING:
        ba, bb = a.data.encode("utf-8"), b.data.encode("utf-8")
        return (ba > bb) - (ba < bb)
    raise ComparisonError("sorted() array must contain only numbers or strings.")


def _insertion_sort(
    items: list[Value], lo: int, hi: int, out_of_order: Callable[[Value, Value], bool]
) -> None:
    for i in range(lo + 1, hi):
        key = items[i]
        j = i - 1
        while j >= lo and out_of_order(items[j], key):
            items[j + 1] = items[j]
            j -= 1
        items[j + 1] = key


def _merge(
    items: list[Value],
    lo: int,
    mid: int,
    hi: int,
    out_of_order: Callable[[Value, Value], bool],
) -> None:
    left, right = items[lo:mid], items[mid:hi]
    merged: list[Value] = []
    i = j = 0
    while i < len(left) and j < len(right):
        if out_of_order(left[i], right[j]):
            merged.append(right[j])
            j += 1
        else:
            merged.append(left[i])
            i += 1
    merged.extend(left[i:])
    merged.extend(right[j:])
    items[lo:hi] = merged


def tim_sort(items: Iterable[Value], reverse: bool = False) -> list[Value]:
    """Return a stably sorted copy of ``items``; descending when ``reverse``."""
    result = list(items)
    n = len(result)

    def out_of_order(first: Value, second: Value) -> bool:
        cmp = compare_values(first, second)
        return cmp < 0 if reverse else cmp > 0

    for start in range(0, n, MIN_RUN):
        _insertion_sort(result, start, min(start + MIN_RUN, n), out_of_order)

    size = MIN_RUN
    while size < n:
        for lo in range(0, n, 2 * size):
            mid = lo + size
            hi = min(lo + 2 * size, n)
            if mid < hi:
                _merge(result, lo, mid, hi, out_of_order)
        size *= 2
    return result