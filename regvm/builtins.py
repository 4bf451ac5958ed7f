"""Native functions callable from programs running on the VM."""

from __future__ import annotations

import math
import re
import sys
import time
from dataclasses import dataclass
from typing import Callable, TextIO

from regvm.comparison import ComparisonError, tim_sort, value_type_name
from regvm.modules import ModuleRegistry
from regvm.values import (
    Value,
    ValueType,
    array,
    boolean,
    f64,
    i32,
    i64,
    nil,
    range_iterator,
    string,
)

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INPUT_LIMIT = 1023

_C_SPACE = " \t\n\v\f\r"
_INT_RE = re.compile(r"[ \t\n\v\f\r]*[+-]?[0-9]+")
_DEC_FLOAT_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_HEX_FLOAT_RE = re.compile(
    r"[+-]?0[xX]([0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)([pP][+-]?[0-9]+)?"
)
_SPECIAL_FLOAT_RE = re.compile(r"[+-]?(inf|infinity|nan)", re.IGNORECASE)

_SUMMABLE = frozenset({ValueType.I32, ValueType.I64, ValueType.U32, ValueType.F64})
_INTEGERS = frozenset({ValueType.I32, ValueType.I64, ValueType.U32, ValueType.U64})


class BuiltinError(Exception):
    """Raised when a builtin is called with wrong arguments or fails."""


@dataclass(frozen=True)
class BuiltinEntry:
    """A registered builtin: name, callable, arity (-1 for variadic) and return type."""

    name: str
    function: Callable[..., Value]
    arity: int
    return_type: ValueType | None


def _require_count(args: tuple, count: int, message: str) -> None:
    if len(args) != count:
        raise BuiltinError(message)


def _as_int64(value: Value) -> int:
    return i64(value.data).data


def builtin_len(*args: Value) -> Value:
    """Length of an array or string."""
    _require_count(args, 1, "len() takes exactly one argument.")
    (val,) = args
    if val.type in (ValueType.ARRAY, ValueType.STRING):
        return i32(len(val.data))
    raise BuiltinError("len() expects array or string.")


def builtin_substring(*args: Value) -> Value:
    """Substring of ``length`` characters from ``start``, clamped to the string."""
    _require_count(args, 3, "substring() takes exactly three arguments.")
    text, start_v, length_v = args
    if (
        text.type is not ValueType.STRING
        or start_v.type is not ValueType.I32
        or length_v.type is not ValueType.I32
    ):
        raise BuiltinError("substring() expects (string, i32, i32).")
    s = text.data
    start = min(max(start_v.data, 0), len(s))
    length = max(length_v.data, 0)
    length = min(length, len(s) - start)
    return string(s[start : start + length])


def builtin_push(*args: Value) -> Value:
    """Append a value to an array and return the array."""
    _require_count(args, 2, "push() takes exactly two arguments.")
    arr, item = args
    if arr.type is not ValueType.ARRAY:
        raise BuiltinError("First argument to push() must be array.")
    arr.data.append(item)
    return arr


def builtin_pop(*args: Value) -> Value:
    """Remove and return the last element of an array; nil when empty."""
    _require_count(args, 1, "pop() takes exactly one argument.")
    (arr,) = args
    if arr.type is not ValueType.ARRAY:
        raise BuiltinError("pop() expects array.")
    if not arr.data:
        return nil()
    return arr.data.pop()


def builtin_reserve(*args: Value) -> Value:
    """Capacity hint for an array; lists grow on demand, so the array is returned as is."""
    _require_count(args, 2, "reserve() takes exactly two arguments.")
    arr, cap = args
    if arr.type is not ValueType.ARRAY:
        raise BuiltinError("First argument to reserve() must be array.")
    if cap.type not in _INTEGERS:
        raise BuiltinError("reserve() expects integer capacity.")
    return arr


def builtin_range(*args: Value) -> Value:
    """Iterator over integers from start (inclusive) to end (exclusive)."""
    _require_count(args, 2, "range() takes exactly two arguments.")
    start, end = args
    if start.type not in _INTEGERS or end.type not in _INTEGERS:
        raise BuiltinError("range() expects (i32/i64/u32/u64, i32/i64/u32/u64).")
    return range_iterator(_as_int64(start), _as_int64(end))


def builtin_type_of(*args: Value) -> Value:
    """Name of the argument's runtime type."""
    _require_count(args, 1, "type_of() takes exactly one argument.")
    return string(value_type_name(args[0]))


def builtin_is_type(*args: Value) -> Value:
    """Whether the value's type name equals the given string."""
    _require_count(args, 2, "is_type() takes exactly two arguments.")
    value, name = args
    if name.type is not ValueType.STRING:
        raise BuiltinError("Second argument to is_type() must be a string.")
    return boolean(name.data == value_type_name(value))


def builtin_int(*args: Value) -> Value:
    """Parse a base-10 integer string into an i32."""
    _require_count(args, 1, "int() takes exactly one argument.")
    (text,) = args
    if text.type is not ValueType.STRING:
        raise BuiltinError("int() argument must be a string.")
    s = text.data
    if s == "":
        return i32(0)
    if not _INT_RE.fullmatch(s):
        raise BuiltinError("invalid integer literal.")
    value = int(s.lstrip(_C_SPACE))
    if value < INT32_MIN or value > INT32_MAX:
        raise BuiltinError("integer value out of range.")
    return i32(value)


def _parse_c_float(s: str) -> float:
    if s == "":
        return 0.0
    body = s.lstrip(_C_SPACE)
    if _DEC_FLOAT_RE.fullmatch(body) or _SPECIAL_FLOAT_RE.fullmatch(body):
        return float(body)
    if _HEX_FLOAT_RE.fullmatch(body):
        return float.fromhex(body)
    raise BuiltinError("invalid float literal.")


def builtin_float(*args: Value) -> Value:
    """Parse a floating point string into an f64."""
    _require_count(args, 1, "float() takes exactly one argument.")
    (text,) = args
    if text.type is not ValueType.STRING:
        raise BuiltinError("float() argument must be a string.")
    return f64(_parse_c_float(text.data))


def builtin_pow(*args: Value) -> Value:
    """``base ** exp`` for an f64 base and i32 exponent."""
    if len(args) != 2 or args[0].type is not ValueType.F64 or args[1].type is not ValueType.I32:
        raise BuiltinError("native_pow expects (f64, i32).")
    base, exp = args[0].data, args[1].data
    odd = exp % 2 == 1
    try:
        result = math.pow(base, exp)
    except OverflowError:
        result = math.copysign(math.inf, base) if odd else math.inf
    except ValueError:
        if base == 0.0 and exp < 0:
            result = math.copysign(math.inf, base) if odd else math.inf
        else:
            result = math.nan
    return f64(result)


def builtin_sqrt(*args: Value) -> Value:
    """Square root of an f64; nan for negative input."""
    if len(args) != 1 or args[0].type is not ValueType.F64:
        raise BuiltinError("native_sqrt expects (f64).")
    x = args[0].data
    if math.isnan(x) or x < 0:
        return f64(math.nan)
    return f64(math.sqrt(x))


def _numeric_elements(args: tuple, fname: str) -> list[Value]:
    _require_count(args, 1, f"{fname}() takes exactly one argument.")
    (arr,) = args
    if arr.type is not ValueType.ARRAY:
        raise BuiltinError(f"{fname}() expects array.")
    for item in arr.data:
        if item.type not in _SUMMABLE:
            raise BuiltinError(f"{fname}() array must contain only numbers.")
    return arr.data


def _numeric_result(total: float, as_float: bool) -> Value:
    return f64(total) if as_float else i32(int(total))


def builtin_sum(*args: Value) -> Value:
    """Sum of a numeric array; f64 if any element is a float, else i32."""
    items = _numeric_elements(args, "sum")
    total = 0.0
    for item in items:
        total += float(item.data)
    return _numeric_result(total, any(v.type is ValueType.F64 for v in items))


def _extreme(args: tuple, fname: str, better: Callable[[float, float], bool]) -> Value:
    items = _numeric_elements(args, fname)
    if not items:
        return nil()
    best = float(items[0].data)
    for item in items[1:]:
        candidate = float(item.data)
        if better(candidate, best):
            best = candidate
    return _numeric_result(best, any(v.type is ValueType.F64 for v in items))


def builtin_min(*args: Value) -> Value:
    """Smallest element of a numeric array; nil when empty."""
    return _extreme(args, "min", lambda a, b: a < b)


def builtin_max(*args: Value) -> Value:
    """Largest element of a numeric array; nil when empty."""
    return _extreme(args, "max", lambda a, b: a > b)


def builtin_sorted(*args: Value) -> Value:
    """Sorted copy of an array: ``sorted(arr)``, ``sorted(arr, reverse)`` or ``sorted(arr, nil, reverse)``."""
    if not 1 <= len(args) <= 3:
        raise BuiltinError("sorted() takes between 1 and 3 arguments.")
    arr = args[0]
    if arr.type is not ValueType.ARRAY:
        raise BuiltinError("sorted() first argument must be array.")
    reverse = False
    if len(args) == 2:
        flag = args[1]
        if flag.type is ValueType.BOOL:
            reverse = flag.data
        elif not flag.is_nil:
            raise BuiltinError("sorted() key function not supported yet.")
    elif len(args) == 3:
        if not args[1].is_nil:
            raise BuiltinError("sorted() key function not supported yet.")
        if args[2].type is not ValueType.BOOL:
            raise BuiltinError("sorted() third argument must be bool.")
        reverse = args[2].data
    try:
        return array(tim_sort(arr.data, reverse))
    except ComparisonError as exc:
        raise BuiltinError(str(exc)) from exc


def builtin_timestamp(*args: Value) -> Value:
    """Current Unix time in seconds as an f64."""
    _require_count(args, 0, "timestamp() takes no arguments.")
    return f64(time.time())


class Builtins:
    """Table of builtins bound to a module registry and input/output streams."""

    def __init__(
        self,
        registry: ModuleRegistry | None = None,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.registry = registry if registry is not None else ModuleRegistry()
        self._stdin = stdin
        self._stdout = stdout
        table = [
            BuiltinEntry("len", builtin_len, 1, ValueType.I32),
            BuiltinEntry("substring", builtin_substring, 3, ValueType.STRING),
            BuiltinEntry("push", builtin_push, 2, None),
            BuiltinEntry("pop", builtin_pop, 1, None),
            BuiltinEntry("reserve", builtin_reserve, 2, None),
            BuiltinEntry("range", builtin_range, 2, None),
            BuiltinEntry("sum", builtin_sum, 1, None),
            BuiltinEntry("min", builtin_min, 1, None),
            BuiltinEntry("max", builtin_max, 1, None),
            BuiltinEntry("type_of", builtin_type_of, 1, ValueType.STRING),
            BuiltinEntry("is_type", builtin_is_type, 2, ValueType.BOOL),
            BuiltinEntry("input", self.input, 1, ValueType.STRING),
            BuiltinEntry("int", builtin_int, 1, ValueType.I32),
            BuiltinEntry("float", builtin_float, 1, ValueType.F64),
            BuiltinEntry("timestamp", builtin_timestamp, 0, ValueType.F64),
            BuiltinEntry("sorted", builtin_sorted, -1, ValueType.ARRAY),
            BuiltinEntry("module_name", self.module_name, 1, ValueType.STRING),
            BuiltinEntry("module_path", self.module_path, 1, ValueType.STRING),
            BuiltinEntry("native_pow", builtin_pow, 2, ValueType.F64),
            BuiltinEntry("native_sqrt", builtin_sqrt, 1, ValueType.F64),
        ]
        self._entries = {entry.name: entry for entry in table}

    @property
    def names(self) -> list[str]:
        return list(self._entries)

    def input(self, *args: Value) -> Value:
        """Print a prompt and read one line, without its line ending."""
        _require_count(args, 1, "input() takes exactly one argument.")
        (prompt,) = args
        if prompt.type is not ValueType.STRING:
            raise BuiltinError("input() argument must be a string.")
        out = self._stdout if self._stdout is not None else sys.stdout
        src = self._stdin if self._stdin is not None else sys.stdin
        out.write(prompt.data)
        out.flush()
        line = src.readline(INPUT_LIMIT)
        return string(line.rstrip("\r\n"))

    def _loaded_module(self, args: tuple, fname: str):
        if len(args) != 1 or args[0].type is not ValueType.STRING:
            raise BuiltinError(f"{fname}() expects module path string.")
        module = self.registry.get(args[0].data)
        if module is None:
            raise BuiltinError("Module not loaded.")
        return module

    def module_name(self, *args: Value) -> Value:
        """Short name of a loaded module."""
        return string(self._loaded_module(args, "module_name").name)

    def module_path(self, *args: Value) -> Value:
        """Canonical path of a loaded module."""
        return string(self._loaded_module(args, "module_path").module_name)

    def entry(self, name: str) -> BuiltinEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise BuiltinError(f"Unknown builtin `{name}`") from None

    def call(self, name: str, *args: Value) -> Value:
        return self.entry(name).function(*args)