import pytest

from regvm.values import (
    EnumValue,
    ErrorObject,
    RangeIterator,
    Value,
    ValueType,
    array,
    boolean,
    enum_value,
    error,
    f64,
    format_value,
    i32,
    i64,
    nil,
    range_iterator,
    string,
    u32,
    u64,
)


def test_i32_wraps_like_c_cast():
    assert i32(2**31).data == -(2**31)
    assert i32(-1).data == -1
    assert i32(5).type is ValueType.I32


def test_unsigned_wrap():
    assert u32(-1).data == 2**32 - 1
    assert u64(-1).data == 2**64 - 1
    assert i64(2**63).data == -(2**63)


def test_integer_rejects_bool_and_float():
    with pytest.raises(TypeError):
        i32(True)
    with pytest.raises(TypeError):
        i64(1.5)


def test_types_distinguish_equal_payloads():
    assert i32(1) != i64(1)
    assert i32(7) == i32(7)
    assert boolean(True) != i32(1)


def test_number_predicates():
    assert f64(1.0).is_number
    assert u32(3).is_integer
    assert not string("x").is_number
    assert nil().is_nil


def test_array_copies_items():
    items = [i32(1), i32(2)]
    arr = array(items)
    items.append(i32(3))
    assert len(arr.data) == 2
    assert arr.type is ValueType.ARRAY


def test_array_rejects_raw_python_values():
    with pytest.raises(TypeError):
        array([1, 2])


def test_string_requires_str():
    with pytest.raises(TypeError):
        string(5)


def test_range_iterator_yields_half_open_range():
    v = range_iterator(2, 6)
    assert isinstance(v.data, RangeIterator)
    assert list(v.data) == [2, 3, 4, 5]
    assert list(v.data) == []


def test_empty_range_when_start_not_below_end():
    assert list(RangeIterator(5, 5)) == []
    assert list(RangeIterator(6, 1)) == []


def test_error_value():
    v = error("RuntimeError", "boom", (3, 4))
    assert v.type is ValueType.ERROR
    assert v.data == ErrorObject("RuntimeError", "boom", (3, 4))


def test_enum_value_copies_data():
    payload = [i32(1)]
    v = enum_value(2, payload, "Color")
    assert v.data == EnumValue(2, (i32(1),), "Color")
    assert enum_value(0, None, "Color").data.data == ()


def test_format_scalars():
    assert format_value(nil()) == "nil"
    assert format_value(boolean(False)) == "false"
    assert format_value(string("hi")) == "hi"
    assert format_value(i32(-12)) == str(-12)


def test_format_array_joins_elements():
    text = format_value(array([string("a"), string("b")]))
    assert text.startswith("[") and text.endswith("]")
    assert "a" in text and "b" in text
    assert str(array([])) == "[]"


def test_value_str_matches_format():
    v = Value(ValueType.I64, 99)
    assert str(v) == format_value(v)