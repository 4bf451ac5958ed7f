import pytest

from regvm.register_chunk import FunctionInfo, RegisterChunk
from regvm.values import ValueType, i32, i64, nil, string


def test_new_chunk_is_empty_and_valid():
    chunk = RegisterChunk("main")
    assert len(chunk) == 0
    assert chunk.module.name == "main"
    assert chunk.validate() is True
    assert chunk.debug is None


def test_instructions_get_sequential_addresses():
    chunk = RegisterChunk("m")
    assert chunk.add_instruction(0x01020304) == 0
    assert chunk.add_instruction(0x0A0B0C0D) == 1
    assert len(chunk) == 2
    assert chunk.get_instruction(0) == 0x01020304
    assert chunk.get_instruction(1) == 0x0A0B0C0D


def test_set_instruction_round_trip():
    chunk = RegisterChunk()
    chunk.add_instruction(1)
    chunk.set_instruction(0, 99)
    assert chunk.get_instruction(0) == 99


def test_instruction_out_of_range():
    chunk = RegisterChunk()
    chunk.add_instruction(1)
    with pytest.raises(IndexError):
        chunk.get_instruction(1)
    with pytest.raises(IndexError):
        chunk.set_instruction(5, 2)


def test_instruction_word_must_fit_32_bits():
    chunk = RegisterChunk()
    with pytest.raises(ValueError):
        chunk.add_instruction(1 << 32)
    with pytest.raises(ValueError):
        chunk.add_instruction(-1)


def test_constants_are_deduplicated():
    chunk = RegisterChunk()
    first = chunk.add_constant(i32(5))
    again = chunk.add_constant(i32(5))
    other = chunk.add_constant(i64(5))
    assert first == again
    assert other != first
    assert len(chunk.constants) == 2
    assert chunk.get_constant(other) == i64(5)


def test_find_constant_and_missing_constant():
    chunk = RegisterChunk()
    idx = chunk.add_constant(string("hi"))
    assert chunk.find_constant(string("hi")) == idx
    assert chunk.find_constant(string("bye")) is None
    assert chunk.get_constant(10) == nil()


def test_functions_add_get_find():
    chunk = RegisterChunk()
    for n in range(10):
        chunk.add_instruction(n)
    idx = chunk.add_function("f", 2, 5, 2, ValueType.I32)
    g = chunk.add_function("g", 6, 9)
    info = chunk.get_function(idx)
    assert info == FunctionInfo("f", 2, 5, 2, ValueType.I32)
    assert chunk.find_function("g") == g
    assert chunk.find_function("missing") is None
    assert chunk.find_function_at(5) == idx
    assert chunk.find_function_at(6) == g
    assert chunk.find_function_at(0) is None
    assert chunk.get_function(7) is None
    assert chunk.validate() is True


def test_function_requires_name():
    chunk = RegisterChunk()
    with pytest.raises(ValueError):
        chunk.add_function(None, 0, 0)


def test_validate_rejects_function_outside_code():
    chunk = RegisterChunk()
    chunk.add_instruction(0)
    chunk.add_function("f", 0, 3)
    assert chunk.validate() is False


def test_validate_rejects_reversed_range():
    chunk = RegisterChunk()
    for n in range(4):
        chunk.add_instruction(n)
    chunk.add_function("f", 3, 1)
    assert chunk.validate() is False


def test_globals_round_trip():
    chunk = RegisterChunk()
    idx = chunk.add_global(i32(1))
    assert chunk.get_global(idx) == i32(1)
    chunk.set_global(idx, string("x"))
    assert chunk.get_global(idx) == string("x")
    assert chunk.get_global(idx + 1) == nil()
    with pytest.raises(IndexError):
        chunk.set_global(idx + 1, i32(2))


def test_locations_only_recorded_with_debug():
    chunk = RegisterChunk()
    chunk.add_instruction(1, 3, 4)
    assert chunk.get_location(0) is None
    debug = chunk.enable_debug()
    assert chunk.enable_debug() is debug
    addr = chunk.add_instruction(2, 7, 8)
    loc = chunk.get_location(addr)
    assert (loc.line, loc.column, loc.file_index) == (7, 8, 0)


def test_source_files_deduplicated():
    chunk = RegisterChunk()
    chunk.enable_debug()
    a = chunk.add_source_file("a.orus")
    b = chunk.add_source_file("b.orus")
    assert chunk.add_source_file("a.orus") == a
    assert a != b
    assert chunk.get_source_file(b) == "b.orus"
    assert chunk.get_source_file(9) is None


def test_source_file_requires_debug():
    chunk = RegisterChunk()
    with pytest.raises(RuntimeError):
        chunk.add_source_file("a.orus")
    assert chunk.get_source_file(0) is None


def test_clone_copies_code_and_constants_only():
    chunk = RegisterChunk("mod")
    chunk.add_instruction(11)
    chunk.add_constant(i32(3))
    chunk.add_global(i32(4))
    chunk.add_function("f", 0, 0)
    chunk.max_registers = 12
    chunk.checksum = 0xABCD
    copy = chunk.clone()
    assert copy.code == chunk.code
    assert copy.constants == chunk.constants
    assert copy.module.name == "mod"
    assert copy.max_registers == 12
    assert copy.checksum == 0xABCD
    assert copy.functions == []
    assert copy.globals == []
    copy.add_instruction(12)
    assert len(chunk) == 1


def test_stats_text():
    chunk = RegisterChunk("main")
    chunk.add_instruction(0)
    chunk.add_function("entry", 0, 0, 1)
    text = chunk.stats(False)
    assert "Module: main\n" in text
    assert "Debug Info: no\n" in text
    assert "Checksum: 0x00000000\n" in text
    assert "entry" not in text
    detailed = chunk.stats(True)
    assert "0: entry [0000-0000] 1 params" in detailed
    assert detailed.endswith("================================\n")


def test_stats_unknown_module():
    assert "Module: unknown\n" in RegisterChunk().stats(False)