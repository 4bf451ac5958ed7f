# regvm

Runtime pieces for a small, statically typed scripting language that runs on a
register-based virtual machine. The package uses only the standard library.

## What is inside

- `regvm.values`: the value model. `Value` pairs a `ValueType` tag with a
  Python payload. Constructors `i32`, `i64`, `u32`, `u64` wrap integers the
  way a C cast would. The others are `f64`, `boolean`, `string`, `array`,
  `nil`, `range_iterator`, `error` and `enum_value`. `RangeIterator`,
  `ErrorObject` and `EnumValue` hold the payloads. `format_value` renders a
  value as text.
- `regvm.comparison`: `value_type_name`, `compare_values` and `tim_sort`.
  `tim_sort` is a stable insertion/merge sort over numbers (i32, u32, f64) or
  over strings. Any other pairing raises `ComparisonError`.
- `regvm.chunk`: a stack bytecode `Chunk` with code bytes, a constant pool
  and a `LineInfo` for each byte. `write_constant` emits `OpCode.CONSTANT`
  with a one-byte index, or `OpCode.CONSTANT_LONG` with a three-byte index
  from index 256 on. Bad operand access raises `ChunkError`.
- `regvm.bytecode_io`: a little-endian binary `.obc` format for chunks and
  their constants. It provides `encode_value`, `decode_value`,
  `encode_chunk`, `decode_chunk`, `write_chunk_to_file` and
  `read_chunk_from_file`. Malformed data raises `BytecodeFormatError`.
- `regvm.modules`: `load_module_with_fallback` looks for module source on
  disk, then under a standard-library directory (`std` by default), then in
  a mapping of embedded sources. The helpers `module_short_name` and
  `cache_path_for` sit alongside it. `ModuleRegistry` caches `Module`
  records with their `Export`s and detects import cycles through
  `begin_loading`/`finish_loading`.
- `regvm.builtins`: the language's built-in functions. Standalone ones are
  `builtin_len`, `builtin_substring`, `builtin_push`, `builtin_pop`,
  `builtin_reserve`, `builtin_range`, `builtin_type_of`, `builtin_is_type`,
  `builtin_int`, `builtin_float`, `builtin_pow`, `builtin_sqrt`,
  `builtin_sum`, `builtin_min`, `builtin_max`, `builtin_sorted` and
  `builtin_timestamp`. `Builtins` collects them into a table of
  `BuiltinEntry` records. It adds `input`, `module_name` and `module_path`,
  which are bound to a registry and to input/output streams. Wrong arguments
  raise `BuiltinError`.
- `regvm.register_chunk`: `RegisterChunk` holds 32-bit instruction words,
  a deduplicated constant pool, globals, `FunctionInfo` records and
  `ModuleInfo`. It also offers `clone`, `validate` and a text `stats`
  summary.
- `regvm.debug_info`: `DebugInfo` and `SourceLocation`. These record the
  location of each instruction and a source-file table once
  `RegisterChunk.enable_debug()` has been called.

## Installing

```
pip install .
```

## Example

```python
from regvm import values
from regvm.builtins import Builtins, builtin_sorted
from regvm.bytecode_io import decode_chunk, encode_chunk
from regvm.chunk import Chunk
from regvm.modules import ModuleRegistry
from regvm.register_chunk import RegisterChunk

nums = values.array([values.i32(3), values.i32(1), values.i32(2)])
print(values.format_value(builtin_sorted(nums)))            # [1, 2, 3]

b = Builtins(ModuleRegistry())
print(values.format_value(b.call("len", values.string("hello"))))   # 5

chunk = Chunk()
chunk.write_constant(values.f64(1.5), line=1, column=1)
restored, mtime = decode_chunk(encode_chunk(chunk, mtime=0))
print(values.format_value(restored.get_constant(0)))        # 1.5

reg = RegisterChunk("main")
reg.enable_debug()
reg.add_instruction(0x12000000, 1, 1)
print(reg.stats())
```

## What it does not do

This package supplies the data structures and native functions around a
virtual machine, not a complete language implementation. It has no parser,
no compiler, and no loop that executes chunks. It also has no command-line
program.

- `RegisterChunk` stores instruction words as plain integers. The package
  does not define the register instruction set. It does not encode or decode
  instruction fields, and it does not disassemble chunks.
- `ModuleRegistry` only caches and tracks modules. It does not compile or
  run their source.

## Running the tests

```
pip install .[test]
pytest
```