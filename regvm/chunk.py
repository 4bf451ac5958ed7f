"""Stack bytecode chunks: code bytes, per-byte positions and constants."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from regvm.values import Value

SHORT_CONSTANT_LIMIT = 256


class OpCode(enum.IntEnum):
    """Opcodes that the chunk itself emits."""

    CONSTANT = 0
    CONSTANT_LONG = 1


class ChunkError(Exception):
    """Raised on an out-of-range operand or constant access."""


@dataclass
class LineInfo:
    """Source position covering ``run_length`` code bytes."""

    line: int
    column: int
    run_length: int = 1


@dataclass
class Chunk:
    """A block of bytecode with its constant pool and source positions."""

    code: bytearray = field(default_factory=bytearray)
    constants: list[Value] = field(default_factory=list)
    lines: list[LineInfo] = field(default_factory=list)

    def write(self, byte: int, line: int, column: int) -> None:
        """Append one byte of code recorded at the given source position."""
        byte = int(byte)
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"byte out of range: {byte}")
        self.code.append(byte)
        self.lines.append(LineInfo(line, column, 1))

    def write_constant(self, value: Value, line: int, column: int) -> int:
        """Add a constant and emit the instruction that loads it; returns its index."""
        index = self.add_constant(value)
        if index < SHORT_CONSTANT_LIMIT:
            self.write(OpCode.CONSTANT, line, column)
            self.write(index, line, column)
        else:
            self.write(OpCode.CONSTANT_LONG, line, column)
            for shift in (16, 8, 0):
                self.write((index >> shift) & 0xFF, line, column)
        return index

    def add_constant(self, value: Value) -> int:
        self.constants.append(value)
        return len(self.constants) - 1

    def __len__(self) -> int:
        return len(self.code)

    def _info_at(self, offset: int) -> LineInfo | None:
        end = 0
        for info in self.lines:
            end += info.run_length
            if offset < end:
                return info
        return None

    def get_line(self, offset: int) -> int:
        """Source line of the byte at ``offset``, or -1 if unknown."""
        info = self._info_at(offset)
        return info.line if info else -1

    def get_column(self, offset: int) -> int:
        """Source column of the byte at ``offset``, or 1 if unknown."""
        info = self._info_at(offset)
        return info.column if info else 1

    def get_code(self, offset: int) -> int:
        """Operand byte following the instruction at ``offset``."""
        if offset < 0 or offset >= len(self.code) - 1:
            raise ChunkError(f"Invalid operand access at offset {offset}")
        return self.code[offset + 1]

    def get_constant(self, offset: int) -> Value:
        """Constant referenced by the one-byte operand of the instruction at ``offset``."""
        index = self.get_code(offset)
        if index >= len(self.constants):
            raise ChunkError(f"Invalid constant index: {index}")
        return self.constants[index]