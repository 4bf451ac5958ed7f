"""Binary serialisation of compiled chunks to ``.obc`` files."""

from __future__ import annotations

import io
import struct
from typing import BinaryIO

from regvm.chunk import Chunk, LineInfo
from regvm.values import Value, ValueType

ORBC_MAGIC = 0x4F524243
ORBC_VERSION = 1

_HEADER = struct.Struct("<IIqiii")
_LINE_INFO = struct.Struct("<iii")
_LENGTH = struct.Struct("<i")
_TAG = struct.Struct("<B")

_SCALARS = {
    ValueType.I32: struct.Struct("<i"),
    ValueType.I64: struct.Struct("<q"),
    ValueType.U32: struct.Struct("<I"),
    ValueType.U64: struct.Struct("<Q"),
    ValueType.F64: struct.Struct("<d"),
    ValueType.BOOL: struct.Struct("<?"),
}


class BytecodeFormatError(Exception):
    """Raised when bytecode cannot be written or read back."""


def _encode_into(value: Value, parts: list[bytes]) -> None:
    kind = value.type
    parts.append(_TAG.pack(int(kind)))
    try:
        if kind in _SCALARS:
            parts.append(_SCALARS[kind].pack(value.data))
        elif kind is ValueType.STRING:
            raw = value.data.encode("utf-8")
            parts.append(_LENGTH.pack(len(raw)))
            parts.append(raw)
        elif kind is ValueType.ARRAY:
            parts.append(_LENGTH.pack(len(value.data)))
            for element in value.data:
                _encode_into(element, parts)
        else:
            raise BytecodeFormatError(f"cannot serialise value of type {kind.name}")
    except struct.error as exc:
        raise BytecodeFormatError(str(exc)) from exc


def encode_value(value: Value) -> bytes:
    """Serialise one constant value."""
    parts: list[bytes] = []
    _encode_into(value, parts)
    return b"".join(parts)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise BytecodeFormatError("unexpected end of data")
    return data


def _read_length(stream: BinaryIO) -> int:
    (length,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size))
    if length < 0:
        raise BytecodeFormatError(f"negative length {length}")
    return length


def decode_value(stream: BinaryIO) -> Value:
    """Read one constant value from a binary stream."""
    (tag,) = _TAG.unpack(_read_exact(stream, 1))
    try:
        kind = ValueType(tag)
    except ValueError:
        raise BytecodeFormatError(f"unknown value tag {tag}") from None
    if kind in _SCALARS:
        fmt = _SCALARS[kind]
        (data,) = fmt.unpack(_read_exact(stream, fmt.size))
        return Value(kind, data)
    if kind is ValueType.STRING:
        raw = _read_exact(stream, _read_length(stream))
        try:
            return Value(kind, raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise BytecodeFormatError("invalid string data") from exc
    if kind is ValueType.ARRAY:
        count = _read_length(stream)
        return Value(kind, [decode_value(stream) for _ in range(count)])
    raise BytecodeFormatError(f"cannot deserialise value of type {kind.name}")


def encode_chunk(chunk: Chunk, mtime: int) -> bytes:
    """Serialise a chunk with the source modification time it was built from."""
    parts = [
        _HEADER.pack(
            ORBC_MAGIC,
            ORBC_VERSION,
            mtime,
            len(chunk.code),
            len(chunk.lines),
            len(chunk.constants),
        ),
        bytes(chunk.code),
    ]
    parts.extend(
        _LINE_INFO.pack(info.line, info.column, info.run_length) for info in chunk.lines
    )
    for value in chunk.constants:
        _encode_into(value, parts)
    return b"".join(parts)


def decode_chunk(data: bytes) -> tuple[Chunk, int]:
    """Rebuild a chunk from its serialised form; returns the chunk and its mtime."""
    stream = io.BytesIO(data)
    magic, version, mtime, code_count, line_count, const_count = _HEADER.unpack(
        _read_exact(stream, _HEADER.size)
    )
    if magic != ORBC_MAGIC:
        raise BytecodeFormatError("bad magic number")
    if version != ORBC_VERSION:
        raise BytecodeFormatError(f"unsupported version {version}")
    if min(code_count, line_count, const_count) < 0:
        raise BytecodeFormatError("negative section size")
    code = bytearray(_read_exact(stream, code_count))
    lines = [
        LineInfo(*_LINE_INFO.unpack(_read_exact(stream, _LINE_INFO.size)))
        for _ in range(line_count)
    ]
    constants = [decode_value(stream) for _ in range(const_count)]
    return Chunk(code=code, constants=constants, lines=lines), mtime


def write_chunk_to_file(chunk: Chunk, path: str, mtime: int) -> None:
    """Write a chunk to a ``.obc`` file."""
    data = encode_chunk(chunk, mtime)
    with open(path, "wb") as fh:
        fh.write(data)


def read_chunk_from_file(path: str) -> tuple[Chunk, int]:
    """Read a chunk from a ``.obc`` file; returns the chunk and its mtime."""
    with open(path, "rb") as fh:
        return decode_chunk(fh.read())