"""Register VM bytecode chunks: instructions, constants, globals, functions and metadata."""

from __future__ import annotations

from dataclasses import dataclass, field

from regvm.debug_info import DebugInfo, SourceLocation
from regvm.values import Value, ValueType, nil

MAX_INSTRUCTION_WORD = 0xFFFFFFFF
MAX_INSTRUCTIONS = 0xFFFFFFFF
MAX_CONSTANTS = 0xFFFFFFFF
MAX_FUNCTIONS = 0xFFFF
MAX_GLOBALS = 0xFFFF
MAX_PARAMETERS = 0xFF


@dataclass
class FunctionInfo:
    """A function's name, code range and signature."""

    name: str
    start_address: int
    end_address: int
    parameter_count: int = 0
    return_type: ValueType = ValueType.NIL
    parameter_types: list[ValueType] = field(default_factory=list)
    is_generic: bool = False
    is_exported: bool = False


@dataclass
class ModuleInfo:
    """Identity and linkage of the module a chunk was compiled from."""

    name: str | None = None
    file_path: str | None = None
    exports: list[str] = field(default_factory=list)
    imports: list[tuple[str, str]] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)


class RegisterChunk:
    """A compiled unit of register VM code with its constant pool and globals."""

    def __init__(self, module_name: str | None = None) -> None:
        self.code: list[int] = []
        self.constants: list[Value] = []
        self.globals: list[Value] = []
        self.functions: list[FunctionInfo] = []
        self.module = ModuleInfo(name=module_name)
        self.debug: DebugInfo | None = None
        self.register_types: list[ValueType] | None = None
        self.max_registers = 0
        self.is_optimized = False
        self.optimization_level = 0
        self.checksum = 0

    def clone(self) -> RegisterChunk:
        """Copy of the code, constants and optimisation metadata."""
        copy = RegisterChunk(self.module.name)
        copy.code = list(self.code)
        copy.constants = list(self.constants)
        copy.max_registers = self.max_registers
        copy.is_optimized = self.is_optimized
        copy.optimization_level = self.optimization_level
        copy.checksum = self.checksum
        return copy

    # Instructions

    def add_instruction(self, instruction: int, line: int = 0, column: int = 0) -> int:
        """Append an instruction word; returns its address."""
        instruction = int(instruction)
        if not 0 <= instruction <= MAX_INSTRUCTION_WORD:
            raise ValueError(f"instruction word out of range: {instruction}")
        if len(self.code) >= MAX_INSTRUCTIONS:
            raise OverflowError("too many instructions")
        address = len(self.code)
        self.code.append(instruction)
        if self.debug is not None:
            self.debug.record_location(address, line, column)
        return address

    def _check_address(self, address: int) -> None:
        if not 0 <= address < len(self.code):
            raise IndexError(f"instruction address out of range: {address}")

    def get_instruction(self, address: int) -> int:
        self._check_address(address)
        return self.code[address]

    def set_instruction(self, address: int, instruction: int) -> None:
        self._check_address(address)
        instruction = int(instruction)
        if not 0 <= instruction <= MAX_INSTRUCTION_WORD:
            raise ValueError(f"instruction word out of range: {instruction}")
        self.code[address] = instruction

    def __len__(self) -> int:
        return len(self.code)

    # Constants

    def add_constant(self, value: Value) -> int:
        """Index of ``value`` in the constant pool, adding it if not already present."""
        existing = self.find_constant(value)
        if existing is not None:
            return existing
        if len(self.constants) >= MAX_CONSTANTS:
            raise OverflowError("too many constants")
        self.constants.append(value)
        return len(self.constants) - 1

    def get_constant(self, index: int) -> Value:
        """Constant at ``index``; nil when out of range."""
        if 0 <= index < len(self.constants):
            return self.constants[index]
        return nil()

    def find_constant(self, value: Value) -> int | None:
        return next((i for i, c in enumerate(self.constants) if c == value), None)

    # Functions

    def add_function(
        self,
        name: str,
        start_address: int,
        end_address: int,
        parameter_count: int = 0,
        return_type: ValueType = ValueType.NIL,
    ) -> int:
        """Register a function; returns its index."""
        if not isinstance(name, str):
            raise ValueError("function name is required")
        if not 0 <= parameter_count <= MAX_PARAMETERS:
            raise ValueError(f"parameter count out of range: {parameter_count}")
        if len(self.functions) >= MAX_FUNCTIONS:
            raise OverflowError("too many functions")
        self.functions.append(
            FunctionInfo(name, start_address, end_address, parameter_count, return_type)
        )
        return len(self.functions) - 1

    def get_function(self, index: int) -> FunctionInfo | None:
        if 0 <= index < len(self.functions):
            return self.functions[index]
        return None

    def find_function(self, name: str) -> int | None:
        return next((i for i, f in enumerate(self.functions) if f.name == name), None)

    def find_function_at(self, address: int) -> int | None:
        """Index of the first function whose code range contains ``address``."""
        return next(
            (
                i
                for i, f in enumerate(self.functions)
                if f.start_address <= address <= f.end_address
            ),
            None,
        )

    # Globals

    def add_global(self, initial_value: Value) -> int:
        if len(self.globals) >= MAX_GLOBALS:
            raise OverflowError("too many globals")
        self.globals.append(initial_value)
        return len(self.globals) - 1

    def get_global(self, index: int) -> Value:
        """Global at ``index``; nil when out of range."""
        if 0 <= index < len(self.globals):
            return self.globals[index]
        return nil()

    def set_global(self, index: int, value: Value) -> None:
        if not 0 <= index < len(self.globals):
            raise IndexError(f"global index out of range: {index}")
        self.globals[index] = value

    # Debug information

    def enable_debug(self) -> DebugInfo:
        """Turn on location tracking for instructions added from now on."""
        if self.debug is None:
            self.debug = DebugInfo()
        return self.debug

    def add_source_file(self, file_path: str) -> int:
        if self.debug is None:
            raise RuntimeError("debug information is not enabled")
        return self.debug.add_source_file(file_path)

    def get_location(self, address: int) -> SourceLocation | None:
        if self.debug is None:
            return None
        return self.debug.get_location(address)

    def get_source_file(self, file_index: int) -> str | None:
        if self.debug is None:
            return None
        return self.debug.get_source_file(file_index)

    # Utilities

    def stats(self, detailed: bool = False) -> str:
        """Summary of the chunk's contents as text."""
        lines = [
            "=== Register Chunk Statistics ===",
            f"Instructions: {len(self.code)}",
            f"Constants: {len(self.constants)}",
            f"Globals: {len(self.globals)}",
            f"Functions: {len(self.functions)}",
            f"Max Registers: {self.max_registers}",
            f"Module: {self.module.name or 'unknown'}",
            f"Optimized: {'yes' if self.is_optimized else 'no'} "
            f"(level {self.optimization_level})",
            f"Debug Info: {'yes' if self.debug is not None else 'no'}",
            f"Checksum: 0x{self.checksum:08X}",
        ]
        if detailed and self.functions:
            lines.append("")
            lines.append("=== Functions ===")
            lines.extend(
                f"{i}: {f.name or 'unnamed'} [{f.start_address:04X}-{f.end_address:04X}] "
                f"{f.parameter_count} params"
                for i, f in enumerate(self.functions)
            )
        lines.append("================================")
        return "\n".join(lines) + "\n"

    def validate(self) -> bool:
        """Whether every function's code range lies within the chunk's code."""
        count = len(self.code)
        return all(
            f.start_address < count
            and f.end_address < count
            and f.start_address <= f.end_address
            for f in self.functions
        )