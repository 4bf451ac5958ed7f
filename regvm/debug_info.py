"""Optional debug information attached to a register chunk."""

from __future__ import annotations

from dataclasses import dataclass, field

MAX_SOURCE_FILES = 0xFFFF


@dataclass
class SourceLocation:
    """Source position of one instruction."""

    line: int = 0
    column: int = 0
    file_index: int = 0


@dataclass
class DebugInfo:
    """Per-instruction source locations and the source files they refer to."""

    locations: list[SourceLocation] = field(default_factory=list)
    source_files: list[str] = field(default_factory=list)
    variable_names: list[str] = field(default_factory=list)
    variable_scopes: list[int] = field(default_factory=list)
    line_starts: list[int] = field(default_factory=list)

    def record_location(self, address: int, line: int, column: int) -> None:
        """Record the position of the instruction at ``address`` in the first source file."""
        if address < 0:
            raise ValueError(f"negative address {address}")
        if address >= len(self.locations):
            self.locations.extend(
                SourceLocation() for _ in range(address + 1 - len(self.locations))
            )
        self.locations[address] = SourceLocation(line, column, 0)

    def add_source_file(self, file_path: str) -> int:
        """Index of ``file_path`` in the file table, adding it if new."""
        try:
            return self.source_files.index(file_path)
        except ValueError:
            pass
        if len(self.source_files) >= MAX_SOURCE_FILES:
            raise ValueError("too many source files")
        self.source_files.append(file_path)
        return len(self.source_files) - 1

    def get_location(self, address: int) -> SourceLocation | None:
        if 0 <= address < len(self.locations):
            return self.locations[address]
        return None

    def get_source_file(self, file_index: int) -> str | None:
        if 0 <= file_index < len(self.source_files):
            return self.source_files[file_index]
        return None