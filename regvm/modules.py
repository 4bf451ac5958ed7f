"""Module cache, import-cycle tracking and module source lookup."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from regvm.values import Value

MAX_MODULES = 255
MAX_LOADING_DEPTH = 255
MAX_EXPORTS = 255
MODULE_EXTENSION = ".orus"
DEFAULT_STD_PATH = "std"


class ModuleError(Exception):
    """Raised when a module cannot be found, registered or loaded."""


@dataclass
class Export:
    """A public global exported by a module."""

    name: str
    value: Value
    index: int


@dataclass
class Module:
    """A loaded module and its compiled forms."""

    module_name: str
    name: str = ""
    bytecode: Any = None
    reg_bytecode: Any = None
    exports: list[Export] = field(default_factory=list)
    executed: bool = False
    disk_path: str | None = None
    mtime: int = 0
    from_embedded: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            self.name = module_short_name(self.module_name)
        if len(self.exports) > MAX_EXPORTS:
            raise ModuleError("too many exports")


@dataclass
class LoadedSource:
    """Module source text and where it came from."""

    source: str
    disk_path: str | None = None
    mtime: int = 0
    from_embedded: bool = False


def module_short_name(path: str) -> str:
    """Last path component without the module extension."""
    base = path.rsplit("/", 1)[-1]
    if len(base) > len(MODULE_EXTENSION) and base.endswith(MODULE_EXTENSION):
        base = base[: -len(MODULE_EXTENSION)]
    return base


def cache_path_for(cache_dir: str | None, module_path: str) -> str | None:
    """Path of the compiled cache file for a module, or None without a cache dir."""
    if not cache_dir:
        return None
    base = module_path.rsplit("/", 1)[-1]
    return f"{cache_dir}/{base}.obc"


def _read_source(path: str) -> LoadedSource | None:
    try:
        with open(path, encoding="utf-8") as fh:
            source = fh.read()
    except (OSError, UnicodeDecodeError):
        return None
    try:
        mtime = int(os.stat(path).st_mtime)
    except OSError:
        mtime = 0
    return LoadedSource(source, path, mtime, False)


def load_module_with_fallback(
    path: str,
    std_path: str | None = None,
    embedded: Mapping[str, str] | None = None,
) -> LoadedSource:
    """Find module source on disk, in the standard library directory, or embedded."""
    loaded = _read_source(path)
    if loaded is not None:
        return loaded

    base = std_path or DEFAULT_STD_PATH
    sub = path[4:] if path.startswith("std/") else path
    loaded = _read_source(f"{base}/{sub}")
    if loaded is not None:
        return loaded

    if embedded is not None and path in embedded:
        return LoadedSource(embedded[path], None, 0, True)

    raise ModuleError(f"Module `{path}` not found")


class ModuleRegistry:
    """Cache of loaded modules plus the stack of modules being loaded."""

    def __init__(self) -> None:
        self._modules: list[Module] = []
        self._loading: list[str] = []

    def register(self, module: Module) -> None:
        if len(self._modules) >= MAX_MODULES:
            raise ModuleError("module cache is full")
        self._modules.append(module)

    def get(self, name: str) -> Module | None:
        return next((m for m in self._modules if m.module_name == name), None)

    def get_export(self, module: Module, name: str) -> Export | None:
        return next((e for e in module.exports if e.name == name), None)

    def begin_loading(self, path: str) -> None:
        """Mark a module as being loaded; raises on an import cycle."""
        if path in self._loading:
            raise ModuleError(f"Import cycle detected for module `{path}`")
        if len(self._loading) >= MAX_LOADING_DEPTH:
            raise ModuleError("import nesting too deep")
        self._loading.append(path)

    def finish_loading(self, path: str) -> None:
        for pos in range(len(self._loading) - 1, -1, -1):
            if self._loading[pos] == path:
                del self._loading[pos]
                return
        raise ModuleError(f"Module `{path}` is not being loaded")

    def __len__(self) -> int:
        return len(self._modules)