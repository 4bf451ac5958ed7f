"""Values, bytecode chunks and serialisation, builtins and module lookup for a register-based virtual machine."""

__version__ = "0.1.0"

__all__ = [
    "values",
    "modules",
    "comparison",
    "chunk",
    "bytecode_io",
    "builtins",
    "debug_info",
    "register_chunk",
]