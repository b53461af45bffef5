"""Source regeneration for AST nodes and serialisation of collected globals."""

from .snippet import SnippetPrinter
from .writer import EmitOptions, EmitResult, emit_dump, emit_report, load_dump, write_output

__all__ = [
    "EmitOptions",
    "EmitResult",
    "SnippetPrinter",
    "emit_dump",
    "emit_report",
    "load_dump",
    "write_output",
]
