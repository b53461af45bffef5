"""Static analysis of the global bindings JavaScript scripts introduce."""

from .global_extractor import (
    DetectedGlobal,
    GlobalKind,
    UnsupportedPatternError,
    extract_globals,
)

__all__ = [
    "DetectedGlobal",
    "GlobalKind",
    "UnsupportedPatternError",
    "extract_globals",
]
