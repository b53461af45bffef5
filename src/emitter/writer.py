"""
Serialize aggregated globals, ready for writing to disk.

`emit_dump` renders the JSON object the viewer fetches (binding name mapped
to its list of occurrences). `emit_report` renders the human-oriented
collision report as YAML. Both accept any mapping whose values are
sequences of objects exposing `to_dict()`, or of plain dicts as read back
by `load_dump`.
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import yaml


@dataclass(frozen=True)
class EmitOptions:
    indent: Optional[int] = None
    sort_keys: bool = False
    trailing_newline: bool = True


@dataclass(frozen=True)
class EmitResult:
    source: str
    entries: int


def _as_payload(globals_map: Mapping[str, Sequence[Any]], sort_keys: bool) -> Dict[str, List[Dict[str, Any]]]:
    names = sorted(globals_map) if sort_keys else list(globals_map)
    return {name: [_as_dict(item) for item in globals_map[name]] for name in names}


def _as_dict(item: Any) -> Dict[str, Any]:
    if hasattr(item, "to_dict"):
        return item.to_dict()
    return dict(item)


def emit_dump(
    globals_map: Mapping[str, Sequence[Any]], options: Optional[EmitOptions] = None
) -> EmitResult:
    """
    Render the globals mapping as the JSON object consumed by the viewer.
    """
    options = options or EmitOptions()
    payload = _as_payload(globals_map, options.sort_keys)

    buffer = io.StringIO()
    json.dump(payload, buffer, ensure_ascii=False, indent=options.indent)
    if options.trailing_newline:
        buffer.write("\n")
    return EmitResult(source=buffer.getvalue(), entries=len(payload))


def emit_report(
    globals_map: Mapping[str, Sequence[Any]], options: Optional[EmitOptions] = None
) -> EmitResult:
    """
    Render the globals mapping as YAML, one top-level key per binding name.
    """
    options = options or EmitOptions()
    payload = _as_payload(globals_map, options.sort_keys)
    if not payload:
        return EmitResult(source="", entries=0)
    source = yaml.safe_dump(
        payload,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
    if not options.trailing_newline:
        source = source.rstrip("\n")
    return EmitResult(source=source, entries=len(payload))


def load_dump(path: Union[str, Path]) -> Dict[str, List[Dict[str, Any]]]:
    """Read back a JSON dump written by `emit_dump`."""
    with Path(path).open(encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at the top level.")
    return data


def write_output(result: EmitResult, path: Union[str, Path]) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.source, encoding="utf-8")
    return output_path


__all__ = [
    "EmitOptions",
    "EmitResult",
    "emit_dump",
    "emit_report",
    "load_dump",
    "write_output",
]
