"""
Front-end integration utilities stitching together parsing and extraction.

The `run_frontend` function accepts raw JavaScript source, invokes the parser to
obtain an AST, runs the global binding extractor over it, and persists cached
parse artefacts when requested. The collector calls it once per file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from analyzer import DetectedGlobal, extract_globals
from log_config import get_logger
from parser import ParseResult, parse_js

logger = get_logger("frontend")


@dataclass(frozen=True)
class FrontEndResult:
    """Combined output from the parsing and extraction pipeline."""

    parse: ParseResult
    globals: List[DetectedGlobal]

    @property
    def names(self) -> List[str]:
        return [detected.name for detected in self.globals]


def run_frontend(
    source: str,
    *,
    source_name: str = "<input>",
    tolerant: bool = False,
    cache_dir: Optional[Union[str, Path]] = None,
) -> FrontEndResult:
    """
    Parse one script and extract the globals it declares.

    Args:
        source: Raw JavaScript source text.
        source_name: Identifier used in diagnostics and recorded on each
            detected global, e.g. the path relative to the scanned tree.
        tolerant: Forwarded to parser; when True esprima attempts recovery.
        cache_dir: Optional directory to write parse artefacts (`None` disables).

    Returns:
        FrontEndResult containing the parser output and the detected globals.

    Raises:
        ParseError: If the source cannot be parsed.
        UnsupportedPatternError: If a top-level binding shape is not understood.
    """
    parse_result = parse_js(source, source_name=source_name, tolerant=tolerant)
    for issue in parse_result.issues:
        logger.warning(
            "%s:%s:%s: recovered from parse error: %s",
            source_name,
            issue.line,
            issue.column,
            issue.description,
        )

    if cache_dir is not None:
        _persist_parse(cache_dir, parse_result)

    detected = extract_globals(
        parse_result.ast,
        source=parse_result.source,
        source_name=source_name,
        comments=parse_result.comments,
    )
    return FrontEndResult(parse=parse_result, globals=detected)


def _persist_parse(cache_dir: Union[str, Path], parse_result: ParseResult) -> None:
    """Store the raw parse output to disk for reuse in subsequent runs."""
    path = Path(cache_dir)
    path.mkdir(parents=True, exist_ok=True)
    cache_file = path / f"{parse_result.source_hash}.json"
    cache_file.write_text(parse_result.to_json(), encoding="utf-8")


__all__ = ["FrontEndResult", "run_frontend"]
