"""
JavaScript parsing utilities built on top of the Python `esprima` port.

The module exposes `parse_js`, which returns the JSON-compatible AST along with
the source text it was parsed from. Every node carries a `range` so later
phases can cut the original text back out of the file, and comments are
collected so they can be left out of regenerated snippets. Extension API
files are loaded as classic scripts, so the script goal is the default.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import esprima


class ParseError(RuntimeError):
    """Raised when a source file cannot be parsed at all."""

    def __init__(
        self,
        description: str,
        *,
        source_name: str = "<input>",
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        loc = ""
        if line is not None:
            loc = f":{line}" if column is None else f":{line}:{column}"
        super().__init__(f"{source_name}{loc}: {description}")
        self.description = description
        self.source_name = source_name
        self.line = line
        self.column = column


@dataclass(frozen=True)
class ParseIssue:
    """Represents a recoverable parsing issue detected by esprima."""

    description: str
    line: Optional[int]
    column: Optional[int]


@dataclass(frozen=True)
class ParseResult:
    """Aggregate of the output AST plus metadata about the parse run."""

    ast: Dict[str, Any]
    source: str
    issues: List[ParseIssue]
    source_hash: str
    source_name: str

    @property
    def comments(self) -> List[Dict[str, Any]]:
        return self.ast.get("comments") or []

    def to_json(self) -> str:
        """Serialise the parse result to JSON for debugging or caching."""
        payload = {
            "ast": self.ast,
            "issues": [issue.__dict__ for issue in self.issues],
            "source_hash": self.source_hash,
            "source_name": self.source_name,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2, default=str)


def _hash_source(source: str) -> str:
    """Create a deterministic hash for cache keying."""
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


def _issue_from(error: Any) -> ParseIssue:
    # Tolerant-mode errors come back either as dicts or as esprima.Error objects.
    if isinstance(error, dict):
        return ParseIssue(
            description=error.get("description"),
            line=error.get("lineNumber"),
            column=error.get("column"),
        )
    return ParseIssue(
        description=getattr(error, "description", None) or str(error),
        line=getattr(error, "lineNumber", None),
        column=getattr(error, "column", None),
    )


def parse_js(
    source: str,
    *,
    source_name: str = "<input>",
    tolerant: bool = False,
    source_type: str = "script",
) -> ParseResult:
    """
    Parse JavaScript source text into an esprima AST.

    Args:
        source: Raw JavaScript source code.
        source_name: Label used for diagnostics (defaults to `<input>`).
        tolerant: When True, esprima recovers from minor errors and reports
            them as `ParseIssue` entries instead of failing.
        source_type: `"script"` or `"module"`.

    Returns:
        ParseResult containing the AST, the source and any recoverable issues.

    Raises:
        ParseError: If esprima cannot produce a tree for the source.
    """
    options = dict(loc=True, range=True, comment=True, tolerant=tolerant)
    parser = esprima.parseModule if source_type == "module" else esprima.parseScript
    try:
        ast = parser(source, **options)
    except esprima.Error as exc:
        raise ParseError(
            getattr(exc, "description", None) or str(exc),
            source_name=source_name,
            line=getattr(exc, "lineNumber", None),
            column=getattr(exc, "column", None),
        ) from exc

    raw_ast = ast.toDict() if hasattr(ast, "toDict") else ast
    if not isinstance(raw_ast, dict) or raw_ast.get("type") != "Program":
        raise ParseError("Parser did not return a Program node.", source_name=source_name)

    issues: List[ParseIssue] = []
    if tolerant:
        # Collect recoverable errors reported by esprima in tolerant mode.
        for error in raw_ast.get("errors") or []:
            issues.append(_issue_from(error))

    return ParseResult(
        ast=raw_ast,
        source=source,
        issues=issues,
        source_hash=_hash_source(source),
        source_name=source_name,
    )


__all__ = ["ParseError", "ParseIssue", "ParseResult", "parse_js"]
