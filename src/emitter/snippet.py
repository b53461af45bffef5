"""
Regenerate JavaScript source text for individual AST nodes.

esprima records a `[start, end)` character range on every node, so the text
of a statement can be cut straight out of the file it came from. Comments
that fall inside the range are dropped, which keeps snippets comparable
between files that document the same binding differently.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

_MARK = "\x00"
_MARK_RUN = re.compile(r"(?:[ \t]*\x00)+[ \t]*")


class SnippetPrinter:
    """Prints the original source of AST subtrees, without comments."""

    def __init__(self, source: str, comments: Optional[Sequence[Dict[str, Any]]] = None):
        self._source = source
        self._comments: List[Tuple[int, int]] = sorted(
            tuple(comment["range"])
            for comment in comments or []
            if isinstance(comment, dict) and comment.get("range")
        )

    def print_node(self, node: Dict[str, Any]) -> str:
        node_range = node.get("range") if isinstance(node, dict) else None
        if not node_range:
            raise ValueError(f"Node {node.get('type') if isinstance(node, dict) else node!r} has no range.")
        start, end = node_range

        parts: List[str] = []
        cursor = start
        for comment_start, comment_end in self._comments:
            if comment_start < start or comment_end > end:
                continue
            parts.append(self._source[cursor:comment_start])
            parts.append(_MARK)
            cursor = comment_end
        parts.append(self._source[cursor:end])
        text = "".join(parts)
        if _MARK not in text:
            return text
        return _tidy(text)


def _tidy(text: str) -> str:
    lines: List[str] = []
    for line in text.split("\n"):
        if _MARK not in line:
            lines.append(line)
            continue
        indent = line[: len(line) - len(line.lstrip())]
        rest = _drop_marks(line[len(indent):])
        if rest.strip():
            lines.append(indent + rest)
    return "\n".join(lines)


def _drop_marks(text: str) -> str:
    # Only whitespace touching a comment goes; the rest of the line may sit
    # inside a template literal.
    def replace(match: "re.Match[str]") -> str:
        if match.start() == 0 or match.end() == len(text):
            return ""
        # A block comment between two tokens still separates them.
        return " "

    return _MARK_RUN.sub(replace, text)


__all__ = ["SnippetPrinter"]
