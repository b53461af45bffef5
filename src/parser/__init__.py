"""Interfaces for parsing JavaScript source code."""

from .js_parser import ParseError, ParseIssue, ParseResult, parse_js

__all__ = ["ParseError", "ParseIssue", "ParseResult", "parse_js"]
