"""
Top-level binding extraction for JavaScript ASTs.

Extension API implementation files are loaded as flat scripts into one shared
global object, so every binding made at the outermost level of one file is
visible to (and can collide with) every other file. The extractor walks an
esprima-compatible AST and reports those bindings:

* `const` / `let` / `var` statements that are direct items of the program
  body, including names bound through a flat object pattern;
* function declarations that are direct items of the program body;
* `this.<prop> = ...` assignments evaluated in program scope, where `this`
  is the shared global.

Each record carries the source of the whole statement that introduced it, so
names that collide can be compared side by side. Binding shapes the walker
does not understand abort the scan with `UnsupportedPatternError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from emitter import SnippetPrinter
from log_config import get_logger

logger = get_logger("analyzer")


class GlobalKind(str, Enum):
    CONST = "const"
    LET = "let"
    VAR = "var"
    FUNCTION = "function"
    GLOBAL_THIS_ASSIGNMENT = "global-this-assignment"


@dataclass(frozen=True)
class DetectedGlobal:
    """A single name made visible in the shared global scope by one file."""

    name: str
    kind: GlobalKind
    source_snippet: str
    source_file: str


class UnsupportedPatternError(RuntimeError):
    """Raised when a declaration binds names through a pattern we cannot read."""

    def __init__(
        self,
        message: str,
        *,
        node: Optional[Dict[str, Any]] = None,
        source_name: str = "<input>",
        snippet: Optional[str] = None,
    ):
        self.line: Optional[int] = None
        self.column: Optional[int] = None
        if node and isinstance(node, dict):
            start = (node.get("loc") or {}).get("start") or {}
            self.line = start.get("line")
            self.column = start.get("column")
        loc = ""
        if self.line is not None:
            loc = f":{self.line}" if self.column is None else f":{self.line}:{self.column}"
        text = f"{source_name}{loc}: {message}"
        if snippet:
            text = f"{text}\n{snippet}"
        super().__init__(text)
        self.node = node
        self.source_name = source_name
        self.snippet = snippet


# Nodes that open a new scope; code below them does not run with the global
# object as `this` and declarations inside them are not global.
_SCOPE_NODE_TYPES = frozenset(
    {
        "ArrowFunctionExpression",
        "BlockStatement",
        "CatchClause",
        "ClassDeclaration",
        "ClassExpression",
        "DoWhileStatement",
        "ForInStatement",
        "ForOfStatement",
        "ForStatement",
        "FunctionDeclaration",
        "FunctionExpression",
        "SwitchStatement",
        "WhileStatement",
    }
)


class _GlobalExtractor:
    def __init__(self, printer: SnippetPrinter, source_name: str) -> None:
        self._printer = printer
        self._source_name = source_name
        self._records: List[DetectedGlobal] = []
        self._statement: Optional[Dict[str, Any]] = None

    def extract(self, program: Dict[str, Any]) -> List[DetectedGlobal]:
        if not isinstance(program, dict) or program.get("type") != "Program":
            raise ValueError("Expected Program node at the root.")
        for statement in program.get("body") or []:
            self._statement = statement
            self._visit_top_level(statement)
        self._statement = None
        return list(self._records)

    # ------------------------------------------------------------------ helpers

    def _emit(self, name: str, kind: GlobalKind, snippet: str) -> None:
        logger.debug("detected global: %s %s (%s)", kind.value, name, self._source_name)
        self._records.append(
            DetectedGlobal(
                name=name,
                kind=kind,
                source_snippet=snippet,
                source_file=self._source_name,
            )
        )

    def _unsupported(self, message: str, node: Dict[str, Any]) -> UnsupportedPatternError:
        snippet = None
        if self._statement is not None:
            snippet = self._printer.print_node(self._statement)
        return UnsupportedPatternError(
            message, node=node, source_name=self._source_name, snippet=snippet
        )

    # ----------------------------------------------------------- top-level items

    def _visit_top_level(self, node: Dict[str, Any]) -> None:
        node_type = node.get("type")
        if node_type == "VariableDeclaration":
            self._visit_declaration(node)
        elif node_type == "FunctionDeclaration":
            identifier = node.get("id") or {}
            self._emit(identifier.get("name"), GlobalKind.FUNCTION, self._printer.print_node(node))
        else:
            self._visit(node)

    def _visit_declaration(self, node: Dict[str, Any]) -> None:
        kind = GlobalKind(node.get("kind"))
        snippet = self._printer.print_node(node)
        declarators = node.get("declarations") or []
        for declarator in declarators:
            for name in self._bound_names(declarator.get("id"), kind):
                self._emit(name, kind, snippet)
        for declarator in declarators:
            self._visit(declarator.get("init"))

    def _bound_names(self, pattern: Dict[str, Any], kind: GlobalKind) -> List[str]:
        pattern_type = pattern.get("type") if isinstance(pattern, dict) else None
        if pattern_type == "Identifier":
            return [pattern.get("name")]
        if pattern_type == "ObjectPattern":
            return [self._object_property_name(prop, kind) for prop in pattern.get("properties") or []]
        raise self._unsupported(
            f"Unsupported binding pattern {pattern_type} in top-level {kind.value} declaration.",
            pattern,
        )

    def _object_property_name(self, prop: Dict[str, Any], kind: GlobalKind) -> str:
        if prop.get("type") == "RestElement":
            argument = prop.get("argument") or {}
            if argument.get("type") == "Identifier":
                return argument.get("name")
            raise self._unsupported("Unsupported rest element in object pattern.", prop)
        if prop.get("type") != "Property":
            raise self._unsupported(
                f"Unsupported object pattern member {prop.get('type')} in top-level {kind.value} declaration.",
                prop,
            )

        value = prop.get("value") or {}
        if value.get("type") == "Identifier":
            return value.get("name")
        if value.get("type") == "AssignmentPattern":
            left = value.get("left") or {}
            if left.get("type") == "Identifier":
                return left.get("name")

        # Nested patterns are reported under the outer key only.
        key = prop.get("key") or {}
        if not prop.get("computed"):
            if key.get("type") == "Identifier":
                return key.get("name")
            if key.get("type") == "Literal" and isinstance(key.get("value"), str):
                return key.get("value")
        raise self._unsupported("Unsupported property key in object pattern.", prop)

    # --------------------------------------------------------- program scope walk

    def _visit(self, node: Any) -> None:
        if node is None:
            return
        if isinstance(node, list):
            for element in node:
                self._visit(element)
            return
        if not isinstance(node, dict):
            return

        node_type = node.get("type")
        if node_type in _SCOPE_NODE_TYPES:
            return
        if node_type == "ExpressionStatement":
            expression = node.get("expression")
            if isinstance(expression, dict) and expression.get("type") == "AssignmentExpression":
                self._visit_assignment(expression, statement=node)
            else:
                self._visit(expression)
        elif node_type == "AssignmentExpression":
            self._visit_assignment(node, statement=None)
        else:
            for key, value in node.items():
                if key in {"loc", "range"}:
                    continue
                self._visit(value)

    def _visit_assignment(
        self, node: Dict[str, Any], *, statement: Optional[Dict[str, Any]]
    ) -> None:
        names = self._this_properties(node.get("left"))
        if names:
            snippet = self._printer.print_node(statement if statement is not None else node)
            for name in names:
                self._emit(name, GlobalKind.GLOBAL_THIS_ASSIGNMENT, snippet)
        self._visit(node.get("left"))
        self._visit(node.get("right"))

    def _this_properties(self, target: Any) -> List[str]:
        """Names of `this.<name>` members written by an assignment target."""
        if not isinstance(target, dict):
            return []
        target_type = target.get("type")
        if target_type == "MemberExpression":
            obj = target.get("object") or {}
            if obj.get("type") == "ThisExpression":
                name = _member_name(target)
                return [name] if name is not None else []
            return self._this_properties(obj)
        if target_type == "ArrayPattern":
            names: List[str] = []
            for element in target.get("elements") or []:
                names.extend(self._this_properties(element))
            return names
        if target_type == "ObjectPattern":
            names = []
            for prop in target.get("properties") or []:
                if prop.get("type") == "RestElement":
                    names.extend(self._this_properties(prop.get("argument")))
                else:
                    names.extend(self._this_properties(prop.get("value")))
            return names
        if target_type == "AssignmentPattern":
            return self._this_properties(target.get("left"))
        if target_type == "RestElement":
            return self._this_properties(target.get("argument"))
        return []


def _member_name(node: Dict[str, Any]) -> Optional[str]:
    prop = node.get("property") or {}
    if not node.get("computed"):
        return prop.get("name") if prop.get("type") == "Identifier" else None
    if prop.get("type") == "Literal" and isinstance(prop.get("value"), str):
        return prop.get("value")
    return None


def extract_globals(
    ast: Dict[str, Any],
    *,
    source: str,
    source_name: str = "<input>",
    comments: Optional[Sequence[Dict[str, Any]]] = None,
) -> List[DetectedGlobal]:
    """
    Collect the bindings a script introduces into the shared global scope.

    Args:
        ast: esprima-compatible Program node parsed with `range` enabled.
        source: The text `ast` was parsed from, used to regenerate snippets.
        source_name: Path recorded on every result and used in diagnostics.
        comments: Comment nodes to leave out of snippets (defaults to the
            `comments` collected on `ast`).

    Returns:
        DetectedGlobal records in document order.

    Raises:
        UnsupportedPatternError: If a top-level declaration binds names
            through anything other than an identifier or a flat object pattern.
    """
    if comments is None:
        comments = ast.get("comments") or []
    printer = SnippetPrinter(source, comments)
    return _GlobalExtractor(printer, source_name).extract(ast)


__all__ = [
    "DetectedGlobal",
    "GlobalKind",
    "UnsupportedPatternError",
    "extract_globals",
]
