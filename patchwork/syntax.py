"""
Syntax-tree helpers for patchwork.

Parsing is delegated to tree-sitter with the TypeScript grammars, which
also accept plain JavaScript. Everything here works on tree-sitter
nodes and byte offsets; conversion to character ranges happens on the
SourceUnit that owns the text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar

import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Node, Parser, Tree

from .errors import ParseError

T = TypeVar("T")

LANGUAGES: Dict[str, Language] = {
    "typescript": Language(ts_typescript.language_typescript()),
    "tsx": Language(ts_typescript.language_tsx()),
}

IMPORT_STATEMENT = "import_statement"
EXPORT_STATEMENT = "export_statement"
HASH_BANG = "hash_bang_line"


def detect_language(path: str) -> str:
    """
    Pick the grammar for a file path based on its extension.

    JSX needs the TSX grammar; every other script flavour parses with
    the TypeScript one.
    """

    lower = path.lower()
    if lower.endswith(".tsx") or lower.endswith(".jsx"):
        return "tsx"
    return "typescript"


def parse(text: str, language: str = "typescript") -> Tree:
    """
    Parse source text into a tree-sitter Tree.

    A fresh Parser is created per call; parsers are cheap and are not
    safe to share between threads.
    """

    grammar = LANGUAGES.get(language)
    if grammar is None:
        raise ParseError(f"unsupported language {language!r}")

    tree = Parser(grammar).parse(text.encode("utf-8"))
    if tree is None:
        raise ParseError("parser returned no tree")
    return tree


def statements(tree: Tree) -> List[Node]:
    """Top-level statements of a program, without comments or a ``#!`` line."""

    return [child for child in tree.root_node.named_children if child.type not in ("comment", HASH_BANG)]


def hash_bang(tree: Tree) -> Optional[Node]:
    """The ``#!`` interpreter line at the top of a program, if any."""

    for child in tree.root_node.children:
        if child.type == HASH_BANG:
            return child
    return None


def is_import(node: Node) -> bool:
    return node.type == IMPORT_STATEMENT


def leading_imports(tree: Tree) -> List[Node]:
    """
    The contiguous run of import statements at the top of a program.

    Comments between imports do not break the run.
    """

    run: List[Node] = []
    for node in statements(tree):
        if not is_import(node):
            break
        run.append(node)
    return run


def string_value(node: Node) -> str:
    """Value of a string literal node, without its quotes."""

    raw = node_text(node)
    if len(raw) >= 2 and raw[0] in "'\"`" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


def node_text(node: Node) -> str:
    data = node.text
    if data is None:
        return ""
    return data.decode("utf-8")


def has_keyword(node: Node, keyword: str) -> bool:
    """True when ``node`` has an anonymous child token ``keyword``."""

    return any(not child.is_named and child.type == keyword for child in node.children)


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal of ``node`` and all of its descendants."""

    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


@dataclass
class NodeMatch(Generic[T]):
    """A node picked by collect_nodes and the value its predicate returned."""

    node: Node
    data: T


def collect_nodes(root: Node, predicate: Callable[[Node], Optional[T]]) -> List[NodeMatch[T]]:
    """
    Collect every node for which ``predicate`` returns something other
    than None, together with that value, in document order.
    """

    matches: List[NodeMatch[T]] = []
    for node in walk(root):
        data = predicate(node)
        if data is not None:
            matches.append(NodeMatch(node=node, data=data))
    return matches


def property_path(node: Node) -> Optional[str]:
    """
    Dotted name of an identifier or member-access chain (``a.b.c``).

    Returns None when the chain is rooted at anything other than a plain
    identifier, e.g. a call or a computed member.
    """

    parts: List[str] = []
    current: Optional[Node] = node
    while current is not None and current.type == "member_expression":
        prop = current.child_by_field_name("property")
        if prop is None:
            return None
        parts.append(node_text(prop))
        current = current.child_by_field_name("object")

    if current is None or current.type not in ("identifier", "this"):
        return None
    parts.append(node_text(current))
    return ".".join(reversed(parts))
