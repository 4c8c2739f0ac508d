"""
Core domain models for patchwork.

These dataclasses describe source units, text ranges, replacements,
plugins, and the results that flow between plugins and the
coordinator. Source units are immutable: every edit produces a new unit
with a higher version, and ranges remember the version they were
computed against.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Pattern,
    Tuple,
    Union,
)

from tree_sitter import Node, Tree

from . import syntax
from .logging_utils import plugin_logger

if TYPE_CHECKING:
    from .analysis.model import SemanticModel, SemanticQuery
    from .shared import SharedContext


@dataclass(frozen=True)
class Range:
    """
    A half-open [start, end) span of character offsets.

    ``version`` is the SourceUnit version the offsets were computed
    against; None means the range is not tied to a particular version.
    """

    start: int
    end: int
    version: Optional[int] = None

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"invalid range: start ({self.start}) is negative")
        if self.start > self.end:
            raise ValueError(f"invalid range: start ({self.start}) > end ({self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: Range) -> bool:
        """
        True when the two ranges share at least one character, or when a
        zero-length range sits strictly inside the other one.
        """

        return self.start < other.end and other.start < self.end

    def contains(self, other: Range) -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class Replacement:
    """A range of text and what to put in its place."""

    range: Range
    text: str

    @classmethod
    def at(cls, start: int, end: int, text: str, version: Optional[int] = None) -> Replacement:
        return cls(Range(start, end, version), text)

    @property
    def start(self) -> int:
        return self.range.start

    @property
    def end(self) -> int:
        return self.range.end


def _byte_table(text: str) -> Optional[Tuple[int, ...]]:
    """
    Map UTF-8 byte offsets to character offsets.

    Returns None for pure ASCII text, where both offsets coincide.
    """

    encoded_length = len(text.encode("utf-8"))
    if encoded_length == len(text):
        return None

    table = [0] * (encoded_length + 1)
    position = 0
    for index, char in enumerate(text):
        width = len(char.encode("utf-8"))
        for offset in range(width):
            table[position + offset] = index
        position += width
    table[position] = len(text)
    return tuple(table)


@dataclass(frozen=True, eq=False)
class SourceUnit:
    """
    One file's text, its parsed syntax tree and a version marker.

    Use SourceUnit.parse to build one and with_text to derive the next
    version after an edit.
    """

    identifier: str
    text: str
    tree: Tree
    language: str = "typescript"
    version: int = 0
    _bytes: Optional[Tuple[int, ...]] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_bytes", _byte_table(self.text))

    @classmethod
    def parse(
        cls,
        identifier: str,
        text: str,
        language: Optional[str] = None,
        version: int = 0,
    ) -> SourceUnit:
        language = language or syntax.detect_language(identifier)
        return cls(
            identifier=identifier,
            text=text,
            tree=syntax.parse(text, language),
            language=language,
            version=version,
        )

    def with_text(self, text: str) -> SourceUnit:
        """Re-parse ``text`` as the next version of this unit."""

        return SourceUnit.parse(self.identifier, text, self.language, self.version + 1)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def statements(self) -> List[Node]:
        return syntax.statements(self.tree)

    @property
    def body_start(self) -> int:
        """Offset just past a leading ``#!`` line and its line break, else 0."""

        node = syntax.hash_bang(self.tree)
        if node is None:
            return 0
        end = self.range_of(node).end
        if self.text.startswith("\r\n", end):
            return end + 2
        if self.text.startswith("\n", end):
            return end + 1
        return end

    def char_offset(self, byte_offset: int) -> int:
        if self._bytes is None:
            return byte_offset
        return self._bytes[byte_offset]

    def range_of(self, node: Node) -> Range:
        """Character range of ``node`` in this version of the unit."""

        return Range(
            self.char_offset(node.start_byte),
            self.char_offset(node.end_byte),
            self.version,
        )

    def node_text(self, node: Node) -> str:
        span = self.range_of(node)
        return self.text[span.start:span.end]


TextGenerator = Callable[[SourceUnit], str]


@dataclass(frozen=True)
class ReplacementIntent:
    """
    A plugin's request to replace a range, with late-bound text.

    ``generate`` is called only when the coordinator applies the edit,
    with the unit version current at that moment. A plain string is
    accepted for edits whose text does not depend on the unit.
    """

    range: Range
    generate: Union[str, TextGenerator]

    @classmethod
    def for_node(
        cls,
        unit: SourceUnit,
        node: Node,
        generate: Union[str, TextGenerator],
    ) -> ReplacementIntent:
        return cls(unit.range_of(node), generate)

    def render(self, unit: SourceUnit) -> Replacement:
        text = self.generate if isinstance(self.generate, str) else self.generate(unit)
        return Replacement(self.range, text)


def _frozen(values: Union[None, str, Iterable[str]]) -> FrozenSet[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        return frozenset([values])
    return frozenset(values)


@dataclass(frozen=True)
class ImportIntent:
    """
    Names a plugin wants added to or removed from one dependency's
    import declaration, plus an optional namespace alias.
    """

    dependency: str
    add: FrozenSet[str] = frozenset()
    remove: FrozenSet[str] = frozenset()
    namespace: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "add", _frozen(self.add))
        object.__setattr__(self, "remove", _frozen(self.remove))

    @property
    def is_empty(self) -> bool:
        return not self.add and not self.remove and not self.namespace


@dataclass
class TransformResult:
    """
    Edits returned by a plugin for one unit.
    """

    replacements: List[ReplacementIntent] = field(default_factory=list)
    prepend: List[str] = field(default_factory=list)
    imports: List[ImportIntent] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.replacements and not self.prepend and not self.imports


@dataclass
class TransformContext:
    """
    Everything a plugin may look at while transforming a unit.
    """

    unit: SourceUnit
    semantic: SemanticQuery
    shared: SharedContext
    plugin: str = ""

    @property
    def text(self) -> str:
        return self.unit.text

    @property
    def tree(self) -> Tree:
        return self.unit.tree

    @property
    def log(self) -> logging.Logger:
        return plugin_logger(self.plugin or "anonymous")


TransformFn = Callable[[TransformContext], Optional[TransformResult]]
AnalyzeFn = Callable[[TransformContext], None]


@dataclass(frozen=True)
class Plugin:
    """
    A stateless transformation and its optional quick-check gate.

    ``patterns`` are plain substrings; ``regex`` is a pattern searched
    in the text. When either is given, the plugin only runs on text that
    matches. State a plugin needs across units belongs in the shared
    context, never on the plugin itself.
    """

    name: str
    transform: TransformFn
    patterns: Tuple[str, ...] = ()
    regex: Optional[Pattern[str]] = None
    analyze: Optional[AnalyzeFn] = None
    needs_semantics: bool = True

    def __post_init__(self) -> None:
        patterns: Any = self.patterns
        if isinstance(patterns, str):
            patterns = (patterns,)
        object.__setattr__(self, "patterns", tuple(patterns or ()))
        if isinstance(self.regex, str):
            object.__setattr__(self, "regex", re.compile(self.regex))

    @property
    def gated(self) -> bool:
        return bool(self.patterns) or self.regex is not None


@dataclass
class UnitResult:
    """
    Outcome of running a plugin list over one unit.

    ``changed`` compares the final text with the text the pass started
    from. ``stale`` is set by a session when a newer version of the
    unit was submitted while this one was in flight.
    """

    changed: bool
    unit: SourceUnit
    model: Optional[SemanticModel] = None
    diagnostics: List[str] = field(default_factory=list)
    stale: bool = False

    @property
    def text(self) -> str:
        return self.unit.text

    @property
    def tree(self) -> Tree:
        return self.unit.tree
