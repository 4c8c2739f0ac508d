"""
Semantic model interface and the project-backed base model.

A semantic model answers symbol questions across a graph of units:
what a name is bound to in a unit, and where an imported name is
ultimately declared. Concrete models only have to say where a unit's
text comes from and which version it is; analysis, caching and
cross-unit resolution are shared.
"""

from __future__ import annotations

import logging
import posixpath
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from tree_sitter import Node

from .. import syntax
from ..domain import SourceUnit
from .cache import AnalysisCache
from .symbols import Symbol, UnitSymbols, extract_symbols

LOG = logging.getLogger(__name__)

MODULE_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".mts", ".cts", ".d.ts", ".js", ".jsx", ".mjs", ".cjs")
_SCRIPT_SUFFIXES = {".js": (".ts", ".tsx"), ".jsx": (".tsx",), ".mjs": (".mts",), ".cjs": (".cts",)}


def normalize_identifier(identifier: str) -> str:
    """Use forward slashes so identifiers compare equal across platforms."""

    return identifier.replace("\\", "/")


class SemanticModel(ABC):
    """
    Abstract interface for symbol queries over a set of units.
    """

    cache: AnalysisCache

    @abstractmethod
    def source(self, identifier: str) -> Optional[str]:
        """
        Return the current text of ``identifier``, or None when the unit
        is unknown to this model.
        """

    @abstractmethod
    def version_of(self, identifier: str) -> int:
        """
        Return the analysis version of ``identifier``. Two different
        texts for the same identifier never share a version.
        """

    @abstractmethod
    def identifiers(self) -> List[str]:
        """Identifiers of the units this model knows about up front."""

    def exists(self, identifier: str) -> bool:
        return self.source(identifier) is not None

    def analysis(self, identifier: str) -> Optional[UnitSymbols]:
        identifier = normalize_identifier(identifier)
        text = self.source(identifier)
        if text is None:
            return None

        version = self.version_of(identifier)
        return self.cache.get_or_build(
            identifier,
            version,
            lambda: self._analyze(identifier, text),
        )

    def _analyze(self, identifier: str, text: str) -> UnitSymbols:
        return extract_symbols(SourceUnit.parse(identifier, text))

    def resolve_module(self, identifier: str, specifier: Optional[str]) -> Optional[str]:
        """
        Resolve a relative module specifier against ``identifier``.

        Bare specifiers (packages) are left to the host and resolve to
        None. ``./x.js`` also finds ``./x.ts``, as TypeScript's ESM
        resolution does.
        """

        if not specifier or not specifier.startswith("."):
            return None

        base = posixpath.dirname(normalize_identifier(identifier))
        joined = posixpath.normpath(posixpath.join(base, specifier))

        candidates: List[str] = [joined]
        stem, suffix = posixpath.splitext(joined)
        for replacement in _SCRIPT_SUFFIXES.get(suffix, ()):
            candidates.append(stem + replacement)
        candidates.extend(joined + ext for ext in MODULE_EXTENSIONS)
        candidates.extend(f"{joined}/index{ext}" for ext in MODULE_EXTENSIONS)

        for candidate in candidates:
            if self.exists(candidate):
                return candidate
        return None

    def chain(self, identifier: str, name: str) -> List[Symbol]:
        """
        Every binding visited while resolving ``name`` in ``identifier``:
        the local binding first, then each import or re-export hop, and
        finally the declaration when it lives in a known unit.
        """

        path: List[Symbol] = []
        self._follow_binding(normalize_identifier(identifier), name, set(), path)
        return path

    def resolve(self, identifier: str, name: str) -> Optional[Symbol]:
        """
        The declaration ``name`` refers to in ``identifier``.

        Imports that cannot be followed (packages, missing units) resolve
        to the import binding itself.
        """

        path = self.chain(identifier, name)
        return path[-1] if path else None

    def trace(self, identifier: str, name: str) -> Optional[str]:
        """Identifier of the unit that declares ``name``, if known."""

        symbol = self.resolve(identifier, name)
        if symbol is None or symbol.is_import:
            return None
        return symbol.identifier

    def _follow_binding(
        self,
        identifier: str,
        name: str,
        seen: Set[Tuple[str, str, str]],
        path: List[Symbol],
    ) -> bool:
        key = (identifier, name, "binding")
        if key in seen:
            return False
        seen.add(key)

        symbols = self.analysis(identifier)
        if symbols is None:
            return False
        symbol = symbols.bindings.get(name)
        if symbol is None:
            return False

        path.append(symbol)
        if not symbol.is_import or symbol.imported == "*":
            return True

        target = self.resolve_module(identifier, symbol.source)
        if target is not None and symbol.imported is not None:
            self._follow_export(target, symbol.imported, seen, path)
        return True

    def _follow_export(
        self,
        identifier: str,
        name: str,
        seen: Set[Tuple[str, str, str]],
        path: List[Symbol],
    ) -> bool:
        key = (identifier, name, "export")
        if key in seen:
            return False
        seen.add(key)

        symbols = self.analysis(identifier)
        if symbols is None:
            return False

        export = symbols.exports.get(name)
        if export is not None:
            if export.symbol is not None:
                path.append(export.symbol)
                return True
            if export.source is None:
                return export.local is not None and self._follow_binding(
                    identifier, export.local, seen, path
                )

            path.append(export.as_symbol(identifier))
            target = self.resolve_module(identifier, export.source)
            if target is not None and export.imported not in (None, "*"):
                self._follow_export(target, export.imported, seen, path)
            return True

        # `export *` never forwards the default export.
        if name == "default":
            return False
        for source in symbols.star_exports:
            target = self.resolve_module(identifier, source)
            if target is not None and self._follow_export(target, name, seen, path):
                return True
        return False


class ProjectModel(SemanticModel):
    """
    Base model over a fixed set of units.

    Text comes from the in-memory ``sources`` mapping first and, when a
    ``root`` is given, from files on disk. A file is read once, the first
    time it is asked for, and that text stays paired with its version
    until update or invalidate is called for that identifier.
    """

    def __init__(
        self,
        sources: Optional[Mapping[str, str]] = None,
        root: Optional[str] = None,
        cache: Optional[AnalysisCache] = None,
    ) -> None:
        self.cache = cache if cache is not None else AnalysisCache()
        self.root = Path(root) if root else None
        self._sources: Dict[str, str] = {
            normalize_identifier(k): v for k, v in (sources or {}).items()
        }
        self._disk: Dict[str, str] = {}
        self._versions: Dict[str, int] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_units(cls, units: Iterable[SourceUnit], cache: Optional[AnalysisCache] = None) -> ProjectModel:
        return cls({unit.identifier: unit.text for unit in units}, cache=cache)

    def identifiers(self) -> List[str]:
        with self._lock:
            return sorted(self._sources)

    def source(self, identifier: str) -> Optional[str]:
        identifier = normalize_identifier(identifier)
        with self._lock:
            text = self._sources.get(identifier)
            if text is None:
                text = self._disk.get(identifier)
        if text is not None or self.root is None:
            return text

        path = Path(identifier)
        if not path.is_absolute():
            path = self.root / path
        if not path.is_file():
            return None
        text = path.read_text(encoding="utf-8")
        with self._lock:
            return self._disk.setdefault(identifier, text)

    def version_of(self, identifier: str) -> int:
        identifier = normalize_identifier(identifier)
        with self._lock:
            version = self._versions.get(identifier)
            if version is None:
                version = self.cache.next_version(identifier)
                self._versions[identifier] = version
            return version

    def update(self, identifier: str, text: str) -> int:
        """
        Replace the text of ``identifier`` and return its new version.

        Used by hosts to commit a finished pass so later units resolve
        against the transformed text.
        """

        identifier = normalize_identifier(identifier)
        version = self.cache.next_version(identifier)
        with self._lock:
            self._sources[identifier] = text
            self._versions[identifier] = version
        self.cache.invalidate(identifier)
        LOG.debug("Updated %s to model version %d", identifier, version)
        return version

    def invalidate(self, identifier: str) -> None:
        """
        Forget any in-memory or previously read text for ``identifier``
        and drop its cached analyses. The next lookup reads the file
        again, if a root is set.
        """

        identifier = normalize_identifier(identifier)
        version = self.cache.next_version(identifier)
        with self._lock:
            self._sources.pop(identifier, None)
            self._disk.pop(identifier, None)
            self._versions[identifier] = version
        self.cache.invalidate(identifier)


class SemanticQuery:
    """
    Symbol queries bound to one model and one unit.

    This is what plugins receive in their transform context; it always
    reflects the text the plugin is looking at.
    """

    def __init__(self, model: SemanticModel, unit: SourceUnit) -> None:
        self.model = model
        self.unit = unit

    @property
    def identifier(self) -> str:
        return normalize_identifier(self.unit.identifier)

    def symbols(self) -> UnitSymbols:
        symbols = self.model.analysis(self.identifier)
        if symbols is None:
            return extract_symbols(self.unit)
        return symbols

    def binding(self, name: str) -> Optional[Symbol]:
        """The local binding of ``name``, without following imports."""

        return self.symbols().bindings.get(name)

    def resolve(self, name: str) -> Optional[Symbol]:
        return self.model.resolve(self.identifier, name)

    def resolve_node(self, node: Node) -> Optional[Symbol]:
        """Resolve an identifier node of the current tree."""

        if node.type not in ("identifier", "type_identifier", "shorthand_property_identifier"):
            return None
        return self.resolve(syntax.node_text(node))

    def chain(self, name: str) -> List[Symbol]:
        return self.model.chain(self.identifier, name)

    def trace(self, name: str) -> Optional[str]:
        return self.model.trace(self.identifier, name)

    def exports(self, identifier: Optional[str] = None) -> List[str]:
        symbols = self.model.analysis(identifier or self.identifier)
        if symbols is None:
            return []
        return sorted(symbols.exports)
