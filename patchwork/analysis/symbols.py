"""
Per-unit symbol extraction.

Walks the top-level statements of one source unit and records its local
bindings (declarations and imports) and what it exports. Cross-unit
resolution lives in the semantic model; nothing here looks beyond the
unit it is given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from tree_sitter import Node

from .. import syntax
from ..domain import Range, SourceUnit

FUNCTION_KINDS = {
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "function_signature": "function",
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "interface_declaration": "interface",
    "type_alias_declaration": "type",
    "enum_declaration": "enum",
}
VARIABLE_DECLARATIONS = ("lexical_declaration", "variable_declaration")


@dataclass(frozen=True)
class Symbol:
    """
    A named binding in one unit.

    For imports and re-exports ``source`` is the module specifier and
    ``imported`` the name taken from it: ``"default"`` for default
    imports and ``"*"`` for namespace imports. Ranges are character
    offsets of the binding's name and are not tied to a unit version.
    """

    name: str
    kind: str
    identifier: str
    range: Range
    source: Optional[str] = None
    imported: Optional[str] = None

    @property
    def is_import(self) -> bool:
        return self.kind == "import"


@dataclass(frozen=True)
class ExportBinding:
    """
    One exported name: either a local binding, a re-export from another
    module, or an anonymous ``export default`` value.
    """

    name: str
    range: Range
    local: Optional[str] = None
    source: Optional[str] = None
    imported: Optional[str] = None
    symbol: Optional[Symbol] = None

    def as_symbol(self, identifier: str) -> Symbol:
        return Symbol(
            name=self.name,
            kind="import",
            identifier=identifier,
            range=self.range,
            source=self.source,
            imported=self.imported,
        )


@dataclass
class UnitSymbols:
    identifier: str
    bindings: Dict[str, Symbol] = field(default_factory=dict)
    exports: Dict[str, ExportBinding] = field(default_factory=dict)
    star_exports: List[str] = field(default_factory=list)

    def imports_from(self, source: str) -> List[Symbol]:
        return [s for s in self.bindings.values() if s.is_import and s.source == source]


def extract_symbols(unit: SourceUnit) -> UnitSymbols:
    """
    Collect bindings and exports from the top level of ``unit``.

    When a name is declared more than once (overloads, declaration
    merging) the first declaration wins.
    """

    result = UnitSymbols(identifier=unit.identifier)

    for statement in unit.statements:
        if statement.type == syntax.IMPORT_STATEMENT:
            for symbol in _import_bindings(unit, statement):
                result.bindings.setdefault(symbol.name, symbol)
        elif statement.type == syntax.EXPORT_STATEMENT:
            _record_export(unit, statement, result)
        else:
            for name, kind, node in _declarations(statement):
                result.bindings.setdefault(name, _symbol(unit, name, kind, node))

    return result


def _symbol(
    unit: SourceUnit,
    name: str,
    kind: str,
    node: Node,
    source: Optional[str] = None,
    imported: Optional[str] = None,
) -> Symbol:
    span = unit.range_of(node)
    return Symbol(
        name=name,
        kind=kind,
        identifier=unit.identifier,
        range=Range(span.start, span.end),
        source=source,
        imported=imported,
    )


def _untagged(unit: SourceUnit, node: Node) -> Range:
    span = unit.range_of(node)
    return Range(span.start, span.end)


def _import_bindings(unit: SourceUnit, statement: Node) -> Iterator[Symbol]:
    source_node = statement.child_by_field_name("source")
    if source_node is None:
        return
    source = syntax.string_value(source_node)

    for clause in statement.named_children:
        if clause.type != "import_clause":
            continue
        for child in clause.named_children:
            if child.type == "identifier":
                name = syntax.node_text(child)
                yield _symbol(unit, name, "import", child, source, "default")
            elif child.type == "namespace_import":
                for alias in child.named_children:
                    if alias.type == "identifier":
                        name = syntax.node_text(alias)
                        yield _symbol(unit, name, "import", alias, source, "*")
            elif child.type == "named_imports":
                for specifier in child.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    imported, local = specifier_names(specifier)
                    local_node = specifier.child_by_field_name("alias") or specifier.child_by_field_name("name")
                    yield _symbol(unit, local, "import", local_node or specifier, source, imported)


def specifier_names(specifier: Node) -> Tuple[str, str]:
    """(imported, local) names of an import or export specifier."""

    name_node = specifier.child_by_field_name("name")
    alias_node = specifier.child_by_field_name("alias")
    imported = _module_export_name(name_node) if name_node is not None else ""
    local = _module_export_name(alias_node) if alias_node is not None else imported
    return imported, local


def _module_export_name(node: Node) -> str:
    if node.type == "string":
        return syntax.string_value(node)
    return syntax.node_text(node)


def _declarations(node: Node) -> Iterator[Tuple[str, str, Node]]:
    if node.type == "ambient_declaration":
        for child in node.named_children:
            yield from _declarations(child)
        return

    kind = FUNCTION_KINDS.get(node.type)
    if kind is not None:
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            yield syntax.node_text(name_node), kind, name_node
        return

    if node.type in VARIABLE_DECLARATIONS:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is not None and name_node.type == "identifier":
                yield syntax.node_text(name_node), "variable", name_node


def _record_export(unit: SourceUnit, statement: Node, result: UnitSymbols) -> None:
    is_default = syntax.has_keyword(statement, "default")
    source_node = statement.child_by_field_name("source")
    source = syntax.string_value(source_node) if source_node is not None else None

    declaration = statement.child_by_field_name("declaration")
    if declaration is not None:
        for name, kind, node in _declarations(declaration):
            result.bindings.setdefault(name, _symbol(unit, name, kind, node))
            exported = "default" if is_default else name
            result.exports.setdefault(
                exported,
                ExportBinding(name=exported, range=_untagged(unit, node), local=name),
            )
        return

    value = statement.child_by_field_name("value")
    if value is not None and is_default:
        if value.type == "identifier":
            local = syntax.node_text(value)
            result.exports.setdefault(
                "default",
                ExportBinding(name="default", range=_untagged(unit, value), local=local),
            )
        else:
            symbol = _symbol(unit, "default", "default", value)
            result.exports.setdefault(
                "default",
                ExportBinding(name="default", range=symbol.range, symbol=symbol),
            )
        return

    for child in statement.named_children:
        if child.type == "export_clause":
            for specifier in child.named_children:
                if specifier.type != "export_specifier":
                    continue
                local, exported = specifier_names(specifier)
                span = _untagged(unit, specifier)
                if source is None:
                    binding = ExportBinding(name=exported, range=span, local=local)
                else:
                    binding = ExportBinding(name=exported, range=span, source=source, imported=local)
                result.exports.setdefault(exported, binding)
            return
        if child.type == "namespace_export" and source is not None:
            for alias in child.named_children:
                name = _module_export_name(alias)
                result.exports.setdefault(
                    name,
                    ExportBinding(name=name, range=_untagged(unit, alias), source=source, imported="*"),
                )
            return

    if source is not None and syntax.has_keyword(statement, "*"):
        result.star_exports.append(source)
