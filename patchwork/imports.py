"""
Import consolidation.

Plugins describe the names they need from a dependency as ImportIntent
values; this module turns those intents into minimal edits. All
existing declarations of a dependency are folded into one with a
sorted name list, so the result does not depend on which plugin asked
for which name first, and running the same merge twice changes nothing
the second time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from . import syntax
from .analysis.model import SemanticQuery
from .analysis.symbols import specifier_names
from .domain import ImportIntent, Range, Replacement, SourceUnit
from .edits import apply_replacements
from .errors import ImportConflictError

LOG = logging.getLogger(__name__)


@dataclass
class ImportDeclaration:
    """
    One ``import ... from '<dependency>'`` statement.

    ``specifiers`` holds (imported, local) pairs in source order.
    """

    dependency: str
    range: Range
    specifiers: List[Tuple[str, str]] = field(default_factory=list)
    default: Optional[str] = None
    namespace: Optional[str] = None
    quote: str = "'"


def find_imports(unit: SourceUnit, dependency: str) -> List[ImportDeclaration]:
    """
    Every top-level import declaration of ``dependency`` in ``unit``.

    Side-effect imports (``import 'x'``) and type-only imports
    (``import type { T } from 'x'``) are left alone: folding them into
    a value import would change what the module does.
    """

    found: List[ImportDeclaration] = []

    for statement in unit.statements:
        if not syntax.is_import(statement):
            continue
        source = statement.child_by_field_name("source")
        if source is None or syntax.string_value(source) != dependency:
            continue
        if syntax.has_keyword(statement, "type") or syntax.has_keyword(statement, "typeof"):
            continue

        clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
        if clause is None:
            continue

        declaration = ImportDeclaration(
            dependency=dependency,
            range=unit.range_of(statement),
            quote=syntax.node_text(source)[:1] or "'",
        )
        for child in clause.named_children:
            if child.type == "identifier":
                declaration.default = syntax.node_text(child)
            elif child.type == "namespace_import":
                alias = next((a for a in child.named_children if a.type == "identifier"), None)
                if alias is not None:
                    declaration.namespace = syntax.node_text(alias)
            elif child.type == "named_imports":
                for specifier in child.named_children:
                    if specifier.type == "import_specifier":
                        declaration.specifiers.append(specifier_names(specifier))
        found.append(declaration)

    return found


def merge_intents(intents: Iterable[ImportIntent], plugin: Optional[str] = None) -> List[ImportIntent]:
    """
    Combine intents per dependency, sorted by dependency.

    Add and remove sets are unioned. Two different namespace aliases for
    the same dependency cannot both be honoured and raise
    ImportConflictError.
    """

    grouped: Dict[str, ImportIntent] = {}
    for intent in intents:
        current = grouped.get(intent.dependency)
        if current is None:
            grouped[intent.dependency] = intent
            continue

        namespace = current.namespace
        if intent.namespace:
            if namespace and namespace != intent.namespace:
                raise ImportConflictError(
                    f"conflicting namespace aliases {namespace!r} and {intent.namespace!r} "
                    f"requested for {intent.dependency!r}",
                    plugin=plugin,
                    dependency=intent.dependency,
                )
            namespace = intent.namespace

        grouped[intent.dependency] = ImportIntent(
            dependency=intent.dependency,
            add=current.add | intent.add,
            remove=current.remove | intent.remove,
            namespace=namespace,
        )

    return [grouped[dependency] for dependency in sorted(grouped)]


def render(
    dependency: str,
    names: Sequence[str],
    namespace: Optional[str] = None,
    default: Optional[str] = None,
    quote: str = "'",
) -> str:
    """
    Import statements for a dependency: the namespace form first, then
    the default and named form. Empty when there is nothing to import.
    """

    module = f"{quote}{dependency}{quote}"
    statements: List[str] = []

    if namespace:
        statements.append(f"import * as {namespace} from {module};")

    named = f"{{ {', '.join(names)} }}" if names else ""
    if default and named:
        statements.append(f"import {default}, {named} from {module};")
    elif default:
        statements.append(f"import {default} from {module};")
    elif named:
        statements.append(f"import {named} from {module};")

    return "\n".join(statements)


def merge(
    unit: SourceUnit,
    dependency: str,
    add: Iterable[str] = (),
    remove: Iterable[str] = (),
    namespace: Optional[str] = None,
) -> List[Replacement]:
    """
    Edits that bring ``unit``'s imports of ``dependency`` in line with
    the request.

    With nothing requested no edits are produced, so duplicate
    declarations are only collapsed when some intent touches them.
    """

    to_add: Set[str] = set(add)
    to_remove: Set[str] = set(remove)
    if not to_add and not to_remove and not namespace:
        return []

    found = find_imports(unit, dependency)
    if not found:
        text = render(dependency, sorted(to_add), namespace)
        if not text:
            return []
        position = _insertion_point(unit)
        if position and position == len(unit.text) and not unit.text.endswith("\n"):
            text = "\n" + text
        return [Replacement(Range(position, position, unit.version), text + "\n")]

    names: Set[str] = set()
    default: Optional[str] = None
    existing_namespace: Optional[str] = None

    for declaration in found:
        default = default or declaration.default
        existing_namespace = existing_namespace or declaration.namespace
        for imported, local in declaration.specifiers:
            if imported in to_remove or local in to_remove:
                continue
            names.add(imported if imported == local else f"{imported} as {local}")

    names |= to_add
    if default in to_remove:
        default = None
    if existing_namespace in to_remove:
        existing_namespace = None

    text = render(
        dependency,
        sorted(names),
        namespace or existing_namespace,
        default,
        found[0].quote,
    )

    replacements: List[Replacement] = []
    for index, declaration in enumerate(found):
        if index == 0 and text:
            replacements.append(Replacement(declaration.range, text))
        else:
            replacements.append(Replacement(_with_line_break(unit, declaration.range), ""))
    return replacements


def apply_imports(unit: SourceUnit, intents: Iterable[ImportIntent], plugin: Optional[str] = None) -> str:
    """
    Apply every intent to ``unit`` in one edit and return the new text.
    """

    edits: List[Replacement] = []
    for intent in merge_intents(intents, plugin=plugin):
        changes = merge(unit, intent.dependency, intent.add, intent.remove, intent.namespace)
        if changes:
            LOG.debug("Import merge for %s produced %d edits", intent.dependency, len(changes))
        edits.extend(changes)
    return apply_replacements(unit.text, edits, version=unit.version)


def in_package(query: SemanticQuery, name: str, package: str) -> bool:
    """
    True when ``name`` in the queried unit is bound, directly or through
    re-exports, to an import from ``package``.
    """

    for symbol in query.chain(name):
        if symbol.is_import and symbol.source == package:
            return True
        if f"/node_modules/{package}/" in symbol.identifier:
            return True
    return False


def _insertion_point(unit: SourceUnit) -> int:
    statements = unit.statements
    if not statements:
        return unit.body_start
    return unit.range_of(statements[0]).start


def _with_line_break(unit: SourceUnit, span: Range) -> Range:
    # Deleting a declaration also takes its line break, so collapsed
    # duplicates do not leave blank lines behind.
    end = span.end
    if unit.text.startswith("\r\n", end):
        end += 2
    elif unit.text.startswith("\n", end):
        end += 1
    return Range(span.start, end, span.version)
