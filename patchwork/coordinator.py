"""
Orchestration of plugins over a single source unit.

The coordinator runs plugins strictly in order. For each plugin it:
  - skips the plugin when its quick-check patterns do not match,
  - calls transform with the current unit, a semantic query bound to
    the current model and the session's shared context,
  - applies replacements, then prepended blocks, then import changes,
    re-parsing after every category that changed the text, and
  - refreshes the semantic model through an overlay when a later
    plugin may need accurate symbols.

Every plugin therefore sees node positions and symbols for the text as
it is after all earlier plugins ran.
"""

from __future__ import annotations

import enum
import logging
from typing import Dict, List, Optional, Sequence

from . import syntax
from .analysis.model import SemanticModel, SemanticQuery
from .analysis.overlay import overlay
from .domain import (
    ImportIntent,
    Plugin,
    Replacement,
    ReplacementIntent,
    SourceUnit,
    TransformContext,
    TransformResult,
    UnitResult,
)
from .edits import apply_replacements, validate
from .errors import ImportConflictError, MalformedResultError, PluginError
from .gate import should_run
from .imports import apply_imports, merge_intents
from .shared import SharedContext

LOG = logging.getLogger(__name__)


class State(str, enum.Enum):
    IDLE = "idle"
    GATING = "gating"
    TRANSFORMING = "transforming"
    APPLYING = "applying"
    REPARSING = "reparsing"
    DONE = "done"


def transform_unit(
    unit: SourceUnit,
    plugins: Sequence[Plugin],
    shared: SharedContext,
    model: SemanticModel,
) -> UnitResult:
    """
    Run ``plugins`` over ``unit`` and return the final unit.

    ``model`` is the base semantic model; it is never modified. When it
    does not hold ``unit``'s text already, an overlay is put on top
    first so plugins always query the text they are given.

    A plugin that raises aborts the loop with PluginError. Results that
    cannot be applied raise MalformedResultError or ImportConflictError.
    Both carry the plugin's name; what to do with them is up to the host.
    """

    if not plugins:
        return UnitResult(changed=False, unit=unit, model=model)

    original = unit.text
    current = unit
    model = bind_model(model, unit)

    # Import intents accumulate over the whole pass so that add/remove
    # requests from different plugins resolve the same way in any order.
    pass_imports: Dict[str, ImportIntent] = {}

    _trace(current, State.IDLE)
    for index, plugin in enumerate(plugins):
        _trace(current, State.GATING, plugin)
        if not should_run(plugin, current.text):
            LOG.debug("Skipping plugin %s for %s: quick check failed", plugin.name, current.identifier)
            continue

        _trace(current, State.TRANSFORMING, plugin)
        context = TransformContext(
            unit=current,
            semantic=SemanticQuery(model, current),
            shared=shared,
            plugin=plugin.name,
        )
        try:
            result = plugin.transform(context)
        except Exception as exc:
            raise PluginError(
                f"transform failed for {current.identifier}: {exc}",
                plugin=plugin.name,
            ) from exc

        if result is None or result.is_empty:
            continue

        _trace(current, State.APPLYING, plugin)
        before = current.text
        try:
            current = _apply_result(current, result, pass_imports, plugin.name)
        except (MalformedResultError, ImportConflictError) as exc:
            if exc.plugin is None:
                exc.plugin = plugin.name
            raise

        if current.text == before:
            continue

        LOG.debug("Plugin %s changed %s", plugin.name, current.identifier)
        if any(later.needs_semantics for later in plugins[index + 1:]):
            model = overlay(model, current.identifier, current.text, current)

    _trace(current, State.DONE)
    changed = current.text != original
    if changed:
        LOG.info("Transformed %s", current.identifier)
        # The returned model always reads the final text, even when no
        # plugin needed a refresh along the way.
        if model.source(current.identifier) != current.text:
            model = overlay(model, current.identifier, current.text, current)
    return UnitResult(changed=changed, unit=current, model=model)


def bind_model(model: SemanticModel, unit: SourceUnit) -> SemanticModel:
    """
    ``model``, overlaid with ``unit``'s text when it holds something else.

    The comparison is against the text the model has versioned, so a
    unit whose file changed since it was first read always gets an
    overlay.
    """

    if model.source(unit.identifier) == unit.text:
        return model
    return overlay(model, unit.identifier, unit.text, unit)


def _apply_result(
    unit: SourceUnit,
    result: TransformResult,
    pass_imports: Dict[str, ImportIntent],
    plugin: str,
) -> SourceUnit:
    if result.replacements:
        text = _apply_intents(unit, result.replacements)
        unit = _reparse(unit, text, plugin)

    if result.prepend:
        text = _apply_prepend(unit, result.prepend)
        unit = _reparse(unit, text, plugin)

    if result.imports:
        for intent in merge_intents(result.imports, plugin=plugin):
            previous = pass_imports.get(intent.dependency)
            combined = [previous, intent] if previous is not None else [intent]
            pass_imports[intent.dependency] = merge_intents(combined, plugin=plugin)[0]

        touched = {intent.dependency for intent in result.imports}
        text = apply_imports(unit, [pass_imports[d] for d in sorted(touched)], plugin=plugin)
        unit = _reparse(unit, text, plugin)

    return unit


def _apply_intents(unit: SourceUnit, intents: List[ReplacementIntent]) -> str:
    # Ranges are checked before any generator runs so a stale or
    # overlapping request fails without side effects.
    validate(unit.text, [Replacement(intent.range, "") for intent in intents], version=unit.version)
    replacements = [intent.render(unit) for intent in intents]
    return apply_replacements(unit.text, replacements, reverse=True, version=unit.version)


def _apply_prepend(unit: SourceUnit, blocks: List[str]) -> str:
    """
    Insert blocks after the leading run of imports, or at the top when
    there are none. A ``#!`` line stays first. Blocks are separated from
    each other and from the surrounding code by a single newline.
    """

    block = "\n".join(blocks)
    imports = syntax.leading_imports(unit.tree)
    if not imports:
        position = unit.body_start
        if position and not unit.text[:position].endswith("\n"):
            block = "\n" + block
        return unit.text[:position] + block + "\n" + unit.text[position:]

    position = unit.range_of(imports[-1]).end
    return unit.text[:position] + "\n" + block + unit.text[position:]


def _reparse(unit: SourceUnit, text: str, plugin: str) -> SourceUnit:
    if text == unit.text:
        return unit
    _trace(unit, State.REPARSING, plugin)
    return unit.with_text(text)


def _trace(unit: SourceUnit, state: State, plugin: Optional[str] = None) -> None:
    if plugin is None:
        LOG.debug("%s@%d: %s", unit.identifier, unit.version, state.value)
    else:
        LOG.debug("%s@%d: %s (%s)", unit.identifier, unit.version, state.value, plugin)
