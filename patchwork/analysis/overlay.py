"""
Semantic model overlay.

An overlay substitutes the text of one unit and delegates every other
lookup to the model beneath it. Building one is O(1): nothing is
re-read or re-analyzed until a query touches the overridden unit, and
units that are not overridden keep their cached analyses.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..domain import SourceUnit
from .model import SemanticModel, normalize_identifier
from .symbols import UnitSymbols, extract_symbols

LOG = logging.getLogger(__name__)


class ModelOverlay(SemanticModel):
    """
    A model in which ``identifier`` reads as ``text``.

    When ``unit`` is given it must hold exactly ``text``; its tree is
    reused for analysis instead of parsing the text again.
    """

    def __init__(
        self,
        base: SemanticModel,
        identifier: str,
        text: str,
        unit: Optional[SourceUnit] = None,
    ) -> None:
        self.base = base
        self.cache = base.cache
        self.identifier = normalize_identifier(identifier)
        self.text = text
        self.version = self.cache.next_version(self.identifier)
        self._unit = unit if unit is not None and unit.text == text else None

    def __repr__(self) -> str:
        return f"ModelOverlay({self.identifier!r}@{self.version}, depth={self.depth})"

    @property
    def depth(self) -> int:
        """Number of overlay layers, this one included."""

        depth = 1
        base = self.base
        while isinstance(base, ModelOverlay):
            depth += 1
            base = base.base
        return depth

    @property
    def root_model(self) -> SemanticModel:
        base: SemanticModel = self
        while isinstance(base, ModelOverlay):
            base = base.base
        return base

    def overridden(self) -> List[str]:
        """Identifiers whose text this stack of overlays replaces."""

        found: List[str] = []
        layer: SemanticModel = self
        while isinstance(layer, ModelOverlay):
            if layer.identifier not in found:
                found.append(layer.identifier)
            layer = layer.base
        return found

    def identifiers(self) -> List[str]:
        known = self.base.identifiers()
        if self.identifier not in known:
            known = sorted([*known, self.identifier])
        return known

    def source(self, identifier: str) -> Optional[str]:
        if normalize_identifier(identifier) == self.identifier:
            return self.text
        return self.base.source(identifier)

    def version_of(self, identifier: str) -> int:
        if normalize_identifier(identifier) == self.identifier:
            return self.version
        return self.base.version_of(identifier)

    def _analyze(self, identifier: str, text: str) -> UnitSymbols:
        if identifier == self.identifier and self._unit is not None:
            return extract_symbols(self._unit)
        return super()._analyze(identifier, text)


def overlay(
    base: SemanticModel,
    identifier: str,
    text: str,
    unit: Optional[SourceUnit] = None,
) -> ModelOverlay:
    """
    Return a model in which ``identifier`` reads as ``text``.

    Overlays stack: the result reflects every overlay already in
    ``base``. A layer that overrides the same identifier is replaced
    rather than wrapped, so repeated edits to one unit do not grow the
    chain.
    """

    identifier = normalize_identifier(identifier)
    if isinstance(base, ModelOverlay) and base.identifier == identifier:
        base = base.base

    layer = ModelOverlay(base, identifier, text, unit)
    LOG.debug("Overlaying %s at version %d", identifier, layer.version)
    return layer
