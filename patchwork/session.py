"""
Build and watch sessions.

A Session owns everything that outlives a single unit: the ordered
plugin list, the shared context, the base semantic model and its cache,
and the error policy. Batch hosts call transform once per root unit;
interactive hosts call submit on every change notification and
invalidate when files are deleted or the session should start over.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence

from .analysis.model import ProjectModel, SemanticModel, SemanticQuery, normalize_identifier
from .config import Config, ErrorPolicy
from .coordinator import bind_model, transform_unit
from .domain import Plugin, SourceUnit, TransformContext, UnitResult
from .errors import PluginError
from .registry import PluginRegistry
from .shared import SharedContext

LOG = logging.getLogger(__name__)


class Session:
    def __init__(
        self,
        plugins: Sequence[Plugin],
        model: Optional[SemanticModel] = None,
        shared: Optional[SharedContext] = None,
        policy: ErrorPolicy = ErrorPolicy.FATAL,
    ) -> None:
        self.plugins: List[Plugin] = list(plugins)
        self.model: SemanticModel = model if model is not None else ProjectModel()
        self.shared = shared if shared is not None else SharedContext()
        self.policy = policy
        self._latest: Dict[str, int] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config, model: Optional[SemanticModel] = None) -> Session:
        """
        Resolve the configured plugin entries and start a session.
        """

        registry = PluginRegistry()
        registry.load(config.plugins)
        if model is None:
            model = ProjectModel(root=config.root)
        return cls(registry.plugins(), model=model, policy=config.error_policy)

    def analyze(self, unit: SourceUnit) -> None:
        """
        Run every plugin's analyze hook against ``unit``.

        Analyze hooks only collect data into the shared context; they are
        not gated and cannot edit the unit.
        """

        hooks = [plugin for plugin in self.plugins if plugin.analyze is not None]
        if not hooks:
            return

        query = SemanticQuery(bind_model(self.model, unit), unit)
        for plugin in hooks:
            context = TransformContext(unit=unit, semantic=query, shared=self.shared, plugin=plugin.name)
            try:
                plugin.analyze(context)
            except Exception as exc:
                raise PluginError(
                    f"analyze failed for {unit.identifier}: {exc}",
                    plugin=plugin.name,
                ) from exc

    def transform(self, unit: SourceUnit) -> UnitResult:
        """
        Analyze and transform one unit under the session's error policy.

        In recoverable mode a failing plugin leaves the unit unchanged
        and the failure is returned as a diagnostic. Malformed results
        and import conflicts always propagate.
        """

        try:
            self.analyze(unit)
            return transform_unit(unit, self.plugins, self.shared, self.model)
        except PluginError as exc:
            if self.policy is ErrorPolicy.FATAL:
                raise
            LOG.error("Serving %s unmodified: %s", unit.identifier, exc)
            return UnitResult(changed=False, unit=unit, model=self.model, diagnostics=[str(exc)])

    def transform_many(self, units: Iterable[SourceUnit], workers: int = 1) -> List[UnitResult]:
        """
        Transform independent units, optionally on a thread pool.

        Results come back in input order. Plugins for one unit still run
        one after another; only different units overlap.
        """

        pending = list(units)
        if workers <= 1 or len(pending) <= 1:
            return [self.transform(unit) for unit in pending]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self.transform, pending))

    def submit(self, identifier: str, text: str, language: Optional[str] = None) -> UnitResult:
        """
        Transform a freshly edited unit for an interactive host.

        Each submission gets the next version for its identifier. If a
        newer submission arrives before this one finishes, the result is
        marked stale and not committed; the host should discard it.
        """

        identifier = normalize_identifier(identifier)
        with self._lock:
            version = self._latest.get(identifier, -1) + 1
            self._latest[identifier] = version

        unit = SourceUnit.parse(identifier, text, language, version=version)
        result = self.transform(unit)

        with self._lock:
            if self._latest.get(identifier) != version:
                LOG.info("Discarding stale result for %s@%d", identifier, version)
                result.stale = True
                return result
            if isinstance(self.model, ProjectModel):
                self.model.update(identifier, text)
        return result

    def is_current(self, identifier: str, version: int) -> bool:
        with self._lock:
            return self._latest.get(normalize_identifier(identifier)) == version

    def invalidate(self, identifier: Optional[str] = None) -> None:
        """
        Reset session state after a change the host cannot describe as
        a plain edit (a deleted file, a watch-mode rebuild).

        The shared context is always cleared. With an identifier, only
        that unit's model state is dropped and any result for it still in
        flight becomes stale; without one, every cached analysis goes.
        """

        self.shared.clear()
        if identifier is None:
            LOG.info("Invalidating session")
            self.model.cache.clear()
            return

        identifier = normalize_identifier(identifier)
        LOG.info("Invalidating %s", identifier)
        with self._lock:
            if identifier in self._latest:
                self._latest[identifier] += 1
        if isinstance(self.model, ProjectModel):
            self.model.invalidate(identifier)
        else:
            self.model.cache.invalidate(identifier)
