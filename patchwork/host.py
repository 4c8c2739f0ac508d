"""
Batch host for patchwork.

Rewrites every matching file under a root directory with the configured
plugins. The whole run shares one session: one shared context, one
base model over the files on disk and one analysis cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .analysis.model import ProjectModel
from .config import Config
from .domain import SourceUnit
from .preflight import discover_files, validate_runtime_support
from .session import Session

LOG = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """
    Summary of a batch run, keyed by identifiers relative to the root.
    """

    changed: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    diagnostics: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def failed(self) -> List[str]:
        return sorted(self.diagnostics)

    def as_dict(self) -> Dict[str, object]:
        return {
            "changed": list(self.changed),
            "unchanged": list(self.unchanged),
            "failed": self.failed,
        }


def run_batch(config: Config, session: Optional[Session] = None) -> BatchReport:
    """
    Entry point for the CLI.

    Every unit is transformed against the original text of every other
    unit; results are written back only after all units are done, and
    not at all in dry-run mode.
    """

    validate_runtime_support(config)
    LOG.debug("Starting patchwork with config: %s", config)

    root = Path(config.root or ".")
    if session is None:
        session = Session.from_config(config, model=ProjectModel(root=str(root)))

    units = [
        SourceUnit.parse(path.relative_to(root).as_posix(), path.read_text(encoding="utf-8"))
        for path in discover_files(config)
    ]
    LOG.info("Transforming %d files under %s", len(units), root)

    results = session.transform_many(units, workers=config.workers)

    report = BatchReport()
    for result in results:
        identifier = result.unit.identifier
        if result.diagnostics:
            report.diagnostics[identifier] = list(result.diagnostics)
        if result.changed:
            report.changed.append(identifier)
        else:
            report.unchanged.append(identifier)

    if config.dry_run:
        LOG.info("Dry run: would rewrite %d files", len(report.changed))
        for identifier in report.changed:
            LOG.info("  %s", identifier)
        return report

    for result in results:
        if result.changed:
            (root / result.unit.identifier).write_text(result.text, encoding="utf-8")
    LOG.info("Rewrote %d files", len(report.changed))
    return report
