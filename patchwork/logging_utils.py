"""
Logging helpers for patchwork.

The core modules log through module-level loggers. Plugins get a child
of the ``patchwork.plugins`` logger so a host can silence or raise the
level of third-party transformations separately from the coordinator.
"""

from __future__ import annotations

import logging
from typing import Optional, TextIO

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
PLUGIN_LOGGER = "patchwork.plugins"


def level_for_verbosity(verbosity: int) -> int:
    """
    Map a ``-v`` count to a logging level.

    0 is WARNING, 1 is INFO and anything higher is DEBUG.
    """

    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbosity: int, stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger for a CLI run.

    Plugin loggers stay one step quieter than the core until DEBUG is
    requested, since some transformations are chatty at INFO.
    """

    level = level_for_verbosity(verbosity)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=stream)

    plugin_level = level if level == logging.DEBUG else max(level, logging.WARNING)
    logging.getLogger(PLUGIN_LOGGER).setLevel(plugin_level)


def plugin_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{PLUGIN_LOGGER}.{name}")
