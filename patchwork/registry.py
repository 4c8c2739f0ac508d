"""
Plugin registry.

A registry is populated once, at session start, from a declarative
list of entries. Each entry names a plugin and points at an importable
``module:attribute`` that is either a Plugin or a factory returning
one. Hosts resolve everything up front so the coordinator only ever
sees ready Plugin values in a fixed order.
"""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .config import PluginEntry
from .domain import Plugin
from .errors import RegistryError

LOG = logging.getLogger(__name__)


class PluginRegistry:
    def __init__(self) -> None:
        self._plugins: Dict[str, Plugin] = {}

    def register(self, plugin: Plugin, name: Optional[str] = None) -> Plugin:
        """
        Add ``plugin`` under ``name`` (defaults to plugin.name).

        Registration order is the order plugins run in. Registering the
        same name twice is an error.
        """

        key = name or plugin.name
        if not isinstance(plugin, Plugin):
            raise RegistryError(f"entry {key!r} did not resolve to a Plugin (got {type(plugin).__name__})")
        if key in self._plugins:
            raise RegistryError(f"plugin {key!r} is already registered")
        self._plugins[key] = plugin
        LOG.debug("Registered plugin %s", key)
        return plugin

    def load(self, entries: Iterable[PluginEntry]) -> List[Plugin]:
        """Resolve and register every entry, in order."""

        loaded = [self.register(resolve_entry(entry), entry.name) for entry in entries]
        LOG.info("Loaded %d plugins", len(loaded))
        return loaded

    def get(self, name: str) -> Plugin:
        try:
            return self._plugins[name]
        except KeyError:
            raise RegistryError(f"unknown plugin {name!r}") from None

    def plugins(self) -> List[Plugin]:
        return list(self._plugins.values())

    def names(self) -> List[str]:
        return list(self._plugins)

    def __iter__(self) -> Iterator[Plugin]:
        return iter(self.plugins())

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins


def resolve_entry(entry: PluginEntry) -> Plugin:
    """
    Import ``entry.target`` and turn it into a Plugin.

    Factories are called with the entry's options as keyword arguments.
    """

    module_name, _, attribute = entry.target.partition(":")
    if not module_name or not attribute:
        raise RegistryError(f"plugin {entry.name!r}: target must look like 'module:attribute'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise RegistryError(f"plugin {entry.name!r}: cannot import {module_name!r}: {exc}") from exc

    value: Any = module
    for part in attribute.split("."):
        try:
            value = getattr(value, part)
        except AttributeError:
            raise RegistryError(
                f"plugin {entry.name!r}: {module_name!r} has no attribute {attribute!r}"
            ) from None

    if isinstance(value, Plugin):
        if entry.options:
            raise RegistryError(f"plugin {entry.name!r}: options given but target is not a factory")
        return value

    if callable(value):
        # Only the call signature is checked here; errors raised inside
        # the factory body propagate unchanged.
        try:
            inspect.signature(value).bind(**entry.options)
        except TypeError as exc:
            raise RegistryError(f"plugin {entry.name!r}: factory rejected options: {exc}") from exc
        value = value(**entry.options)
        if isinstance(value, Plugin):
            return value

    raise RegistryError(f"plugin {entry.name!r}: {entry.target!r} is neither a Plugin nor a Plugin factory")
