"""
Configuration model for patchwork.

Hosts construct a Config instance and pass it down into the session and
batch runner so behavior can be adjusted without relying on global
state. A JSON manifest can describe the same settings declaratively.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigError

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs")
DEFAULT_EXCLUDE: Tuple[str, ...] = ("node_modules",)


class ErrorPolicy(str, enum.Enum):
    """
    What a session does when a plugin raises while transforming a unit.

    FATAL aborts the whole build; RECOVERABLE serves the unit unchanged
    and records a diagnostic. Contract violations (overlapping or stale
    replacements, conflicting import aliases) always propagate.
    """

    FATAL = "fatal"
    RECOVERABLE = "recoverable"


@dataclass
class PluginEntry:
    """
    One declarative plugin entry: a name and where to find the plugin.

    ``target`` is an ``"module:attribute"`` reference. The attribute may
    be a Plugin value or a factory called with ``options``.
    """

    name: str
    target: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Config:
    """
    Top-level configuration for a patchwork session.
    """

    root: Optional[str] = None
    plugins: List[PluginEntry] = field(default_factory=list)
    error_policy: ErrorPolicy = ErrorPolicy.FATAL
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude: Tuple[str, ...] = DEFAULT_EXCLUDE
    dry_run: bool = False
    workers: int = 1
    verbosity: int = 0


def load_manifest(manifest_path: str, base: Optional[Config] = None) -> Config:
    """
    Load and validate a JSON manifest into a Config.

    Supported formats:
      - {"plugins": [...], "error_policy": "...", ...} object
      - [...] top-level list of plugin entries

    Values from ``base`` are kept for any field the manifest omits.
    """

    try:
        raw = json.loads(Path(manifest_path).read_text())
    except OSError as exc:
        raise ConfigError(f"cannot read manifest {manifest_path}: {exc}") from exc
    except ValueError as exc:
        raise ConfigError(f"manifest {manifest_path} is not valid JSON: {exc}") from exc

    config = base if base is not None else Config()

    if isinstance(raw, list):
        raw = {"plugins": raw}
    if not isinstance(raw, dict):
        raise ConfigError("manifest must be a JSON list or an object with a 'plugins' list")

    raw_plugins = raw.get("plugins", [])
    if not isinstance(raw_plugins, list):
        raise ConfigError("manifest field 'plugins' must be a list")
    config.plugins = [_parse_entry(i, item) for i, item in enumerate(raw_plugins, start=1)]

    if "error_policy" in raw:
        try:
            config.error_policy = ErrorPolicy(raw["error_policy"])
        except ValueError as exc:
            choices = ", ".join(p.value for p in ErrorPolicy)
            raise ConfigError(f"manifest field 'error_policy' must be one of: {choices}") from exc

    if "root" in raw:
        root = raw["root"]
        if not isinstance(root, str) or not root.strip():
            raise ConfigError("manifest field 'root' must be a non-empty string")
        config.root = root

    if "extensions" in raw:
        config.extensions = _string_tuple(raw["extensions"], "extensions")
    if "exclude" in raw:
        config.exclude = _string_tuple(raw["exclude"], "exclude")

    if "workers" in raw:
        workers = raw["workers"]
        if not isinstance(workers, int) or isinstance(workers, bool) or workers <= 0:
            raise ConfigError("manifest field 'workers' must be a positive integer")
        config.workers = workers

    return config


def _parse_entry(index: int, item: Any) -> PluginEntry:
    if isinstance(item, str):
        item = {"target": item}
    if not isinstance(item, dict):
        raise ConfigError(f"plugin #{index} must be a string or an object")

    target = item.get("target")
    if not isinstance(target, str) or ":" not in target:
        raise ConfigError(f"plugin #{index} requires field 'target' of the form 'module:attribute'")

    name = item.get("name")
    if name is None:
        name = target.rsplit(":", 1)[1]
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"plugin #{index} field 'name' must be a non-empty string when provided")

    options = item.get("options", {})
    if not isinstance(options, dict):
        raise ConfigError(f"plugin #{index} field 'options' must be an object")

    return PluginEntry(name=name.strip(), target=target.strip(), options=options)


def _string_tuple(value: Any, field_name: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ConfigError(f"manifest field '{field_name}' must be a list of non-empty strings")
    return tuple(value)
