"""
Checks a host runs before handing a file to a session.

Only script files with a configured extension are transformed, and
nothing inside an excluded directory (node_modules by default) is ever
touched. These checks are cheap and run before any parsing.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Iterator, List

from .config import Config
from .errors import ConfigError


def should_transform(path: str, config: Config) -> bool:
    """
    True when ``path`` is a script the configured plugins may rewrite.
    """

    normalized = PurePosixPath(path.replace("\\", "/"))
    if any(part in config.exclude for part in normalized.parts):
        return False
    name = normalized.name.lower()
    if name.endswith(".d.ts"):
        return False
    return any(name.endswith(ext) for ext in config.extensions)


def validate_runtime_support(config: Config) -> None:
    """
    Fail fast on configurations a batch run cannot honour.
    """

    problems: List[str] = []
    if not config.root:
        problems.append("no root directory configured")
    elif not Path(config.root).is_dir():
        problems.append(f"root {config.root} is not a directory")
    if not config.plugins:
        problems.append("no plugins configured")
    if config.workers <= 0:
        problems.append("workers must be a positive integer")

    if problems:
        raise ConfigError(f"cannot start batch run ({'; '.join(problems)})")


def discover_files(config: Config) -> Iterator[Path]:
    """
    Files under the configured root that should be transformed, in a
    stable order.
    """

    root = Path(config.root or ".")
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(root).as_posix()
        if should_transform(relative, config):
            yield path
