"""
Custom exception types used across patchwork.

Plugin-related errors carry the name of the offending plugin so hosts
can report which transformation broke a unit without parsing messages.
"""

from __future__ import annotations

from typing import Optional


class PatchworkError(Exception):
    """Base class for all patchwork specific errors."""


class ConfigError(PatchworkError):
    """Raised when a configuration or plugin manifest is invalid."""


class ParseError(PatchworkError):
    """Raised when a source unit cannot be parsed."""


class RegistryError(PatchworkError):
    """Raised when a plugin entry cannot be registered or resolved."""


class PluginFailure(PatchworkError):
    """
    Base class for errors attributed to a single plugin.
    """

    def __init__(self, message: str, plugin: Optional[str] = None) -> None:
        super().__init__(message)
        self.plugin = plugin

    def __str__(self) -> str:
        message = super().__str__()
        if self.plugin:
            return f"plugin {self.plugin!r}: {message}"
        return message


class PluginError(PluginFailure):
    """Raised when a plugin's transform or analyze hook raises."""


class MalformedResultError(PluginFailure):
    """Raised when a plugin returns edits that cannot be applied."""


class OverlappingReplacementsError(MalformedResultError):
    """Raised when two replacements applied together overlap."""


class StaleRangeError(MalformedResultError):
    """Raised when a replacement range was computed against an older unit version."""


class RangeError(MalformedResultError):
    """Raised when a replacement range falls outside the text it targets."""


class ImportConflictError(PluginFailure):
    """Raised when one pass requests different namespace aliases for a dependency."""

    def __init__(
        self,
        message: str,
        plugin: Optional[str] = None,
        dependency: Optional[str] = None,
    ) -> None:
        super().__init__(message, plugin=plugin)
        self.dependency = dependency
