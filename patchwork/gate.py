"""
Quick-check gate for plugins.

A plugin that declares substrings or a regex is only worth running when
the current text contains one of them. The check is a pure performance
cut: a skipped plugin must be one that would have reported no edits.
"""

from __future__ import annotations

from .domain import Plugin


def might_need_transform(text: str, plugin: Plugin) -> bool:
    """
    True when ``text`` matches the plugin's regex or contains any of its
    patterns.
    """

    if plugin.regex is not None and plugin.regex.search(text):
        return True
    return any(pattern in text for pattern in plugin.patterns)


def should_run(plugin: Plugin, text: str) -> bool:
    """Ungated plugins always run."""

    if not plugin.gated:
        return True
    return might_need_transform(text, plugin)
