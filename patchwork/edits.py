"""
Application of text replacements.

Two algorithms are provided and produce identical output for valid
input: a forward rebuild that copies untouched gaps between sorted
replacements, and a reverse splice that edits the string from the end
so earlier offsets stay valid. Overlapping replacements are rejected;
picking a winner silently would hide plugin bugs.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from .domain import Replacement
from .errors import OverlappingReplacementsError, RangeError, StaleRangeError

LOG = logging.getLogger(__name__)


def _ordered(replacements: Sequence[Replacement]) -> List[Tuple[int, Replacement]]:
    # Insertions sort before a replacement starting at the same offset;
    # equal ranges keep their input order.
    return sorted(
        enumerate(replacements),
        key=lambda item: (item[1].start, item[1].end, item[0]),
    )


def validate(
    text: str,
    replacements: Sequence[Replacement],
    version: Optional[int] = None,
) -> None:
    """
    Check that a set of replacements can be applied to ``text``.

    Raises StaleRangeError when a range was computed against a different
    unit version than ``version``, RangeError when it falls outside the
    text, and OverlappingReplacementsError when two ranges overlap. Two
    insertions at the same offset are allowed and keep input order.
    """

    length = len(text)
    for replacement in replacements:
        span = replacement.range
        if version is not None and span.version is not None and span.version != version:
            raise StaleRangeError(
                f"replacement {span.start}:{span.end} was computed against version "
                f"{span.version}, current version is {version}"
            )
        if span.end > length:
            raise RangeError(
                f"replacement {span.start}:{span.end} exceeds text length ({length})"
            )

    previous: Optional[Replacement] = None
    for _, current in _ordered(replacements):
        if previous is not None and previous.range.overlaps(current.range):
            raise OverlappingReplacementsError(
                f"replacements {previous.start}:{previous.end} and "
                f"{current.start}:{current.end} overlap"
            )
        if previous is None or current.end >= previous.end:
            previous = current


def apply_forward(text: str, replacements: Sequence[Replacement]) -> str:
    """
    Rebuild the text by copying gaps and replacement texts in order.
    """

    if not replacements:
        return text

    parts: List[str] = []
    position = 0
    for _, replacement in _ordered(replacements):
        if replacement.start > position:
            parts.append(text[position:replacement.start])
        parts.append(replacement.text)
        position = max(position, replacement.end)

    if position < len(text):
        parts.append(text[position:])
    return "".join(parts)


def apply_reverse(text: str, replacements: Sequence[Replacement]) -> str:
    """
    Splice replacements into the text starting from the highest offset.
    """

    if not replacements:
        return text

    result = text
    for _, replacement in reversed(_ordered(replacements)):
        result = result[:replacement.start] + replacement.text + result[replacement.end:]
    return result


def apply_replacements(
    text: str,
    replacements: Sequence[Replacement],
    *,
    reverse: bool = False,
    version: Optional[int] = None,
) -> str:
    """
    Validate and apply ``replacements`` to ``text``.

    The input is returned verbatim when there is nothing to apply.
    """

    if not replacements:
        return text

    validate(text, replacements, version=version)
    LOG.debug(
        "Applying %d replacements (%s)",
        len(replacements),
        "reverse" if reverse else "forward",
    )
    if reverse:
        return apply_reverse(text, replacements)
    return apply_forward(text, replacements)
