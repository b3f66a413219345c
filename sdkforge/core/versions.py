"""Dotted numeric version parsing.

Versions are compared as tuples of integers, never as strings.  Parsing is
strict: ``"1.2"`` and ``"1.2.3.4"`` parse, while ``"1"``, ``"1.2-preview"``
and ``""`` do not.
"""

from __future__ import annotations

import re

_DOTTED = re.compile(r"^\d+(\.\d+){1,3}$")


def parse_version(text: str | None) -> tuple[int, ...] | None:
    """Parse a dotted numeric version (2 to 4 components).

    Missing trailing components are zero-filled to 4 so that ``"1.5"`` and
    ``"1.5.0.0"`` compare equal.  Returns None when *text* is not a dotted
    numeric version.
    """
    if text is None:
        return None
    candidate = text.strip()
    if not _DOTTED.match(candidate):
        return None
    parts = [int(p) for p in candidate.split(".")]
    parts.extend([0] * (4 - len(parts)))
    return tuple(parts)


def is_newer_or_equal(installed: str | None, candidate: str | None) -> bool | None:
    """Return whether *installed* >= *candidate*.

    Returns None if either side is unparseable; callers decide the fallback.
    """
    installed_v = parse_version(installed)
    candidate_v = parse_version(candidate)
    if installed_v is None or candidate_v is None:
        return None
    return installed_v >= candidate_v
