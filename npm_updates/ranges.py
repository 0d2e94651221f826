"""
Semver range inspection and rewriting.

Range and version parsing is delegated to ``nodesemver`` so that validity and
ordering follow npm's rules. Coercion and the diff classification are small
enough to live here.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import nodesemver

from .errors import InvalidRangeError


logger = logging.getLogger(__name__)

WILDCARD = "*"

_COERCE_RE = re.compile(r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])")
_PRERELEASE_RANGE_RE = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+-.+")
_VERSION_TOKEN_RE = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+(?:-[0-9A-Za-z.-]+)?")


def is_valid_range(range_: str) -> bool:
    """Return True if ``range_`` parses as an npm semver range."""
    if not isinstance(range_, str):
        return False
    return nodesemver.valid_range(range_, False) is not None


def require_valid_range(range_: str) -> str:
    if not is_valid_range(range_):
        raise InvalidRangeError(range_)
    return range_


def parse_version(version: str):
    """Parse a strict semver version, returning None when it is not one."""
    if not isinstance(version, str):
        return None
    try:
        return nodesemver.parse(version, False)
    except ValueError:
        return None


def baseline_version(range_: str) -> Optional[str]:
    """Coerce a range to the concrete version it embeds.

    ``^1.2.3-beta`` coerces to ``1.2.3`` and ``~2`` to ``2.0.0``: prerelease
    tags are dropped, missing parts default to zero.
    """
    if not isinstance(range_, str):
        return None
    match = _COERCE_RE.search(range_)
    if not match:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return f"{major}.{minor}.{patch}"


def is_prerelease_range(range_: str) -> bool:
    # textual check, coercion would lose the tag
    return bool(_PRERELEASE_RANGE_RE.search(range_ or ""))


def is_prerelease_version(version: Optional[str]) -> bool:
    parsed = parse_version(version)
    if parsed is None:
        return False
    return bool(parsed.prerelease)


def strip_prerelease(version: str) -> Optional[str]:
    parsed = parse_version(version)
    if parsed is None:
        return None
    return f"{parsed.major}.{parsed.minor}.{parsed.patch}"


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 following npm semver precedence."""
    return nodesemver.compare(a, b, False)


def is_greater(a: Optional[str], b: Optional[str]) -> bool:
    if parse_version(a) is None or parse_version(b) is None:
        return False
    return compare_versions(a, b) > 0


def diff_class(from_version: Optional[str], to_version: Optional[str]) -> Optional[str]:
    """Classify the distance between two versions.

    Returns ``major``, ``minor`` or ``patch`` for the most significant part
    that differs, prefixed with ``pre`` when either side is a prerelease, and
    ``prerelease`` when only the prerelease tags differ. Returns None for
    equal or unparseable versions.
    """
    a = parse_version(from_version)
    b = parse_version(to_version)
    if a is None or b is None:
        return None
    if a.compare(b) == 0:
        return None

    prefix = "pre" if (a.prerelease or b.prerelease) else ""
    for part in ("major", "minor", "patch"):
        if getattr(a, part) != getattr(b, part):
            return prefix + part
    return "prerelease"


def rewrite_range(old_range: str, new_version: str) -> str:
    """Swap the first version token in ``old_range`` for ``new_version``.

    Operators and any further comparators are left untouched.
    """
    return _VERSION_TOKEN_RE.sub(lambda _match: new_version, old_range, count=1)
