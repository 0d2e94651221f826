"""
Version selection and upgrade decisions for a single dependency.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .models import PackageMetadata
from .policy import PackagePolicy
from .ranges import (
    WILDCARD,
    baseline_version,
    compare_versions,
    diff_class,
    is_greater,
    is_prerelease_range,
    is_prerelease_version,
    parse_version,
    strip_prerelease,
)
from .time_utils import EPOCH


logger = logging.getLogger(__name__)


def accepted_diff_classes(policy: PackagePolicy, allow_prerelease: bool) -> List[str]:
    """Diff classes a candidate may have relative to the range baseline."""
    accepted = list(policy.accepted_diffs)
    if allow_prerelease:
        accepted.append("prerelease")
        for part in ("patch", "minor", "major"):
            if part in policy.accepted_diffs:
                accepted.append("pre" + part)
    return accepted


def select_version(
    metadata: PackageMetadata, policy: PackagePolicy, old_range: str
) -> Optional[str]:
    """Pick the best published version reachable from ``old_range``.

    Candidates must be valid semver and sit within the policy's diff ceiling
    of the range baseline. The winner is the most recently published one, or
    the greatest one when ``use_greatest`` is set or the registry does not
    report publish times. Returns the baseline itself when nothing newer
    qualifies, and None when the range has no baseline.
    """
    if old_range == WILDCARD:
        return WILDCARD

    baseline = baseline_version(old_range)
    if baseline is None:
        logger.debug("No baseline version in range %r for %s", old_range, metadata.name)
        return None

    allow_prerelease = is_prerelease_range(old_range) or policy.use_prerelease
    accepted = accepted_diff_classes(policy, allow_prerelease)
    by_greatest = policy.use_greatest or not metadata.has_publish_times

    candidate = baseline
    best_time = EPOCH

    for version in metadata.versions:
        parsed = parse_version(version)
        if parsed is None:
            continue
        if parsed.prerelease and (not allow_prerelease or policy.use_release_only):
            continue

        diff = diff_class(baseline, parsed.version)
        if diff is None or diff not in accepted:
            continue

        if by_greatest:
            if compare_versions(strip_prerelease(parsed.version), candidate) >= 0:
                candidate = parsed.version
        else:
            published = metadata.published_at(version)
            if published is not None and published >= EPOCH and published > best_time:
                candidate = parsed.version
                best_time = published

    return candidate


def decide_version(
    metadata: PackageMetadata,
    selected: Optional[str],
    old_range: str,
    policy: PackagePolicy,
) -> Optional[str]:
    """Turn the selected candidate into the final target version.

    Rules are checked in order and the first match wins. None means the
    dependency should be left alone.
    """
    if selected is None:
        return None
    if old_range == WILDCARD:
        return WILDCARD
    if policy.use_greatest:
        return selected

    latest = metadata.latest
    baseline = baseline_version(old_range)
    old_is_pre = is_prerelease_range(old_range)
    new_is_pre = is_prerelease_version(selected)
    greater = is_greater(selected, baseline)

    # stay on the prerelease track
    if (not policy.use_release_only and policy.use_prerelease) or (old_is_pre and new_is_pre):
        return selected

    # release-only may step down from a prerelease to a release
    if policy.use_release_only and not greater and old_is_pre and not new_is_pre:
        return selected

    # graduate from prerelease to a newer release
    if old_is_pre and not new_is_pre and greater:
        return selected

    # never silently downgrade off a prerelease
    if old_is_pre and not new_is_pre and not greater:
        return None

    if latest is None:
        logger.debug("No latest dist-tag for %s, keeping %s", metadata.name, selected)
        return selected

    # latest oversteps the ceiling, use the constrained candidate
    latest_diff = diff_class(baseline, latest)
    if (
        latest_diff
        and latest_diff != "prerelease"
        and _strip_pre(latest_diff) not in policy.accepted_diffs
    ):
        return selected

    if policy.use_release_only and is_prerelease_version(latest):
        return selected

    return latest


def _strip_pre(diff: str) -> str:
    return diff[3:] if diff.startswith("pre") else diff


def find_new_version(
    metadata: PackageMetadata, policy: PackagePolicy, old_range: str
) -> Optional[str]:
    """Select and decide in one step."""
    selected = select_version(metadata, policy, old_range)
    return decide_version(metadata, selected, old_range, policy)
