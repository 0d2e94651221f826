"""
Reading, filtering and rewriting package.json manifests.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import InvalidRangeError, ManifestError, NoMatchingDependenciesError
from .models import DependencyEntry
from .ranges import require_valid_range


logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"

DEFAULT_DEPENDENCY_TYPES: Tuple[str, ...] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)


def find_manifest(start: Optional[Path] = None) -> Path:
    """Find package.json in ``start`` or the closest parent directory."""
    start = Path(start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    raise ManifestError(
        f"Unable to find {MANIFEST_NAME} in {start} or any of its parent directories"
    )


def resolve_manifest_path(file: Optional[str] = None) -> Path:
    """Resolve ``--file``: a manifest file or a directory holding one."""
    if file is None:
        return find_manifest()

    path = Path(file)
    if path.is_file():
        return path
    if path.is_dir():
        return path / MANIFEST_NAME
    if not path.exists():
        raise ManifestError(f"Unable to open {file}: no such file or directory")
    raise ManifestError(f"{file} is neither a file nor directory")


def load_manifest(path: Path) -> Tuple[Dict, str]:
    """Return the parsed manifest and its original text."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Unable to open {MANIFEST_NAME}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Error parsing {MANIFEST_NAME}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"Error parsing {MANIFEST_NAME}: top level is not an object")
    return data, text


def split_names(value: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated CLI value; None when no names were given."""
    if not value or not isinstance(value, str):
        return None
    return [name for name in value.split(",") if name]


def collect_dependencies(
    manifest: Dict,
    types: Optional[Sequence[str]] = None,
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> Dict[str, DependencyEntry]:
    """Gather checkable dependencies from the selected manifest sections.

    Names are kept when they pass ``include`` and are not in ``exclude``.
    Entries whose range is not valid semver are skipped. Raises
    NoMatchingDependenciesError when nothing is left.
    """
    include_set = set(include) if include is not None else None
    exclude_set = set(exclude) if exclude is not None else None
    deps: Dict[str, DependencyEntry] = {}

    for key in types or DEFAULT_DEPENDENCY_TYPES:
        section = manifest.get(key)
        if not isinstance(section, dict):
            continue
        for name, old in section.items():
            if include_set is not None and name not in include_set:
                continue
            if exclude_set is not None and name in exclude_set:
                continue
            try:
                require_valid_range(old)
            except InvalidRangeError:
                logger.debug("Skipping %s: %r is not a semver range", name, old)
                continue
            deps[name] = DependencyEntry(name=name, old_range=old)

    if not deps:
        if include_set is not None or exclude_set is not None:
            raise NoMatchingDependenciesError("No packages match the given filters")
        raise NoMatchingDependenciesError("No packages found")
    return deps


def update_manifest_text(text: str, entries: Iterable[DependencyEntry]) -> str:
    """Replace ``"name": "old"`` pairs with their new ranges, keeping formatting."""
    for entry in entries:
        if not entry.changed:
            continue
        pattern = re.compile(
            f'"{re.escape(entry.name)}": +"{re.escape(entry.old_range)}"'
        )
        replacement = f'"{entry.name}": "{entry.new_range}"'
        text = pattern.sub(lambda _match: replacement, text)
    return text


def write_manifest(path: Path, text: str) -> None:
    try:
        Path(path).write_text(text, encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Error writing {MANIFEST_NAME}: {e}") from e
