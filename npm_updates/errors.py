"""
Exception types raised while checking for dependency updates.
"""

from __future__ import annotations

from typing import Optional


class UpdatesError(Exception):
    """Base class for all npm-updates errors."""


class InvalidRangeError(UpdatesError, ValueError):
    """A declared dependency range is not a valid semver range."""

    def __init__(self, range_: str) -> None:
        super().__init__(f"Invalid semver range: {range_!r}")
        self.range = range_


class ManifestError(UpdatesError):
    """The package manifest could not be located, read, parsed or written."""


class NoMatchingDependenciesError(UpdatesError):
    """Nothing is left to check after reading and filtering the manifest."""


class MetadataFetchError(UpdatesError):
    """Fetching registry metadata for a package failed."""

    def __init__(
        self,
        name: str,
        message: str,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.name = name
        self.status = status


class BatchCancelled(UpdatesError):
    """The caller cancelled an in-flight batch of registry fetches."""
