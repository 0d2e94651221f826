"""
Core data models for dependency update checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .time_utils import parse_timestamp


@dataclass
class DependencyEntry:
    """A manifest dependency and, once resolved, its replacement range."""

    name: str
    old_range: str
    new_range: Optional[str] = None
    info_url: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.new_range is not None and self.new_range != self.old_range

    def to_dict(self) -> Dict[str, str]:
        return {
            "old": self.old_range,
            "new": self.new_range or "",
            "info": self.info_url or "",
        }


@dataclass(frozen=True)
class PackageMetadata:
    """Snapshot of a registry document for one package."""

    name: str
    versions: Mapping[str, Dict[str, Any]]
    dist_tags: Mapping[str, str]
    publish_times: Optional[Mapping[str, str]]
    repository_info: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_registry(cls, document: Dict[str, Any], name: Optional[str] = None) -> "PackageMetadata":
        """Build metadata from a raw npm registry packument.

        Raises ``ValueError`` when ``versions`` or ``dist-tags`` is not an object.
        """
        time_data = document.get("time")
        repository_info = {
            key: document[key]
            for key in ("repository", "homepage")
            if document.get(key)
        }
        return cls(
            name=document.get("name") or name or "",
            versions=MappingProxyType(_object_field(document, "versions")),
            dist_tags=MappingProxyType(_object_field(document, "dist-tags")),
            publish_times=MappingProxyType(dict(time_data)) if isinstance(time_data, dict) else None,
            repository_info=MappingProxyType(repository_info),
        )

    @property
    def has_publish_times(self) -> bool:
        return self.publish_times is not None

    @property
    def latest(self) -> Optional[str]:
        return self.dist_tags.get("latest")

    def published_at(self, version: str) -> Optional[datetime]:
        if not self.publish_times:
            return None
        return parse_timestamp(self.publish_times.get(version, ""))


@dataclass
class CheckOutcome:
    """Terminal result of a batch check: changed entries, a message, or an error."""

    results: Dict[str, DependencyEntry] = field(default_factory=dict)
    message: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def outdated(self) -> bool:
        return self.ok and bool(self.results)


def _object_field(document: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = document.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be an object, got {type(value).__name__}")
    return dict(value)
