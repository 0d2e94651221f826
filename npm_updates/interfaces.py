"""
Interfaces for registry clients.
"""

from __future__ import annotations

from typing import Optional, Protocol

from .models import PackageMetadata


class RegistryClient(Protocol):
    """Fetch package metadata from an npm-compatible registry."""

    registry: str

    def fetch_package_metadata(self, package_name: str) -> PackageMetadata:
        ...

    def get_info_url(
        self, metadata: PackageMetadata, version: Optional[str] = None
    ) -> str:
        ...
