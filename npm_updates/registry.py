"""
npm registry client.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from .errors import MetadataFetchError
from .interfaces import RegistryClient
from .models import PackageMetadata


logger = logging.getLogger(__name__)

NPM_REGISTRY = "https://registry.npmjs.org"
GITHUB_REGISTRY = "https://npm.pkg.github.com"

_SCOPED_NAME_RE = re.compile(r"@[a-z0-9][\w.-]+/[a-z0-9][\w.-]*", re.IGNORECASE)
_HOSTED_URL_RE = re.compile(
    r"^(?:git\+)?(?:(?:https?|git|ssh)://)?(?:[^@/]+@)?"
    r"(?P<host>github\.com|gitlab\.com|bitbucket\.org)[:/]"
    r"(?P<user>[^/]+)/(?P<project>[^/#?]+?)(?:\.git)?(?:[/#?].*)?$"
)
_SHORTCUT_RE = re.compile(
    r"^(?:(?P<provider>github|gitlab|bitbucket):)?(?P<user>[\w.-]+)/(?P<project>[\w.-]+?)(?:\.git)?(?:#.*)?$"
)
_PROVIDER_HOSTS = {
    "github": "github.com",
    "gitlab": "gitlab.com",
    "bitbucket": "bitbucket.org",
}


def normalize_registry_url(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


def default_registry() -> str:
    """Registry from ``NPM_CONFIG_REGISTRY``, or the public npm registry."""
    return normalize_registry_url(os.environ.get("NPM_CONFIG_REGISTRY") or NPM_REGISTRY)


def encode_package_name(name: str) -> str:
    """Escape the scope separator of ``@scope/name`` for registry URLs."""
    if _SCOPED_NAME_RE.search(name):
        return name.replace("/", "%2f")
    return name


def repository_browse_url(repository: Any) -> Optional[str]:
    """Return a web URL for a ``repository`` field hosted on a known forge."""
    url = repository.get("url") if isinstance(repository, Mapping) else repository
    if not isinstance(url, str) or not url:
        return None

    match = _HOSTED_URL_RE.match(url.strip())
    if match:
        host, user, project = match.group("host", "user", "project")
        return f"https://{host}/{user}/{project}"

    match = _SHORTCUT_RE.match(url.strip())
    if match and "://" not in url:
        host = _PROVIDER_HOSTS[match.group("provider") or "github"]
        return f"https://{host}/{match.group('user')}/{match.group('project')}"
    return None


@dataclass
class RegistryCache:
    """Shared in-memory cache of registry documents."""

    metadata_cache: Dict[Tuple[str, str], PackageMetadata] = field(default_factory=dict)
    session: requests.Session = field(default_factory=requests.Session)
    lock: threading.Lock = field(default_factory=threading.Lock)


class NpmRegistryClient(RegistryClient):
    """Registry client for npm-compatible registries.

    A non-2xx answer from a custom registry is retried once against the
    public npm registry before giving up.
    """

    def __init__(
        self,
        registry: Optional[str] = None,
        token: Optional[str] = None,
        cache: Optional[RegistryCache] = None,
        timeout: Optional[float] = 30,
    ) -> None:
        self.registry = normalize_registry_url(registry) if registry else default_registry()
        self.token = token if token is not None else os.environ.get("NPM_TOKEN")
        self.cache = cache or RegistryCache()
        self.timeout = timeout

    def fetch_package_metadata(self, package_name: str) -> PackageMetadata:
        cache_key = (self.registry, package_name)
        with self.cache.lock:
            if cache_key in self.cache.metadata_cache:
                logger.debug("Cache hit: metadata %s", package_name)
                return self.cache.metadata_cache[cache_key]

        logger.info("Fetching metadata for %s", package_name)
        response, document = self._get(package_name, self.registry, self.token)
        if self.registry != NPM_REGISTRY and not response.ok:
            logger.info(
                "Registry %s answered %s for %s, retrying on %s",
                self.registry, response.status_code, package_name, NPM_REGISTRY,
            )
            response, document = self._get(package_name, NPM_REGISTRY, None)
        if not response.ok:
            raise MetadataFetchError(
                package_name,
                f"Received {response.status_code} {response.reason} for {package_name}",
                status=response.status_code,
            )

        if not isinstance(document, dict):
            raise MetadataFetchError(package_name, f"Unexpected registry response for {package_name}")
        if document.get("error"):
            raise MetadataFetchError(package_name, str(document["error"]))

        try:
            metadata = PackageMetadata.from_registry(document, name=package_name)
        except (TypeError, ValueError) as e:
            raise MetadataFetchError(
                package_name, f"Malformed registry metadata for {package_name}: {e}"
            ) from e
        with self.cache.lock:
            self.cache.metadata_cache[cache_key] = metadata
        return metadata

    def get_info_url(self, metadata: PackageMetadata, version: Optional[str] = None) -> str:
        """Web page describing the package, preferring its source repository."""
        if self.registry == GITHUB_REGISTRY:
            return f"https://github.com/{metadata.name.lstrip('@')}"

        source = metadata.versions.get(version) if version else None
        if not source:
            source = metadata.repository_info
        browse = repository_browse_url(source.get("repository"))
        if browse:
            return browse
        return source.get("homepage") or ""

    def _get(
        self, package_name: str, registry: str, token: Optional[str]
    ) -> Tuple[requests.Response, Any]:
        """Request a packument; the body is decoded only for successful responses."""
        url = f"{registry}/{encode_package_name(package_name)}"
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            with self.cache.session.get(url, headers=headers, timeout=self.timeout) as response:
                if not response.ok:
                    return response, None
                try:
                    return response, response.json()
                except ValueError as e:
                    raise MetadataFetchError(
                        package_name, f"Invalid JSON in registry response for {package_name}: {e}"
                    ) from e
        except requests.RequestException as e:
            raise MetadataFetchError(package_name, f"Request for {package_name} failed: {e}") from e
