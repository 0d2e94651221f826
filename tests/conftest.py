from datetime import datetime, timedelta, timezone

import pytest

from npm_updates.models import PackageMetadata


def _packument(name, versions, latest=None, with_time=True, repository=None, homepage=None):
    """Build a registry document; ``versions`` are listed oldest first."""
    start = datetime(2020, 1, 1, tzinfo=timezone.utc)
    document = {
        "name": name,
        "dist-tags": {"latest": latest} if latest else {},
        "versions": {version: {"name": name, "version": version} for version in versions},
    }
    if with_time:
        document["time"] = {
            version: (start + timedelta(days=i)).isoformat().replace("+00:00", "Z")
            for i, version in enumerate(versions)
        }
        document["time"]["created"] = start.isoformat()
    if repository:
        document["repository"] = repository
    if homepage:
        document["homepage"] = homepage
    return document


@pytest.fixture
def packument():
    return _packument


@pytest.fixture
def make_metadata():
    def factory(versions, latest=None, name="demo", with_time=True, **kwargs):
        return PackageMetadata.from_registry(
            _packument(name, versions, latest=latest, with_time=with_time, **kwargs)
        )

    return factory
