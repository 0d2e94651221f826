"""Tests for manifest reading, filtering and rewriting."""

import json
from pathlib import Path

import pytest

from npm_updates.errors import ManifestError, NoMatchingDependenciesError
from npm_updates.manifest import (
    collect_dependencies,
    find_manifest,
    load_manifest,
    resolve_manifest_path,
    split_names,
    update_manifest_text,
    write_manifest,
)
from npm_updates.models import DependencyEntry


MANIFEST = {
    "name": "app",
    "dependencies": {"react": "^17.0.2", "local": "file:../local", "tagged": "latest"},
    "devDependencies": {"jest": "~26.6.0", "any": "*"},
    "peerDependencies": {"react-dom": ">=17.0.0 <18.0.0"},
    "bundledDependencies": {"ignored": "^1.0.0"},
}


def test_collect_skips_invalid_ranges_and_unknown_sections():
    deps = collect_dependencies(MANIFEST)

    assert set(deps) == {"react", "jest", "any", "react-dom"}
    assert deps["react"] == DependencyEntry(name="react", old_range="^17.0.2")


def test_collect_limited_to_types():
    deps = collect_dependencies(MANIFEST, types=["devDependencies"])

    assert set(deps) == {"jest", "any"}


def test_include_and_exclude_filters():
    assert set(collect_dependencies(MANIFEST, include=["react", "jest"])) == {"react", "jest"}
    assert set(collect_dependencies(MANIFEST, exclude=["react", "any"])) == {"jest", "react-dom"}


def test_exclude_wins_over_include():
    deps = collect_dependencies(MANIFEST, include=["react", "jest"], exclude=["react"])

    assert set(deps) == {"jest"}


def test_filters_eliminating_everything():
    with pytest.raises(NoMatchingDependenciesError, match="No packages match the given filters"):
        collect_dependencies(MANIFEST, include=["react"], exclude=["react"])


def test_manifest_without_dependencies():
    with pytest.raises(NoMatchingDependenciesError, match="No packages found"):
        collect_dependencies({"name": "empty", "dependencies": {"x": "latest"}})


def test_split_names():
    assert split_names("a,b,,c") == ["a", "b", "c"]
    assert split_names("") is None
    assert split_names(None) is None


def test_resolve_manifest_path(tmp_path: Path):
    manifest = tmp_path / "package.json"
    manifest.write_text("{}", encoding="utf-8")

    assert resolve_manifest_path(str(manifest)) == manifest
    assert resolve_manifest_path(str(tmp_path)) == manifest

    with pytest.raises(ManifestError, match="Unable to open"):
        resolve_manifest_path(str(tmp_path / "missing.json"))


def test_find_manifest_searches_parents(tmp_path: Path, monkeypatch):
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    nested = tmp_path / "src" / "lib"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    assert find_manifest() == (tmp_path / "package.json").resolve()
    assert resolve_manifest_path(None) == (tmp_path / "package.json").resolve()


def test_find_manifest_missing(tmp_path: Path):
    with pytest.raises(ManifestError, match="Unable to find package.json"):
        find_manifest(tmp_path)


def test_load_manifest(tmp_path: Path):
    path = tmp_path / "package.json"
    path.write_text(json.dumps(MANIFEST, indent=2), encoding="utf-8")

    data, text = load_manifest(path)

    assert data == MANIFEST
    assert text == path.read_text(encoding="utf-8")


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_load_manifest_parse_errors(tmp_path: Path, content):
    path = tmp_path / "package.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ManifestError, match="Error parsing package.json"):
        load_manifest(path)


def test_load_manifest_missing_file(tmp_path: Path):
    with pytest.raises(ManifestError, match="Unable to open package.json"):
        load_manifest(tmp_path / "package.json")


def test_update_manifest_text_preserves_formatting(tmp_path: Path):
    text = (
        "{\n"
        '    "dependencies": {\n'
        '        "react":   "^17.0.2",\n'
        '        "jest": "~26.6.0"\n'
        "    }\n"
        "}\n"
    )
    entries = [
        DependencyEntry("react", "^17.0.2", "^18.2.0"),
        DependencyEntry("jest", "~26.6.0", "~26.6.0"),
    ]

    updated = update_manifest_text(text, entries)

    assert '"react": "^18.2.0"' in updated
    assert '"jest": "~26.6.0"' in updated
    assert updated.startswith("{\n    \"dependencies\"")

    path = tmp_path / "package.json"
    write_manifest(path, updated)
    assert json.loads(path.read_text(encoding="utf-8"))["dependencies"]["react"] == "^18.2.0"
