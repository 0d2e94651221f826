import json
from pathlib import Path

import pytest

from npm_updates import cli
from npm_updates.errors import MetadataFetchError


MANIFEST_TEXT = """{
  "name": "app",
  "dependencies": {
    "alpha": "^1.0.0",
    "beta": "~3.0.1"
  },
  "devDependencies": {
    "gamma": "^0.1.0-rc.1"
  }
}
"""


class FakeClient:
    def __init__(self, metadata, failures=()):
        self.registry = "https://registry.example"
        self.metadata = metadata
        self.failures = set(failures)

    def fetch_package_metadata(self, package_name):
        if package_name in self.failures:
            raise MetadataFetchError(package_name, f"Received 500 Server Error for {package_name}")
        return self.metadata[package_name]

    def get_info_url(self, metadata, version=None):
        return ""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    path = tmp_path / "package.json"
    path.write_text(MANIFEST_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def fake_registry(monkeypatch, make_metadata):
    metadata = {
        "alpha": make_metadata(["1.0.0", "1.1.0", "2.0.0"], latest="2.0.0", name="alpha"),
        "beta": make_metadata(["3.0.0", "3.0.1"], latest="3.0.1", name="beta"),
        "gamma": make_metadata(["0.1.0-rc.1", "0.1.0-rc.2"], latest="0.1.0-rc.2", name="gamma"),
    }
    state = {"failures": set()}

    def factory(registry=None):
        return FakeClient(metadata, failures=state["failures"])

    monkeypatch.setattr(cli, "NpmRegistryClient", factory)
    return state


def run_json(capsys, argv):
    code = cli.main(argv + ["--json"])
    return code, json.loads(capsys.readouterr().out)


def test_json_output_lists_outdated(project, fake_registry, capsys):
    code, data = run_json(capsys, ["-f", str(project)])

    assert code == 0
    assert data["results"] == {
        "alpha": {"old": "^1.0.0", "new": "^2.0.0", "info": ""},
        "gamma": {"old": "^0.1.0-rc.1", "new": "^0.1.0-rc.2", "info": ""},
    }


def test_directory_argument_and_minor_flag(project, fake_registry, capsys):
    code, data = run_json(capsys, ["-f", str(project.parent), "-m", "-t", "dependencies"])

    assert code == 0
    assert data["results"] == {"alpha": {"old": "^1.0.0", "new": "^1.1.0", "info": ""}}


def test_update_writes_manifest(project, fake_registry, capsys):
    code = cli.main(["-f", str(project), "-u", "-e", "gamma"])
    output = capsys.readouterr().out

    assert code == 0
    assert "package.json updated" in output
    written = json.loads(project.read_text(encoding="utf-8"))
    assert written["dependencies"] == {"alpha": "^2.0.0", "beta": "~3.0.1"}
    assert written["devDependencies"] == {"gamma": "^0.1.0-rc.1"}


def test_error_on_outdated(project, fake_registry, capsys):
    assert cli.main(["-f", str(project), "-E"]) == cli.EXIT_OUTDATED
    assert cli.main(["-f", str(project), "-E", "-i", "beta"]) == cli.EXIT_OK
    assert "All packages are up to date." in capsys.readouterr().out


def test_filters_matching_nothing(project, fake_registry, capsys):
    code, data = run_json(capsys, ["-f", str(project), "-i", "alpha", "-e", "alpha"])

    assert code == cli.EXIT_ERROR
    assert data == {"error": "No packages match the given filters"}


def test_fetch_failure_is_reported(project, fake_registry, capsys):
    fake_registry["failures"].add("beta")

    code, data = run_json(capsys, ["-f", str(project)])

    assert code == cli.EXIT_ERROR
    assert data == {"error": "Received 500 Server Error for beta"}
    assert json.loads(project.read_text(encoding="utf-8"))["dependencies"]["alpha"] == "^1.0.0"


def test_missing_file(tmp_path, capsys):
    code = cli.main(["-f", str(tmp_path / "nope.json")])

    assert code == cli.EXIT_ERROR
    assert "Unable to open" in capsys.readouterr().out


def test_mixed_flags_parse():
    parser = cli.build_parser()

    args = parser.parse_args(["-p", "-g", "a,b", "-u"])

    assert args.prerelease == ""
    assert args.greatest == "a,b"
    assert args.release is None
    assert args.update is True
