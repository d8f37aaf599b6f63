"""Tests for boxkit.box.source — ignore rules, verification and fetching.

Network paths use ``httpx.MockTransport``; nothing leaves the process.
"""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

import httpx
import pytest

from boxkit.box.exceptions import BoxError, ConnectivityError, SourceNotFound
from boxkit.box.source import (
    GitHubSource,
    IgnoreRules,
    fetch_repository,
    is_local_source,
    load_ignore_rules,
    parse_github_source,
    verify_source_path,
)
from boxkit.core.config import BoxkitSettings

SETTINGS = BoxkitSettings(github_token=None, default_ref="master", timeout=5.0)


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _zip_bytes(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Ignore rules
# ---------------------------------------------------------------------------


class TestIgnoreRules:
    def test_basename_patterns_match_at_any_depth(self) -> None:
        rules = IgnoreRules.parse("node_modules/\n*.log\n")

        assert rules.ignores("node_modules")
        assert rules.ignores("packages/app/node_modules")
        assert rules.ignores("debug.log")
        assert rules.ignores("logs/today.log")
        assert not rules.ignores("src/app.js")

    def test_anchored_patterns_match_from_root_only(self) -> None:
        rules = IgnoreRules.parse("/build\ndocs/private\n")

        assert rules.ignores("build")
        assert not rules.ignores("src/build")
        assert rules.ignores("docs/private")
        assert rules.ignores("docs/private/notes.md")

    def test_negation_and_comments(self) -> None:
        rules = IgnoreRules.parse("# comment\n\n*.md\n!README.md\n")

        assert rules.ignores("CHANGELOG.md")
        assert not rules.ignores("README.md")

    def test_missing_gitignore_is_none(self, tmp_path: Path) -> None:
        assert load_ignore_rules(tmp_path) is None

    def test_gitignore_is_loaded(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("dist\n", encoding="utf-8")

        rules = load_ignore_rules(tmp_path)

        assert rules is not None
        assert rules.ignores("dist/bundle.js")


# ---------------------------------------------------------------------------
# Source parsing
# ---------------------------------------------------------------------------


class TestParseGithubSource:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("acme/starter", GitHubSource("acme", "starter", "master")),
            ("acme/starter#dev", GitHubSource("acme", "starter", "dev")),
            ("github:acme/starter#v2", GitHubSource("acme", "starter", "v2")),
            ("https://github.com/acme/starter", GitHubSource("acme", "starter", "master")),
            ("https://github.com/acme/starter.git#main", GitHubSource("acme", "starter", "main")),
        ],
    )
    def test_parses(self, source: str, expected: GitHubSource) -> None:
        assert parse_github_source(source, "master") == expected

    @pytest.mark.parametrize("source", ["starter", "a/b/c", "https://gitlab.com/acme/starter"])
    def test_rejects(self, source: str) -> None:
        with pytest.raises(SourceNotFound):
            parse_github_source(source, "master")

    def test_local_detection(self, tmp_path: Path) -> None:
        assert is_local_source(str(tmp_path))
        assert is_local_source("./box")
        assert is_local_source("~/boxes/box")
        assert not is_local_source("acme/starter-that-does-not-exist-locally")


# ---------------------------------------------------------------------------
# verify_source_path()
# ---------------------------------------------------------------------------


class TestVerifySourcePath:
    def test_local_box_with_config(self, make_box) -> None:
        box = make_box({"a.txt": "a"})

        verify_source_path(str(box))

    def test_local_directory_without_config(self, tmp_path: Path) -> None:
        with pytest.raises(SourceNotFound, match="doesn't exist"):
            verify_source_path(str(tmp_path))

    def test_local_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(SourceNotFound):
            verify_source_path(str(tmp_path / "missing"))

    def test_remote_box_found(self) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200)

        verify_source_path("acme/starter", client=_client(handler), settings=SETTINGS)

        assert requested == ["https://raw.githubusercontent.com/acme/starter/master/box.json"]

    def test_remote_box_found_via_yaml_config(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200 if request.url.path.endswith("box.yaml") else 404)

        verify_source_path("acme/starter", client=_client(handler), settings=SETTINGS)

    def test_remote_missing_raises_source_not_found(self) -> None:
        client = _client(lambda request: httpx.Response(404))

        with pytest.raises(SourceNotFound, match="Box at URL acme/starter doesn't exist"):
            verify_source_path("acme/starter", client=client, settings=SETTINGS)

    def test_remote_server_error_raises_connectivity_error(self) -> None:
        client = _client(lambda request: httpx.Response(503))

        with pytest.raises(ConnectivityError, match="check your internet connection"):
            verify_source_path("acme/starter", client=client, settings=SETTINGS)

    def test_transport_failure_raises_connectivity_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed", request=request)

        with pytest.raises(ConnectivityError, match="name resolution failed"):
            verify_source_path("acme/starter", client=_client(handler), settings=SETTINGS)

    def test_token_is_sent(self) -> None:
        headers: list[str | None] = []

        def handler(request: httpx.Request) -> httpx.Response:
            headers.append(request.headers.get("Authorization"))
            return httpx.Response(200)

        settings = BoxkitSettings(github_token="secret", default_ref="main")
        verify_source_path("acme/starter", client=_client(handler), settings=settings)

        assert headers == ["Bearer secret"]


# ---------------------------------------------------------------------------
# fetch_repository()
# ---------------------------------------------------------------------------


class TestFetchRepository:
    def test_local_copy_respects_gitignore(self, tmp_path: Path, make_tree, snapshot_tree) -> None:
        source = make_tree(
            tmp_path / "box",
            {
                ".gitignore": "node_modules/\n*.log\n",
                "box.json": "{}",
                "src/app.js": "app",
                "node_modules/dep/index.js": "dep",
                "debug.log": "log",
            },
        )
        into = tmp_path / "into"
        into.mkdir()

        fetch_repository(str(source), into)

        assert snapshot_tree(into) == {".gitignore": "node_modules/\n*.log\n", "box.json": "{}", "src/app.js": "app"}

    def test_local_copy_without_gitignore(self, make_box, tmp_path: Path, snapshot_tree) -> None:
        box = make_box({"a.txt": "a", "nested/b.txt": "b"})
        into = tmp_path / "into"

        fetch_repository(str(box), into)

        assert snapshot_tree(into) == {"a.txt": "a", "box.json": "{}", "nested/b.txt": "b"}

    def test_remote_archive_is_flattened(self, tmp_path: Path, snapshot_tree) -> None:
        archive = _zip_bytes({"starter-dev/box.json": "{}", "starter-dev/src/app.js": "app"})
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=archive)

        into = tmp_path / "into"
        fetch_repository("acme/starter#dev", into, client=_client(handler), settings=SETTINGS)

        assert requested == ["https://codeload.github.com/acme/starter/zip/dev"]
        assert snapshot_tree(into) == {"box.json": "{}", "src/app.js": "app"}

    def test_remote_archive_missing(self, tmp_path: Path) -> None:
        client = _client(lambda request: httpx.Response(404))

        with pytest.raises(SourceNotFound):
            fetch_repository("acme/starter", tmp_path / "into", client=client, settings=SETTINGS)

    def test_remote_archive_server_error(self, tmp_path: Path) -> None:
        client = _client(lambda request: httpx.Response(500))

        with pytest.raises(ConnectivityError, match="HTTP 500"):
            fetch_repository("acme/starter", tmp_path / "into", client=client, settings=SETTINGS)

    def test_archive_escaping_target_rejected(self, tmp_path: Path) -> None:
        archive = _zip_bytes({"../evil.txt": "x"})
        client = _client(lambda request: httpx.Response(200, content=archive))

        with pytest.raises(BoxError, match="escapes"):
            fetch_repository("acme/starter", tmp_path / "into", client=client, settings=SETTINGS)

        assert not (tmp_path / "evil.txt").exists()

    def test_invalid_archive_rejected(self, tmp_path: Path) -> None:
        client = _client(lambda request: httpx.Response(200, content=b"not a zip"))

        with pytest.raises(BoxError, match="not a valid zip"):
            fetch_repository("acme/starter", tmp_path / "into", client=client, settings=SETTINGS)
