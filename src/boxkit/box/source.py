"""Box sources: verification and fetching for local paths and GitHub repos.

Local sources are copied with the source's ``.gitignore`` applied. Remote
sources are GitHub repositories written as ``owner/repo[#ref]``,
``github:owner/repo[#ref]`` or ``https://github.com/owner/repo[#ref]`` and
are downloaded as a zip archive.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import shutil
import ssl
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import httpx
import truststore

from boxkit.box.config import find_box_config
from boxkit.box.exceptions import BoxError, ConnectivityError, SourceNotFound
from boxkit.core.config import BoxkitSettings
from boxkit.core.constants import (
    BOX_CONFIG_FILENAMES,
    GITHUB_CODELOAD_HOST,
    GITHUB_RAW_HOST,
    GITIGNORE_FILENAME,
)

logger = logging.getLogger(__name__)


def make_client() -> httpx.Client:
    """Return an HTTP client that trusts the system certificate store."""
    ssl_context = truststore.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    return httpx.Client(verify=ssl_context)


# ---------------------------------------------------------------------------
# Ignore rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IgnorePattern:
    pattern: str
    negated: bool = False
    anchored: bool = False

    def matches(self, relative: str) -> bool:
        if self.anchored:
            return fnmatch.fnmatchcase(relative, self.pattern)
        basename = relative.rsplit("/", 1)[-1]
        return fnmatch.fnmatchcase(basename, self.pattern) or fnmatch.fnmatchcase(relative, self.pattern)


@dataclass(frozen=True)
class IgnoreRules:
    """Ordered gitignore-like patterns; the last matching pattern wins."""

    patterns: tuple[IgnorePattern, ...]

    @classmethod
    def parse(cls, text: str) -> "IgnoreRules":
        patterns: list[IgnorePattern] = []
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            negated = line.startswith("!")
            if negated:
                line = line[1:]
            line = line.rstrip("/")
            anchored = "/" in line
            line = line.lstrip("/")
            if line:
                patterns.append(IgnorePattern(pattern=line, negated=negated, anchored=anchored))
        return cls(patterns=tuple(patterns))

    def _matches_exactly(self, relative: str) -> bool:
        ignored = False
        for pattern in self.patterns:
            if pattern.matches(relative):
                ignored = not pattern.negated
        return ignored

    def ignores(self, relative: str) -> bool:
        """Return True if ``relative`` (POSIX, relative to the root) is ignored.

        A path inside an ignored directory is ignored as well.
        """
        parts = relative.strip("/").split("/")
        for index in range(1, len(parts) + 1):
            if self._matches_exactly("/".join(parts[:index])):
                return True
        return False


def load_ignore_rules(root: Path) -> IgnoreRules | None:
    """Return the rules of ``root/.gitignore``, or None when there is none."""
    gitignore = root / GITIGNORE_FILENAME
    if not gitignore.is_file():
        return None
    return IgnoreRules.parse(gitignore.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Source parsing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GitHubSource:
    owner: str
    repo: str
    ref: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def raw_url(self, filename: str) -> str:
        return f"https://{GITHUB_RAW_HOST}/{self.owner}/{self.repo}/{self.ref}/{filename}"

    def archive_url(self) -> str:
        return f"https://{GITHUB_CODELOAD_HOST}/{self.owner}/{self.repo}/zip/{self.ref}"


def is_local_source(source: str) -> bool:
    if source.startswith((".", "~")) or os.path.isabs(source):
        return True
    return Path(source).is_dir()


def local_source_path(source: str) -> Path:
    return Path(source).expanduser().resolve()


def parse_github_source(source: str, default_ref: str) -> GitHubSource:
    """Parse a GitHub repository reference.

    Raises:
        SourceNotFound: If ``source`` is not a recognizable GitHub reference.
    """
    text = source.strip()
    ref = ""
    if text.startswith(("http://", "https://")):
        parsed = urlparse(text)
        if parsed.netloc.lower() not in ("github.com", "www.github.com"):
            raise SourceNotFound(source, f"Unsupported box host in {source}; only github.com is supported.")
        ref = parsed.fragment
        text = parsed.path.strip("/")
    else:
        if text.startswith("github:"):
            text = text[len("github:"):]
        if "#" in text:
            text, ref = text.split("#", 1)

    parts = [part for part in text.split("/") if part]
    if len(parts) != 2:
        raise SourceNotFound(source, f"Unrecognized box source {source}; expected owner/repo[#ref].")
    owner, repo = parts
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return GitHubSource(owner=owner, repo=repo, ref=ref.strip() or default_ref)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

def _verify_local_path(path: Path) -> None:
    if not path.is_dir() or find_box_config(path) is None:
        raise SourceNotFound(str(path), f"Box at path {path} doesn't exist.")


def _verify_github_source(source: str, github: GitHubSource, client: httpx.Client, settings: BoxkitSettings) -> None:
    # Any of the supported config files marks the repository as a box.
    for filename in BOX_CONFIG_FILENAMES:
        url = github.raw_url(filename)
        try:
            response = client.head(
                url,
                timeout=settings.timeout,
                follow_redirects=True,
                headers=settings.auth_headers(),
            )
        except httpx.RequestError as exc:
            raise ConnectivityError(url, str(exc)) from exc

        if response.status_code == 200:
            logger.debug("Found %s for %s", filename, github.slug)
            return
        if response.status_code != 404:
            raise ConnectivityError(url, f"Server responded with HTTP {response.status_code}")

    raise SourceNotFound(
        source,
        f"Box at URL {source} doesn't exist. If you believe this is an error, "
        f"check the repository name and branch.",
    )


def verify_source_path(
    source: str,
    *,
    client: httpx.Client | None = None,
    settings: BoxkitSettings | None = None,
) -> None:
    """Check that ``source`` exists before anything is written.

    Raises:
        SourceNotFound: The path or repository does not hold a box.
        ConnectivityError: The remote check could not be completed.
    """
    settings = settings or BoxkitSettings()
    if is_local_source(source):
        _verify_local_path(local_source_path(source))
        return

    github = parse_github_source(source, settings.default_ref)
    owns_client = client is None
    client = client or make_client()
    try:
        _verify_github_source(source, github, client, settings)
    finally:
        if owns_client:
            client.close()


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

def _copy_local(source_root: Path, into: Path) -> None:
    rules = load_ignore_rules(source_root)

    def _ignore(directory: str, names: list[str]) -> set[str]:
        if rules is None:
            return set()
        relative_dir = Path(directory).relative_to(source_root).as_posix()
        prefix = "" if relative_dir == "." else f"{relative_dir}/"
        return {name for name in names if rules.ignores(prefix + name)}

    shutil.copytree(source_root, into, ignore=_ignore, symlinks=True, dirs_exist_ok=True)


def _download_archive(url: str, zip_path: Path, source: str, client: httpx.Client, settings: BoxkitSettings) -> None:
    try:
        with client.stream(
            "GET",
            url,
            timeout=settings.timeout,
            follow_redirects=True,
            headers=settings.auth_headers(),
        ) as response:
            if response.status_code == 404:
                raise SourceNotFound(source, f"Box at URL {source} doesn't exist.")
            if response.status_code != 200:
                raise ConnectivityError(url, f"Download failed with HTTP {response.status_code}")
            with open(zip_path, "wb") as f:
                for chunk in response.iter_bytes(chunk_size=8192):
                    f.write(chunk)
    except httpx.RequestError as exc:
        raise ConnectivityError(url, str(exc)) from exc


def _safe_extract(zip_path: Path, target: Path) -> None:
    target.mkdir(parents=True, exist_ok=True)
    root = target.resolve()
    try:
        with zipfile.ZipFile(zip_path, "r") as zip_ref:
            for member in zip_ref.infolist():
                member_path = (root / member.filename).resolve()
                if member_path != root and not member_path.is_relative_to(root):
                    raise BoxError(f"Archive member escapes extraction directory: {member.filename}")
            zip_ref.extractall(root)
    except zipfile.BadZipFile as exc:
        raise BoxError(f"Downloaded archive is not a valid zip file: {exc}") from exc


def _archive_root(extract_dir: Path) -> Path:
    # GitHub archives wrap everything in a single <repo>-<ref>/ directory.
    items = list(extract_dir.iterdir())
    if len(items) == 1 and items[0].is_dir():
        return items[0]
    return extract_dir


def _download_github(source: str, github: GitHubSource, into: Path, client: httpx.Client, settings: BoxkitSettings) -> None:
    url = github.archive_url()
    with tempfile.TemporaryDirectory(prefix="boxkit-download-") as staging:
        staging_path = Path(staging)
        zip_path = staging_path / "box.zip"
        logger.info("Downloading %s", url)
        _download_archive(url, zip_path, source, client, settings)

        extract_dir = staging_path / "extract"
        _safe_extract(zip_path, extract_dir)

        into.mkdir(parents=True, exist_ok=True)
        for item in _archive_root(extract_dir).iterdir():
            shutil.move(str(item), str(into / item.name))


def fetch_repository(
    source: str,
    into: Path,
    *,
    client: httpx.Client | None = None,
    settings: BoxkitSettings | None = None,
) -> None:
    """Place the files of ``source`` into the directory ``into``."""
    settings = settings or BoxkitSettings()
    if is_local_source(source):
        source_root = local_source_path(source)
        logger.info("Copying box from %s", source_root)
        _copy_local(source_root, into)
        return

    github = parse_github_source(source, settings.default_ref)
    owns_client = client is None
    client = client or make_client()
    try:
        _download_github(source, github, into, client, settings)
    finally:
        if owns_client:
            client.close()


__all__ = [
    "GitHubSource",
    "IgnorePattern",
    "IgnoreRules",
    "fetch_repository",
    "is_local_source",
    "load_ignore_rules",
    "make_client",
    "parse_github_source",
    "verify_source_path",
]
