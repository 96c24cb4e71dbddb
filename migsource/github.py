"""Source driver reading migrations from a directory of a GitHub repository."""

from __future__ import annotations

import base64
import errno
import io
import posixpath
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Optional
from urllib.parse import quote, unquote, urlsplit

import requests

from migsource.driver import Driver, register
from migsource.migration import Migrations, ParseError, parse

DEFAULT_BASE_URL = "https://api.github.com"


class NoUserInfoError(ValueError):
    """Raised when the URL carries a user but no token."""

    def __init__(self, message: str = "no username:token provided") -> None:
        super().__init__(message)


class InvalidRepoError(ValueError):
    """Raised when the URL names no repository."""

    def __init__(self, message: str = "invalid repo") -> None:
        super().__init__(message)


class NoDirError(ValueError):
    """Raised when the configured path is a file rather than a directory."""

    def __init__(self, message: str = "no directory") -> None:
        super().__init__(message)


@dataclass
class GithubConfig:
    """Where in which repository the migrations live."""

    owner: str = ""
    repo: str = ""
    path: str = ""
    ref: str = ""


class GithubClient:
    """Minimal client for the repository contents API."""

    def __init__(
        self, base_url: str = DEFAULT_BASE_URL, session: Optional[requests.Session] = None
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()

    def get_contents(self, owner: str, repo: str, path: str, ref: str = "") -> Any:
        """Return a dict describing a file, or a list of entries for a directory."""
        url = f"{self.base_url}/repos/{owner}/{repo}/contents/{quote(path)}"
        response = self.session.get(
            url,
            params={"ref": ref} if ref else None,
            headers={"Accept": "application/vnd.github.v3+json"},
        )
        response.raise_for_status()
        return response.json()


def _decode_content(file: dict) -> bytes:
    encoding = file.get("encoding") or ""
    content = file.get("content") or ""
    if encoding == "base64":
        return base64.b64decode(content)
    if encoding == "":
        return content.encode()
    raise ValueError(f"unsupported content encoding: {encoding}")


@dataclass(eq=False)
class Github(Driver):
    """Driver serving migrations from a GitHub repository directory."""

    client: Optional[GithubClient] = None
    config: GithubConfig = field(default_factory=GithubConfig)
    migrations: Migrations = field(default_factory=Migrations, repr=False)

    def open(self, url: str) -> "Github":
        parts = urlsplit(url)
        session = requests.Session()
        _, at, host = parts.netloc.rpartition("@")
        if at:
            if parts.password is None:
                raise NoUserInfoError()
            session.headers["Authorization"] = f"Bearer {unquote(parts.password)}"

        segments = unquote(parts.path).strip("/").split("/")
        if not segments[0]:
            raise InvalidRepoError()
        config = GithubConfig(
            owner=host,
            repo=segments[0],
            path="/".join(segments[1:]),
            ref=parts.fragment,
        )
        driver = Github(client=GithubClient(session=session), config=config)
        driver._read_directory()
        return driver

    def _read_directory(self) -> None:
        cfg = self.config
        contents = self.client.get_contents(cfg.owner, cfg.repo, cfg.path, cfg.ref)
        if isinstance(contents, dict):
            raise NoDirError()
        for entry in contents:
            name = entry["name"]
            try:
                m = parse(name)
            except ParseError:
                continue
            if not self.migrations.append(m):
                raise ValueError(f"unable to parse file {name}")

    def _not_exist(self, op: str) -> FileNotFoundError:
        return FileNotFoundError(errno.ENOENT, f"{op}: file does not exist", self.config.path)

    def close(self) -> None:
        pass

    def first(self) -> int:
        version = self.migrations.first()
        if version is None:
            raise self._not_exist("first")
        return version

    def prev(self, version: int) -> int:
        result = self.migrations.prev(version)
        if result is None:
            raise self._not_exist(f"prev for version {version}")
        return result

    def next(self, version: int) -> int:
        result = self.migrations.next(version)
        if result is None:
            raise self._not_exist(f"next for version {version}")
        return result

    def _read(self, m, version: int) -> tuple[BinaryIO, str]:
        if m is not None:
            cfg = self.config
            file = self.client.get_contents(
                cfg.owner, cfg.repo, posixpath.join(cfg.path, m.raw), cfg.ref
            )
            if isinstance(file, dict):
                return io.BytesIO(_decode_content(file)), m.identifier
        raise self._not_exist(f"read version {version}")

    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        return self._read(self.migrations.up(version), version)

    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        return self._read(self.migrations.down(version), version)


def with_instance(client: GithubClient, config: GithubConfig) -> Github:
    """Return a driver using an existing client and configuration."""
    driver = Github(client=client, config=config)
    driver._read_directory()
    return driver


register("github", Github())