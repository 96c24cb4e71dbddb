"""Source driver reading migrations from a directory of a GitLab project."""

from __future__ import annotations

import base64
import binascii
import dataclasses
import errno
import io
from dataclasses import dataclass, field
from typing import BinaryIO, NamedTuple, Optional
from urllib.parse import quote, unquote, urlsplit

import requests

from migsource.driver import Driver, register
from migsource.migration import Migration, Migrations, ParseError, parse

DEFAULT_MAX_ITEMS_PER_PAGE = 100
DEFAULT_BASE_URL = "https://gitlab.com"


class NoUserInfoError(ValueError):
    """Raised when the URL carries no user information."""

    def __init__(self, message: str = "no username:token provided") -> None:
        super().__init__(message)


class NoAccessTokenError(ValueError):
    """Raised when the URL carries a user but no token."""

    def __init__(self, message: str = "no access token") -> None:
        super().__init__(message)


class InvalidProjectIDError(ValueError):
    """Raised when the URL names no project."""

    def __init__(self, message: str = "invalid project id") -> None:
        super().__init__(message)


class InvalidResponseError(Exception):
    """Raised when the server answers with a status other than 200."""

    def __init__(self, message: str = "invalid response") -> None:
        super().__init__(message)


@dataclass
class GitlabConfig:
    """Configuration for the GitLab driver (it has no options)."""


class TreePage(NamedTuple):
    """One page of a repository tree listing."""

    nodes: list
    status_code: int
    current_page: int
    total_pages: int
    next_page: int


class RepositoryFile(NamedTuple):
    """A file fetched from a repository; ``content`` is base64 encoded."""

    content: str
    status_code: int


def _int_header(response: requests.Response, name: str) -> int:
    try:
        return int(response.headers.get(name, ""))
    except ValueError:
        return 0


class GitlabClient:
    """Minimal client for the repository tree and files API."""

    def __init__(
        self,
        token: str = "",
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.session = session if session is not None else requests.Session()
        if token:
            self.session.headers["PRIVATE-TOKEN"] = token
        base = base_url.rstrip("/")
        if not base.endswith("/api/v4"):
            base += "/api/v4"
        self.api_url = base

    def _project_url(self, project_id: str) -> str:
        return f"{self.api_url}/projects/{quote(str(project_id), safe='')}"

    def list_tree(
        self,
        project_id: str,
        path: str = "",
        ref: str = "",
        page: int = 0,
        per_page: int = DEFAULT_MAX_ITEMS_PER_PAGE,
    ) -> TreePage:
        """Return one page of the tree under ``path``."""
        params: dict[str, object] = {"per_page": per_page}
        if path:
            params["path"] = path
        if ref:
            params["ref"] = ref
        if page > 0:
            params["page"] = page
        response = self.session.get(
            f"{self._project_url(project_id)}/repository/tree", params=params
        )
        response.raise_for_status()
        nodes = response.json() if response.content else []
        return TreePage(
            nodes=nodes,
            status_code=response.status_code,
            current_page=_int_header(response, "X-Page"),
            total_pages=_int_header(response, "X-Total-Pages"),
            next_page=_int_header(response, "X-Next-Page"),
        )

    def get_file(self, project_id: str, file_path: str, ref: str = "") -> RepositoryFile:
        """Fetch ``file_path`` at ``ref``."""
        response = self.session.get(
            f"{self._project_url(project_id)}/repository/files/{quote(file_path, safe='')}",
            params={"ref": ref} if ref else None,
        )
        response.raise_for_status()
        data = response.json() if response.content else {}
        return RepositoryFile(content=data.get("content", ""), status_code=response.status_code)


@dataclass(eq=False)
class Gitlab(Driver):
    """Driver serving migrations from a GitLab project directory."""

    client: Optional[GitlabClient] = None
    url: str = ""
    project_id: str = ""
    path: str = ""
    ref: str = ""
    per_page: int = DEFAULT_MAX_ITEMS_PER_PAGE
    migrations: Migrations = field(default_factory=Migrations, repr=False)

    def open(self, url: str) -> "Gitlab":
        parts = urlsplit(url)
        _, at, host = parts.netloc.rpartition("@")
        if not at:
            raise NoUserInfoError()
        if parts.password is None:
            raise NoAccessTokenError()

        token = unquote(parts.password)
        client = GitlabClient(token=token, base_url=f"https://{host}" if host else DEFAULT_BASE_URL)

        segments = unquote(parts.path).strip("/").split("/")
        if not segments[0]:
            raise InvalidProjectIDError()
        driver = Gitlab(
            client=client,
            url=url,
            project_id=segments[0],
            path="/".join(segments[1:]),
            ref=parts.fragment,
        )
        driver._read_directory()
        return driver

    def _read_directory(self) -> None:
        nodes: list = []
        page = 0
        while True:
            result = self.client.list_tree(
                self.project_id, self.path, self.ref, page, self.per_page
            )
            if result.status_code != 200:
                raise InvalidResponseError()
            nodes.extend(result.nodes)
            if result.current_page >= result.total_pages:
                break
            page = result.next_page

        for node in nodes:
            name = node.get("name", "")
            try:
                m = self._node_to_migration(name)
            except ParseError:
                continue
            if not self.migrations.append(m):
                raise ValueError(f"unable to parse file {name}")

    def _node_to_migration(self, name: str) -> Migration:
        return dataclasses.replace(parse(name), raw=f"{self.path}/{name}")

    def _not_exist(self, op: str) -> FileNotFoundError:
        return FileNotFoundError(errno.ENOENT, f"{op}: file does not exist", self.path)

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

    def _read(self, m: Optional[Migration], version: int) -> tuple[BinaryIO, str]:
        if m is None:
            raise self._not_exist(f"read version {version}")
        result = self.client.get_file(self.project_id, m.raw, self.ref)
        if result.status_code != 200:
            raise InvalidResponseError()
        try:
            content = base64.b64decode(result.content, validate=True)
        except binascii.Error as err:
            raise ValueError(f"invalid base64 content for {m.raw}: {err}") from err
        return io.BytesIO(content), m.identifier

    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        return self._read(self.migrations.up(version), version)

    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        return self._read(self.migrations.down(version), version)


def with_instance(client: GitlabClient, config: Optional[GitlabConfig] = None) -> Gitlab:
    """Return a driver using an existing client."""
    driver = Gitlab(client=client)
    driver._read_directory()
    return driver


register("gitlab", Gitlab())