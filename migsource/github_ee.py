"""Source driver reading migrations from a GitHub Enterprise repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import parse_qs, unquote, urlsplit

import requests

from migsource.driver import Driver, register
from migsource.github import (
    GithubClient,
    GithubConfig,
    InvalidRepoError,
    NoUserInfoError,
    with_instance,
)

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(val: str, fallback: bool) -> bool:
    """Parse a boolean spelled like ``true``/``F``/``1``; else return ``fallback``."""
    if val in _TRUE:
        return True
    if val in _FALSE:
        return False
    return fallback


def _delegate(name: str) -> Callable[..., Any]:
    def method(self: "GithubEE", *args: Any) -> Any:
        return getattr(self._inner(), name)(*args)

    method.__name__ = name
    method.__doc__ = f"Forward ``{name}`` to the wrapped GitHub driver."
    return method


@dataclass(eq=False)
class GithubEE(Driver):
    """Driver for GitHub Enterprise, delegating to a GitHub driver."""

    driver: Optional[Driver] = None

    def open(self, url: str) -> "GithubEE":
        parts = urlsplit(url)
        option = parse_qs(parts.query).get("verify-tls", [""])[0]
        verify_tls = parse_bool(option, True) if option else True

        _, at, host = parts.netloc.rpartition("@")
        if not at or parts.password is None:
            raise NoUserInfoError()

        session = requests.Session()
        session.auth = (unquote(parts.username or ""), unquote(parts.password))
        session.verify = verify_tls
        client = GithubClient(base_url=f"https://{host}/api/v3", session=session)

        owner, _, rest = unquote(parts.path).strip("/").partition("/")
        repo, _, sub_path = rest.partition("/")
        if not owner or not repo:
            raise InvalidRepoError()
        config = GithubConfig(owner=owner, repo=repo, path=sub_path, ref=parts.fragment)
        return GithubEE(driver=with_instance(client, config))

    def _inner(self) -> Driver:
        if self.driver is None:
            raise RuntimeError("github-ee driver has not been opened")
        return self.driver

    def close(self) -> None:
        if self.driver is not None:
            self.driver.close()

    first = _delegate("first")
    prev = _delegate("prev")
    next = _delegate("next")
    read_up = _delegate("read_up")
    read_down = _delegate("read_down")


register("github-ee", GithubEE())