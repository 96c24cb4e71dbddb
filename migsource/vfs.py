"""Source driver reading migrations from an in-memory virtual file system."""

from __future__ import annotations

import errno
import io
import posixpath
from dataclasses import dataclass
from typing import Any, Mapping, Union

from migsource.driver import Driver, register
from migsource.httpfs import PartialDriver


def _normalize(name: str) -> str:
    return posixpath.normpath("/" + name).lstrip("/")


@dataclass(frozen=True)
class _MapEntry:
    name: str
    directory: bool

    def is_dir(self) -> bool:
        return self.directory


class _MapDirectory:
    """An opened directory of a MapFileSystem."""

    def __init__(self, entries: list[_MapEntry]) -> None:
        self._entries = entries
        self.closed = False

    def readdir(self) -> list[_MapEntry]:
        if self.closed:
            raise ValueError("readdir on a closed directory")
        return list(self._entries)

    def close(self) -> None:
        self.closed = True


class MapFileSystem:
    """Virtual file system built from a mapping of slash-separated paths to contents.

    Directories are implied by the paths of the files they contain; the
    root always exists.
    """

    def __init__(self, files: Mapping[str, Union[str, bytes]]) -> None:
        self._files = {_normalize(path): content for path, content in files.items()}

    def open(self, name: str) -> Any:
        """Open ``name``: a binary file, or a directory handle."""
        key = _normalize(name)
        if key in self._files:
            content = self._files[key]
            return io.BytesIO(content.encode() if isinstance(content, str) else content)

        prefix = f"{key}/" if key else ""
        children: dict[str, bool] = {}
        for path in self._files:
            if not path.startswith(prefix):
                continue
            head, sep, _ = path[len(prefix):].partition("/")
            children[head] = children.get(head, False) or bool(sep)
        if key and not children:
            raise FileNotFoundError(errno.ENOENT, "file does not exist", name)
        return _MapDirectory([_MapEntry(n, d) for n, d in sorted(children.items())])


@dataclass(eq=False)
class VFS(PartialDriver):
    """Driver returning migrations from a virtual file system."""

    fs: Any = None
    path: str = ""

    def open(self, url: str) -> Driver:
        raise RuntimeError("VFS sources cannot be opened from a URL; use with_instance")


def with_instance(fs: Any, search_path: str = "") -> VFS:
    """Return a driver reading migrations from ``search_path`` of ``fs`` (default ``/``)."""
    path = search_path or "/"
    driver = VFS(fs=fs, path=path)
    driver.load(fs, path)
    return driver


register("godoc-vfs", VFS())