"""Source driver reading migrations through a file system with an ``open`` method.

The file system's ``open(name)`` takes a slash-separated name and returns
either a readable binary file or, for a directory, an object whose
``readdir()`` lists entries having ``name`` and ``is_dir()``. Both results
must have ``close()``.
"""

from __future__ import annotations

import contextlib
import errno
import os
import posixpath
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Optional, TypeVar, Union

from migsource.driver import Driver
from migsource.migration import (
    DuplicateMigrationError,
    Migration,
    Migrations,
    ParseError,
    parse,
)

_T = TypeVar("_T")


class _Directory:
    """An opened directory of a DirFileSystem, listing its entries once."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._scan = os.scandir(path)

    def readdir(self) -> list[os.DirEntry]:
        return list(self._scan)

    def close(self) -> None:
        self._scan.close()


class DirFileSystem:
    """File system rooted at a local directory; names cannot escape the root."""

    def __init__(self, root: Union[str, os.PathLike] = "") -> None:
        self.root = os.fspath(root) or "."

    def open(self, name: str) -> Any:
        """Open ``name``: a binary file, or a directory handle."""
        relative = posixpath.normpath("/" + name).lstrip("/")
        full = os.path.join(self.root, *relative.split("/")) if relative else self.root
        if os.path.isdir(full):
            return _Directory(full)
        return open(full, "rb")


@dataclass(eq=False)
class PartialDriver(Driver):
    """Implements every driver method except ``open`` on top of a file system."""

    _fs: Any = field(default=None, init=False, repr=False)
    _path: str = field(default="", init=False)
    _migrations: Migrations = field(default_factory=Migrations, init=False, repr=False)

    def load(self, fs: Any, path: str) -> None:
        """Index the migrations found in directory ``path`` of ``fs``."""
        with contextlib.closing(fs.open(path)) as root:
            readdir = getattr(root, "readdir", None)
            if readdir is None:
                raise NotADirectoryError(errno.ENOTDIR, "not a directory", path)
            entries = sorted(readdir(), key=lambda e: e.name)

        migrations = Migrations()
        for entry in entries:
            if entry.is_dir():
                continue
            try:
                m = parse(entry.name)
            except ParseError:
                continue
            if not migrations.append(m):
                raise DuplicateMigrationError(m, entry.name)

        self._fs = fs
        self._path = path
        self._migrations = migrations

    def close(self) -> None:
        """Nothing to release: files are opened per read."""

    def _found(self, value: Optional[_T], op: str) -> _T:
        if value is None:
            raise FileNotFoundError(errno.ENOENT, f"{op}: file does not exist", self._path)
        return value

    def _read(self, m: Optional[Migration], op: str) -> tuple[BinaryIO, str]:
        found = self._found(m, op)
        return self._open_file(posixpath.join(self._path, found.raw)), found.identifier

    def first(self) -> int:
        return self._found(self._migrations.first(), "first")

    def prev(self, version: int) -> int:
        return self._found(self._migrations.prev(version), f"prev for version {version}")

    def next(self, version: int) -> int:
        return self._found(self._migrations.next(version), f"next for version {version}")

    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        return self._read(self._migrations.up(version), f"read up for version {version}")

    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        return self._read(self._migrations.down(version), f"read down for version {version}")

    def _open_file(self, path: str) -> BinaryIO:
        path = posixpath.normpath(path)
        try:
            return self._fs.open(path)
        except OSError:
            raise
        except Exception as err:
            raise OSError(f"open {path}: {err}") from err


class HttpFSDriver(PartialDriver):
    """Pass-through driver over a file system given at construction."""

    def open(self, url: str) -> Driver:
        raise RuntimeError("open() cannot be called on the httpfs passthrough driver")


def new(fs: Any, path: str) -> HttpFSDriver:
    """Return a driver reading migrations from directory ``path`` of ``fs``."""
    driver = HttpFSDriver()
    driver.load(fs, path)
    return driver