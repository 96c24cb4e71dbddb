"""Migration records, their ordered index and file-name parsing."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

_MAX_VERSION = 2**64 - 1


class Direction(str, Enum):
    """Direction of a migration."""

    DOWN = "down"
    UP = "up"


@dataclass(frozen=True)
class Migration:
    """A single migration file as found in a source."""

    version: int
    direction: Direction = Direction.UP
    identifier: str = ""
    raw: str = ""


class ParseError(ValueError):
    """Raised when a file name does not describe a migration."""

    def __init__(self, message: str = "no match") -> None:
        super().__init__(message)


class DuplicateMigrationError(Exception):
    """Raised when two files describe the same version and direction."""

    def __init__(self, migration: Migration, file_name: str) -> None:
        self.migration = migration
        self.file_name = file_name
        super().__init__(f"duplicate migration file: {file_name}")


class Migrations:
    """Migrations grouped by version, with versions kept in ascending order."""

    def __init__(self) -> None:
        self._index: list[int] = []
        self._migrations: dict[int, dict[Direction, Migration]] = {}

    def __len__(self) -> int:
        return len(self._index)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._index))

    def append(self, m: Optional[Migration]) -> bool:
        """Add a migration; return False for ``None`` or a duplicate."""
        if m is None:
            return False
        by_direction = self._migrations.get(m.version)
        if by_direction is None:
            by_direction = self._migrations[m.version] = {}
            bisect.insort(self._index, m.version)
        if m.direction in by_direction:
            return False
        by_direction[m.direction] = m
        return True

    def first(self) -> Optional[int]:
        """Return the lowest version, or None when empty."""
        return self._index[0] if self._index else None

    def prev(self, version: int) -> Optional[int]:
        """Return the version before ``version``, or None."""
        pos = self._find_pos(version)
        if pos >= 1:
            return self._index[pos - 1]
        return None

    def next(self, version: int) -> Optional[int]:
        """Return the version after ``version``, or None."""
        pos = self._find_pos(version)
        if pos >= 0 and pos + 1 < len(self._index):
            return self._index[pos + 1]
        return None

    def up(self, version: int) -> Optional[Migration]:
        """Return the up migration for ``version``, or None."""
        return self._migrations.get(version, {}).get(Direction.UP)

    def down(self, version: int) -> Optional[Migration]:
        """Return the down migration for ``version``, or None."""
        return self._migrations.get(version, {}).get(Direction.DOWN)

    def _find_pos(self, version: int) -> int:
        ix = bisect.bisect_left(self._index, version)
        if ix < len(self._index) and self._index[ix] == version:
            return ix
        return -1


REGEX = re.compile(
    r"([0-9]+)_(.*)\.(" + Direction.DOWN.value + "|" + Direction.UP.value + r")\.(.*)"
)


def parse(raw: str) -> Migration:
    """Parse a name such as ``123_name.up.sql`` into a Migration."""
    match = REGEX.fullmatch(raw)
    if match is None:
        raise ParseError()
    version = int(match.group(1))
    if version > _MAX_VERSION:
        raise ParseError(f"version {match.group(1)} out of range")
    return Migration(
        version=version,
        identifier=match.group(2),
        direction=Direction(match.group(3)),
        raw=raw,
    )