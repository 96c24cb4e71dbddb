"""An in-memory source driver, and the lookups shared by index-backed drivers."""

from __future__ import annotations

import errno
import io
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, TypeVar

from migsource.driver import Driver, register
from migsource.migration import Direction, Migration, Migrations

_T = TypeVar("_T")


class _IndexedDriver(Driver):
    """Driver answering every lookup from a Migrations index.

    Subclasses hold ``migrations`` and supply ``open`` and ``_body``.
    """

    migrations: Migrations
    _location_field = "url"
    _read_op = "read {direction} version {version}"

    def _found(self, value: Optional[_T], op: str) -> _T:
        if value is None:
            location = getattr(self, self._location_field)
            raise FileNotFoundError(errno.ENOENT, f"{op}: file does not exist", location)
        return value

    @abstractmethod
    def _body(self, m: Migration, direction: Direction, op: str) -> tuple[BinaryIO, str]:
        """Return the body and identifier of a migration that was found."""

    def _read(self, direction: Direction, version: int) -> tuple[BinaryIO, str]:
        op = self._read_op.format(direction=direction.value, version=version)
        lookup = self.migrations.up if direction is Direction.UP else self.migrations.down
        return self._body(self._found(lookup(version), op), direction, op)

    def close(self) -> None:
        """Nothing to release: the migrations live in memory."""

    def first(self) -> int:
        return self._found(self.migrations.first(), "first")

    def prev(self, version: int) -> int:
        return self._found(self.migrations.prev(version), f"prev for version {version}")

    def next(self, version: int) -> int:
        return self._found(self.migrations.next(version), f"next for version {version}")

    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        return self._read(Direction.UP, version)

    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        return self._read(Direction.DOWN, version)


@dataclass
class StubConfig:
    """Configuration for the stub driver (it has no options)."""


class Stub(_IndexedDriver):
    """Driver serving migrations held in a Migrations collection.

    The body of each migration is its identifier.
    """

    def __init__(
        self,
        url: str = "",
        instance: Any = None,
        migrations: Optional[Migrations] = None,
        config: Optional[StubConfig] = None,
    ) -> None:
        self.url = url
        self.instance = instance
        self.migrations = migrations if migrations is not None else Migrations()
        self.config = config

    def open(self, url: str) -> "Stub":
        return Stub(url=url, migrations=Migrations(), config=StubConfig())

    def close(self) -> None:
        """Nothing to release: the migrations live in memory."""
        super().close()

    def first(self) -> int:
        """Return the lowest version; FileNotFoundError if there is none."""
        return super().first()

    def prev(self, version: int) -> int:
        """Return the version before ``version``; FileNotFoundError if none."""
        return super().prev(version)

    def next(self, version: int) -> int:
        """Return the version after ``version``; FileNotFoundError if none."""
        return super().next(version)

    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        """Return the up body and its identifier for ``version``."""
        return super().read_up(version)

    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        """Return the down body and its identifier for ``version``."""
        return super().read_down(version)

    def _body(self, m: Migration, direction: Direction, op: str) -> tuple[BinaryIO, str]:
        return io.BytesIO(m.identifier.encode()), f"{m.version}.{direction.value}.stub"


def with_instance(instance: Any, config: Optional[StubConfig]) -> Stub:
    """Return a stub driver wrapping ``instance`` with empty migrations."""
    return Stub(instance=instance, migrations=Migrations(), config=config)


register("stub", Stub())