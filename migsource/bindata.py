"""Source driver serving migrations from named in-memory assets."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Iterable, Optional

from migsource.driver import Driver, register
from migsource.migration import Direction, Migration, Migrations, ParseError, parse
from migsource.stub import _IndexedDriver

AssetFunc = Callable[[str], bytes]


@dataclass
class AssetSource:
    """Asset names together with the function that returns an asset's bytes."""

    names: list[str]
    asset_func: AssetFunc


def resource(names: Iterable[str], asset_func: AssetFunc) -> AssetSource:
    """Bundle asset names and their loader into an AssetSource."""
    return AssetSource(names=list(names), asset_func=asset_func)


@dataclass(eq=False)
class Bindata(_IndexedDriver):
    """Driver reading migration bodies through an AssetSource."""

    asset_source: Optional[AssetSource] = None
    path: str = "<go-bindata>"
    migrations: Migrations = field(default_factory=Migrations)

    _location_field = "path"
    _read_op = "read version {version}"

    def open(self, url: str) -> Driver:
        raise RuntimeError("bindata sources cannot be opened from a URL; use with_instance")

    def close(self) -> None:
        """Nothing to release: the assets live in memory."""
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
        source = self._found(self.asset_source, op)
        return io.BytesIO(source.asset_func(m.raw)), m.identifier


def with_instance(instance: Any) -> Bindata:
    """Return a driver over the migrations named in an AssetSource."""
    if not isinstance(instance, AssetSource):
        raise TypeError("expects AssetSource")

    driver = Bindata(asset_source=instance)
    for name in instance.names:
        try:
            m = parse(name)
        except ParseError:
            continue
        if not driver.migrations.append(m):
            raise ValueError(f"unable to parse file {name}")
    return driver


register("go-bindata", Bindata())