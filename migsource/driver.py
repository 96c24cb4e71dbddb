"""The source driver interface and the global driver registry."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import BinaryIO
from urllib.parse import urlsplit


class Driver(ABC):
    """Interface every migration source driver implements.

    ``first``, ``prev`` and ``next`` raise FileNotFoundError when there is no
    such version; ``read_up`` and ``read_down`` raise FileNotFoundError when
    the version has no migration in that direction.
    """

    @abstractmethod
    def open(self, url: str) -> "Driver":
        """Return a new driver configured from ``url``."""

    def close(self) -> None:
        """Release resources held by the driver."""

    @abstractmethod
    def first(self) -> int:
        """Return the first available version."""

    @abstractmethod
    def prev(self, version: int) -> int:
        """Return the version before ``version``."""

    @abstractmethod
    def next(self, version: int) -> int:
        """Return the version after ``version``."""

    @abstractmethod
    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        """Return the up migration body and its identifier."""

    @abstractmethod
    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        """Return the down migration body and its identifier."""

    def __enter__(self) -> "Driver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


_drivers_lock = threading.Lock()
_drivers: dict[str, Driver] = {}


def open_source(url: str) -> Driver:
    """Open a driver chosen by the scheme of ``url``."""
    scheme = urlsplit(url).scheme
    if not scheme:
        raise ValueError("source driver: invalid URL scheme")
    with _drivers_lock:
        driver = _drivers.get(scheme)
    if driver is None:
        raise ValueError(f"source driver: unknown driver '{scheme}' (forgotten import?)")
    return driver.open(url)


def register(name: str, driver: Driver) -> None:
    """Register ``driver`` under ``name``; each name may be used once."""
    if driver is None:
        raise ValueError("Register driver is nil")
    with _drivers_lock:
        if name in _drivers:
            raise ValueError(f"Register called twice for driver {name}")
        _drivers[name] = driver


def list_drivers() -> list[str]:
    """Return the names of the registered drivers, sorted."""
    with _drivers_lock:
        return sorted(_drivers)