"""Small helpers shared across the package."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


class MultiError(Exception):
    """An error that holds several errors, ignoring ``None`` entries."""

    def __init__(self, *args: BaseException | None) -> None:
        self.errs: list[BaseException] = [e for e in args if e is not None]
        super().__init__(*self.errs)

    def __str__(self) -> str:
        return " and ".join(msg for msg in map(str, self.errs) if msg)


def suint(n: int) -> int:
    """Return ``n`` unchanged, refusing negative values."""
    if n < 0:
        raise ValueError(f"suint({n}) expects input >= 0")
    return n


def filter_custom_query(url: str) -> str:
    """Return ``url`` with every query parameter starting with ``x-`` removed.

    The remaining parameters are re-encoded with their keys in sorted order.
    """
    parts = urlsplit(url)
    grouped: dict[str, list[str]] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if not key.startswith("x-"):
            grouped.setdefault(key, []).append(value)
    query = urlencode([(key, value) for key in sorted(grouped) for value in grouped[key]])
    return urlunsplit(parts._replace(query=query))