"""Source drivers that locate, order and read versioned migration files."""

__version__ = "0.1.0"

__all__ = [
    "bindata",
    "driver",
    "github",
    "github_ee",
    "gitlab",
    "httpfs",
    "migration",
    "stub",
    "util",
    "vfs",
]