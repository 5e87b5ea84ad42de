"""Library-wide information."""

from __future__ import annotations

__all__ = ["version"]

_VERSION = "1.3.1"


def version() -> str:
    """Return the library version string."""
    return _VERSION