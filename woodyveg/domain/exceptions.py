"""
Structural errors that abort a workflow run.

Per-record data problems (missing measurements, unresolved reference
points) are never raised; they are filtered out and counted.
"""
from typing import Iterable


class WoodyVegError(Exception):
    """Base class for fatal workflow errors."""
    pass


class MissingColumnsError(WoodyVegError):
    """The survey table lacks columns the workflow needs."""

    def __init__(self, missing: Iterable[str], source: str = "survey table"):
        self.missing = sorted(missing)
        self.source = source
        super().__init__(
            f"{source} is missing required columns: {', '.join(self.missing)}"
        )


class CRSMismatchError(WoodyVegError):
    """Points and extent are in different coordinate reference systems."""

    def __init__(self, points_crs: str, extent_crs: str):
        self.points_crs = points_crs
        self.extent_crs = extent_crs
        super().__init__(
            f"CRS mismatch: points are in '{points_crs}' but the extent is in '{extent_crs}'"
        )


class InvalidCRSError(WoodyVegError, ValueError):
    """A coordinate reference system is absent or cannot be parsed."""
    pass
