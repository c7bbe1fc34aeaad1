"""Exception types raised by the tile renderer."""

from __future__ import annotations


class MapTileError(Exception):
    """Base class for maptile failures."""


class InvalidExtent(MapTileError, ValueError):
    """Raised when a frame is requested for an unusable extent."""


class UnsupportedProjection(MapTileError, ValueError):
    """Raised for projections other than Web Mercator and geographic."""


class GeometryParseError(MapTileError, ValueError):
    """Raised when well-known text cannot be parsed into a geometry."""
