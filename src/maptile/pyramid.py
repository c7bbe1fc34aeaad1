"""Slippy-map tile pyramid math.

Zoom level ``z`` divides the Web Mercator world into a ``2**z`` by ``2**z``
grid with tile (0, 0) in the north-west corner. All functions here are pure.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from shapely import wkt as shapely_wkt
from shapely.errors import ShapelyError
from shapely.geometry import Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep

from .errors import GeometryParseError


MAX_LATITUDE = 85.05112878

_LOGGER = logging.getLogger("maptile.pyramid")


def parse_geometry(value: Any) -> BaseGeometry:
    """Return a shapely geometry for a geometry or a WKT string."""
    if isinstance(value, BaseGeometry):
        return value
    if not isinstance(value, str):
        raise GeometryParseError(f"Expected geometry or WKT string, got {type(value).__name__}")
    try:
        return shapely_wkt.loads(value)
    except (ShapelyError, ValueError) as exc:
        raise GeometryParseError(f"Invalid WKT: {value[:80]!r}") from exc


def is_valid_tile(x: int, y: int, z: int) -> bool:
    if z < 0:
        return False
    n = 1 << z
    return 0 <= x < n and 0 <= y < n


def tile_north_lat(y: int, z: int) -> float:
    n = math.pi - (2.0 * math.pi * y) / math.pow(2.0, z)
    return math.degrees(math.atan(math.sinh(n)))


def tile_south_lat(y: int, z: int) -> float:
    return tile_north_lat(y + 1, z)


def tile_west_lon(x: int, z: int) -> float:
    return x / math.pow(2.0, z) * 360.0 - 180.0


def tile_east_lon(x: int, z: int) -> float:
    return tile_west_lon(x + 1, z)


def tile_bounds(x: int, y: int, z: int) -> tuple[float, float, float, float]:
    """Return ``(north, south, east, west)`` of a tile in degrees."""
    return (tile_north_lat(y, z), tile_south_lat(y, z), tile_east_lon(x, z), tile_west_lon(x, z))


def tile_boundary_polygon(x: int, y: int, z: int) -> Polygon:
    """Return the tile outline as a lon/lat polygon (SW, SE, NE, NW, SW)."""
    north, south, east, west = tile_bounds(x, y, z)
    return Polygon(
        [
            (west, south),
            (east, south),
            (east, north),
            (west, north),
            (west, south),
        ]
    )


def lat_lon_to_tile(lat: float, lon: float, zoom: int) -> tuple[int, int]:
    """Return the ``(x, y)`` index of the tile containing a point.

    Latitude is clipped to the Web Mercator limit, since tiles cannot
    represent the poles. Indices are truncated toward zero and kept on the grid.
    """
    latitude = _clip(lat, -MAX_LATITUDE, MAX_LATITUDE)
    longitude = _clip(lon, -180.0, 180.0)
    n = 1 << zoom
    lat_rad = latitude * math.pi / 180.0

    x = (longitude + 180.0) / 360.0 * n
    y = (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * n

    tile_x = min(max(math.trunc(x), 0), n - 1)
    tile_y = min(max(math.trunc(y), 0), n - 1)
    return (tile_x, tile_y)


def retile(x: int, y: int, from_zoom: int, to_zoom: int) -> tuple[int, int]:
    """Map a tile index to another zoom level.

    Zooming out yields the containing ancestor; zooming in yields the
    north-west-most descendant.
    """
    if to_zoom == from_zoom:
        return (x, y)
    if to_zoom < from_zoom:
        factor = 1 << (from_zoom - to_zoom)
        return (x // factor, y // factor)
    factor = 1 << (to_zoom - from_zoom)
    return (x * factor, y * factor)


def tile_extents(geometry: Any, zoom: int) -> tuple[int, int, int, int]:
    """Return the inclusive candidate tile rectangle ``(min_x, min_y, max_x, max_y)``.

    The south-east corner is padded by one tile so edge-touching tiles are
    considered, then clamped to the grid. The north-west corner is not
    padded: a geometry lying exactly on a tile's west or north edge does not
    pull in the neighbour sharing that edge.
    """
    geom = parse_geometry(geometry)
    min_lon, min_lat, max_lon, max_lat = geom.bounds
    ul_x, ul_y = lat_lon_to_tile(max_lat, min_lon, zoom)
    lr_x, lr_y = lat_lon_to_tile(min_lat, max_lon, zoom)
    last = (1 << zoom) - 1
    return (ul_x, ul_y, min(lr_x + 1, last), min(lr_y + 1, last))


def tiles_covering(geometry: Any, zoom: int) -> set[tuple[int, int]]:
    """Return every ``(x, y)`` tile at ``zoom`` that intersects the geometry.

    Only tiles inside ``tile_extents`` are tested, so a neighbour that merely
    touches the geometry along its east or south edge is left out. For
    example ``LINESTRING(0 10, 0 20)`` at zoom 1 yields only ``(1, 0)``.
    """
    geom = parse_geometry(geometry)
    if geom.is_empty:
        return set()
    if isinstance(geom, Point):
        return {lat_lon_to_tile(geom.y, geom.x, zoom)}

    min_x, min_y, max_x, max_y = tile_extents(geom, zoom)
    _LOGGER.debug(
        "Testing %d candidate tiles at z=%d",
        (max_x - min_x + 1) * (max_y - min_y + 1),
        zoom,
    )
    prepared = prep(geom)
    tiles: set[tuple[int, int]] = set()
    for y in range(min_y, max_y + 1):
        for x in range(min_x, max_x + 1):
            if prepared.intersects(tile_boundary_polygon(x, y, zoom)):
                tiles.add((x, y))
    return tiles


def _clip(value: float, min_value: float, max_value: float) -> float:
    return min(max(value, min_value), max_value)
