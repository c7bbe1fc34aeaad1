"""Spherical Web Mercator math and frame-local pixel mapping.

EPSG:3857 is computed in closed form on a sphere of radius ``EARTH_RADIUS``
rather than through a pyproj ``Transformer``. The formulas are exact for the
pseudo-Mercator definition, and the test suite cross-checks them against
pyproj to within a millimetre.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any

from .errors import UnsupportedProjection


EARTH_RADIUS = 6378137.0
ORIGIN_SHIFT = math.pi * EARTH_RADIUS  # 20037508.34...

_EQUALITY_TOLERANCE = 0.000001


class Projection(enum.IntEnum):
    """Coordinate reference systems a frame can be rendered in."""

    WEB_MERCATOR = 3857
    GEOGRAPHIC = 4326

    @classmethod
    def parse(cls, value: Any) -> Projection:
        """Resolve an enum member, EPSG code or name into a projection."""
        if isinstance(value, Projection):
            return value
        if isinstance(value, bool):
            raise UnsupportedProjection(f"Unsupported projection: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError as exc:
                raise UnsupportedProjection(f"Unsupported projection: EPSG:{value}") from exc
        if isinstance(value, str):
            key = value.strip().casefold()
            if key.startswith("epsg:"):
                key = key[5:]
            if key.isdigit():
                return cls.parse(int(key))
            aliases = {
                "web_mercator": cls.WEB_MERCATOR,
                "webmercator": cls.WEB_MERCATOR,
                "mercator": cls.WEB_MERCATOR,
                "geographic": cls.GEOGRAPHIC,
                "wgs84": cls.GEOGRAPHIC,
                "latlon": cls.GEOGRAPHIC,
            }
            if key in aliases:
                return aliases[key]
        raise UnsupportedProjection(f"Unsupported projection: {value!r}")


def meters_to_lat(y: float) -> float:
    """Convert a Web Mercator y coordinate in meters to latitude in degrees."""
    lat = (y / ORIGIN_SHIFT) * 180.0
    return 180.0 / math.pi * (2.0 * math.atan(math.exp(lat * math.pi / 180.0)) - math.pi / 2.0)


def meters_to_lon(x: float) -> float:
    """Convert a Web Mercator x coordinate in meters to longitude in degrees."""
    return (x / ORIGIN_SHIFT) * 180.0


def lon_to_meters_x(lon: float) -> float:
    """Convert longitude in degrees to a Web Mercator x coordinate in meters."""
    return lon * ORIGIN_SHIFT / 180.0


def lat_to_meters_y(lat: float) -> float:
    """Convert latitude in degrees to a Web Mercator y coordinate in meters.

    The poles map to +/- infinity; callers that need finite values must clip
    latitudes first.
    """
    if lat >= 90.0:
        return math.inf
    if lat <= -90.0:
        return -math.inf
    y = math.log(math.tan((90.0 + lat) * math.pi / 360.0)) / (math.pi / 180.0)
    return y * ORIGIN_SHIFT / 180.0


def lat_lon_to_meters(lat: float, lon: float) -> tuple[float, float]:
    return (lon_to_meters_x(lon), lat_to_meters_y(lat))


def is_equal(a: float, b: float) -> bool:
    """True when two coordinates agree to six decimal places."""
    return abs(a - b) < _EQUALITY_TOLERANCE


@dataclass(frozen=True, slots=True)
class PixelTransform:
    """Affine mapping between a frame's projected space and its pixels.

    ``origin_x``/``origin_y`` are the projected coordinates of pixel (0, 0),
    the north-west corner. Pixel x grows eastward and pixel y grows southward.
    """

    projection: Projection
    origin_x: float
    origin_y: float
    res_x: float
    res_y: float

    def x(self, value: float) -> float:
        return (value - self.origin_x) * self.res_x

    def y(self, value: float) -> float:
        return (self.origin_y - value) * self.res_y

    def to_pixel(self, lat: float, lon: float) -> tuple[float, float]:
        if self.projection is Projection.WEB_MERCATOR:
            return (self.x(lon_to_meters_x(lon)), self.y(lat_to_meters_y(lat)))
        return (self.x(lon), self.y(lat))

    def lon(self, px: float) -> float:
        value = self.origin_x + px / self.res_x
        if self.projection is Projection.WEB_MERCATOR:
            return meters_to_lon(value)
        return value

    def lat(self, py: float) -> float:
        value = self.origin_y - py / self.res_y
        if self.projection is Projection.WEB_MERCATOR:
            return meters_to_lat(value)
        return value

    def to_geo(self, px: float, py: float) -> tuple[float, float]:
        """Return ``(lat, lon)`` for a pixel position."""
        return (self.lat(py), self.lon(px))
