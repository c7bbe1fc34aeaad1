"""Raster tile frames: an extent, a projection and an RGBA buffer to draw on."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Sequence

from PIL import Image
from shapely.geometry.base import BaseGeometry

from .errors import InvalidExtent
from .labels import LabelBox, LabelPlacer, LabelRequest, order_labels
from .projection import (
    PixelTransform,
    Projection,
    lon_to_meters_x,
    lat_to_meters_y,
    meters_to_lat,
    meters_to_lon,
)
from .pyramid import parse_geometry, tile_bounds
from .raster import RGBA, TRANSPARENT, Rasterizer, StrokeStyle, round_half_away
from .style import MapStyle


_LOGGER = logging.getLogger("maptile.frame")

LonLat = tuple[float, float]


class TileFrame:
    """A rectangular map tile rendered into an RGBA buffer.

    Frames are built from a bounding box in projected units (meters for Web
    Mercator, degrees for geographic) or from a slippy-map tile index via
    ``from_tile``. Drawing methods take latitude/longitude in degrees and
    mutate the buffer in place. A frame is not safe for concurrent use; build
    one frame per worker instead.
    """

    def __init__(
        self,
        min_x: float,
        min_y: float,
        max_x: float,
        max_y: float,
        width: int,
        height: int,
        projection: Projection | int | str = Projection.WEB_MERCATOR,
    ) -> None:
        projection = Projection.parse(projection)
        _validate_size(width, height)
        if not all(math.isfinite(value) for value in (min_x, min_y, max_x, max_y)):
            raise InvalidExtent(f"Extent must be finite: {(min_x, min_y, max_x, max_y)}")
        if min_x > max_x or min_y > max_y:
            raise InvalidExtent(f"Inverted extent: {(min_x, min_y, max_x, max_y)}")

        if projection is Projection.WEB_MERCATOR:
            north = meters_to_lat(max_y)
            south = meters_to_lat(min_y)
            east = meters_to_lon(max_x)
            west = meters_to_lon(min_x)
        else:
            north, south, east, west = max_y, min_y, max_x, min_x
        if not _valid_bounds(west, south, east, north):
            raise InvalidExtent(
                f"Bounds outside [-180, 180] x [-90, 90]: west={west} south={south} east={east} north={north}"
            )
        if max_x - min_x <= 0 or max_y - min_y <= 0:
            raise InvalidExtent(f"Extent has zero width or height: {(min_x, min_y, max_x, max_y)}")

        self._projection = projection
        self._north = north
        self._south = south
        self._east = east
        self._west = west
        self._transform = PixelTransform(
            projection=projection,
            origin_x=min_x,
            origin_y=max_y,
            res_x=width / (max_x - min_x),
            res_y=height / (max_y - min_y),
        )
        self._wkt = _boundary_wkt(north=north, south=south, east=east, west=west)
        self._geometry: BaseGeometry | None = None

        self._image = Image.new("RGBA", (width, height), TRANSPARENT)
        self._raster = Rasterizer(self._image)
        self._labels = LabelPlacer(self._raster)
        _LOGGER.debug(
            "Created %dx%d frame (EPSG:%d) N=%.6f S=%.6f E=%.6f W=%.6f",
            width,
            height,
            int(projection),
            north,
            south,
            east,
            west,
        )

    @classmethod
    def from_tile(
        cls,
        x: int,
        y: int,
        z: int,
        size: int = 256,
        projection: Projection | int | str = Projection.WEB_MERCATOR,
    ) -> TileFrame:
        """Build a square frame covering slippy-map tile ``z/x/y``.

        A geographic frame keeps the tile's degree bounds as its extent, so
        its rows are spaced evenly in latitude rather than in Mercator meters.
        """
        north, south, east, west = tile_bounds(x, y, z)
        if Projection.parse(projection) is Projection.GEOGRAPHIC:
            return cls(west, south, east, north, size, size, Projection.GEOGRAPHIC)
        return cls(
            lon_to_meters_x(west),
            lat_to_meters_y(south),
            lon_to_meters_x(east),
            lat_to_meters_y(north),
            size,
            size,
            Projection.WEB_MERCATOR,
        )

    def __repr__(self) -> str:
        return (
            f"<TileFrame {self.width}x{self.height} EPSG:{self.srid} "
            f"N={self._north:.6f} S={self._south:.6f} E={self._east:.6f} W={self._west:.6f}>"
        )

    @property
    def projection(self) -> Projection:
        return self._projection

    @property
    def srid(self) -> int:
        return int(self._projection)

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def north(self) -> float:
        return self._north

    @property
    def south(self) -> float:
        return self._south

    @property
    def east(self) -> float:
        return self._east

    @property
    def west(self) -> float:
        return self._west

    @property
    def transform(self) -> PixelTransform:
        return self._transform

    @property
    def label_boxes(self) -> tuple[LabelBox, ...]:
        return self._labels.boxes

    def clear(self) -> None:
        """Reset every pixel to transparent. Placed label boxes are kept."""
        self._raster.reset()

    def boundary_as_text(self) -> str:
        """Return the frame outline as lon/lat WKT."""
        return self._wkt

    def boundary_as_geometry(self) -> BaseGeometry:
        if self._geometry is None:
            self._geometry = parse_geometry(self._wkt)
        return self._geometry

    def get_pixel_buffer(self) -> Image.Image:
        return self._image

    def get_pixel(self, x: int, y: int) -> RGBA:
        return tuple(self._image.getpixel((x, y)))

    def is_empty(self) -> bool:
        """True when every pixel is fully transparent."""
        _, max_alpha = self._image.getchannel("A").getextrema()
        return max_alpha == 0

    def intersects(self, geometry: BaseGeometry | str) -> bool:
        return self.boundary_as_geometry().intersects(parse_geometry(geometry))

    def geo_to_pixel(self, lat: float, lon: float) -> tuple[float, float]:
        return self._transform.to_pixel(lat, lon)

    def pixel_to_geo(self, px: float, py: float) -> tuple[float, float]:
        """Return ``(lat, lon)`` for a pixel position."""
        return self._transform.to_geo(px, py)

    def set_background_color(self, color: Any) -> None:
        self._raster.fill(color)

    def draw_pixel(self, lat: float, lon: float, color: Any) -> None:
        x, y = self.geo_to_pixel(lat, lon)
        self._raster.pixel(round_half_away(x), round_half_away(y), color)

    def draw_point(self, lat: float, lon: float, color: Any, diameter: float) -> None:
        """Draw a filled circle of ``diameter`` pixels centred on the point."""
        x, y = self.geo_to_pixel(lat, lon)
        radius = diameter / 2.0
        self._raster.ellipse(
            round_half_away(x - radius),
            round_half_away(y - radius),
            round_half_away(diameter),
            color,
        )

    def draw_line(
        self,
        line: BaseGeometry | str | Sequence[LonLat],
        color: Any = None,
        stroke: StrokeStyle | None = None,
    ) -> None:
        """Stroke a line given as a shapely line, WKT, or ``(lon, lat)`` pairs."""
        for part in _line_parts(line):
            self._raster.polyline(self._to_pixels(part), color, stroke)

    def draw_polygon(
        self,
        polygon: BaseGeometry | str | Sequence[LonLat],
        interiors: Iterable[Sequence[LonLat]] = (),
        *,
        outline_color: Any = None,
        stroke: StrokeStyle | None = None,
        fill_color: Any = None,
    ) -> None:
        """Fill and/or outline a polygon with holes.

        The fill covers the exterior ring minus every interior ring. Outlines
        stroke each ring's own vertices, so hole borders are drawn as well.
        """
        for exterior, holes in _polygon_parts(polygon, interiors):
            exterior_px = self._to_pixels(exterior)
            holes_px = [self._to_pixels(hole) for hole in holes]
            if fill_color is not None:
                self._raster.fill_area(exterior_px, holes_px, fill_color)
            if outline_color is not None:
                for ring in (exterior_px, *holes_px):
                    self._raster.polyline(ring, outline_color, stroke)

    def place_label(self, text: str | None, lat: float, lon: float, style: MapStyle) -> bool:
        """Draw a label anchored at a point unless it overlaps an earlier label."""
        return self._labels.place(text, self.geo_to_pixel(lat, lon), style)

    def place_labels(self, requests: Iterable[LabelRequest], style: MapStyle) -> int:
        """Place labels west to east and north to south; return how many were drawn."""
        placed = 0
        for request in order_labels(requests):
            if self.place_label(request.text, request.lat, request.lon, style):
                placed += 1
        return placed

    def _to_pixels(self, coords: Sequence[LonLat]) -> list[tuple[int, int]]:
        out: list[tuple[int, int]] = []
        for lon, lat in coords:
            x, y = self._transform.to_pixel(lat, lon)
            out.append((round_half_away(x), round_half_away(y)))
        return out


def _validate_size(width: Any, height: Any) -> None:
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise InvalidExtent(f"Frame {name} must be a positive integer, got {value!r}")


def _valid_bounds(min_x: float, min_y: float, max_x: float, max_y: float) -> bool:
    if min_x > max_x or min_y > max_y:
        return False
    if min_x < -180 or max_x > 180:
        return False
    if min_y < -90 or max_y > 90:
        return False
    return True


def _format_coord(value: float) -> str:
    text = f"{value:.8f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def _boundary_wkt(*, north: float, south: float, east: float, west: float) -> str:
    ne = f"{_format_coord(east)} {_format_coord(north)}"
    nw = f"{_format_coord(west)} {_format_coord(north)}"
    sw = f"{_format_coord(west)} {_format_coord(south)}"
    se = f"{_format_coord(east)} {_format_coord(south)}"
    return f"POLYGON(({ne}, {nw}, {sw}, {se}, {ne}))"


def _xy_pairs(coords: Iterable[Sequence[float]]) -> list[LonLat]:
    return [(float(point[0]), float(point[1])) for point in coords]


def _line_parts(line: BaseGeometry | str | Sequence[LonLat]) -> list[list[LonLat]]:
    if not isinstance(line, (str, BaseGeometry)):
        return [_xy_pairs(line)]
    geom = parse_geometry(line)
    if geom.geom_type in ("LineString", "LinearRing"):
        return [_xy_pairs(geom.coords)]
    if geom.geom_type == "MultiLineString":
        return [_xy_pairs(part.coords) for part in geom.geoms]
    raise ValueError(f"Expected a line geometry, got {geom.geom_type}")


def _polygon_parts(
    polygon: BaseGeometry | str | Sequence[LonLat],
    interiors: Iterable[Sequence[LonLat]],
) -> list[tuple[list[LonLat], list[list[LonLat]]]]:
    extra_holes = [_xy_pairs(ring) for ring in interiors]
    if not isinstance(polygon, (str, BaseGeometry)):
        return [(_xy_pairs(polygon), extra_holes)]
    geom = parse_geometry(polygon)
    if geom.geom_type == "Polygon":
        holes = [_xy_pairs(ring.coords) for ring in geom.interiors]
        return [(_xy_pairs(geom.exterior.coords), holes + extra_holes)]
    if geom.geom_type == "MultiPolygon":
        if extra_holes:
            raise ValueError("Explicit interior rings are not supported for multipolygons")
        return [
            (_xy_pairs(part.exterior.coords), [_xy_pairs(ring.coords) for ring in part.interiors])
            for part in geom.geoms
        ]
    raise ValueError(f"Expected a polygon geometry, got {geom.geom_type}")
