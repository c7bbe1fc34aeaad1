"""Slippy-map tile math and raster tile frames."""

from .errors import GeometryParseError, InvalidExtent, MapTileError, UnsupportedProjection
from .frame import TileFrame
from .labels import LabelRequest, order_labels
from .projection import (
    Projection,
    is_equal,
    lat_lon_to_meters,
    lat_to_meters_y,
    lon_to_meters_x,
    meters_to_lat,
    meters_to_lon,
)
from .pyramid import lat_lon_to_tile, retile, tile_bounds, tiles_covering
from .raster import StrokeStyle
from .style import MapStyle, load_font

__all__ = [
    "GeometryParseError",
    "InvalidExtent",
    "LabelRequest",
    "MapStyle",
    "MapTileError",
    "Projection",
    "StrokeStyle",
    "TileFrame",
    "UnsupportedProjection",
    "is_equal",
    "lat_lon_to_meters",
    "lat_lon_to_tile",
    "lat_to_meters_y",
    "load_font",
    "lon_to_meters_x",
    "meters_to_lat",
    "meters_to_lon",
    "order_labels",
    "retile",
    "tile_bounds",
    "tiles_covering",
]
