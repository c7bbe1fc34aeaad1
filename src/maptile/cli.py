"""CLI entrypoint for maptile."""

from __future__ import annotations

import argparse
import logging
from typing import Sequence

from .config import RenderConfig, load_config
from .errors import MapTileError
from .frame import TileFrame
from .projection import Projection
from .pyramid import is_valid_tile, lat_lon_to_tile, retile, tiles_covering
from .style import MapStyle, load_font
from .util import setup_logging

LOGGER = logging.getLogger("maptile.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="maptile",
        description="Slippy-map tile math and tile frame inspection.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default=None, help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    bounds_p = subparsers.add_parser("tile-bounds", help="Print the bounds of a tile frame.")
    add_common(bounds_p)
    bounds_p.add_argument("x", type=int, help="Tile column.")
    bounds_p.add_argument("y", type=int, help="Tile row.")
    bounds_p.add_argument("--zoom", type=int, default=None, help="Zoom level (default from config).")
    bounds_p.add_argument("--size", type=int, default=None, help="Tile size in pixels (default from config).")

    locate_p = subparsers.add_parser("locate", help="Print the tile containing a point.")
    add_common(locate_p)
    locate_p.add_argument("lat", type=float, help="Latitude in degrees.")
    locate_p.add_argument("lon", type=float, help="Longitude in degrees.")
    locate_p.add_argument("--zoom", type=int, default=None, help="Zoom level (default from config).")

    retile_p = subparsers.add_parser("retile", help="Map a tile index to another zoom level.")
    add_common(retile_p)
    retile_p.add_argument("x", type=int, help="Tile column.")
    retile_p.add_argument("y", type=int, help="Tile row.")
    retile_p.add_argument("from_zoom", type=int, help="Zoom level of the given index.")
    retile_p.add_argument("to_zoom", type=int, help="Target zoom level.")

    covering_p = subparsers.add_parser("covering", help="List tiles intersecting a WKT geometry.")
    add_common(covering_p)
    covering_p.add_argument("wkt", help="Geometry as lon/lat well-known text.")
    covering_p.add_argument("--zoom", type=int, default=None, help="Zoom level (default from config).")

    label_p = subparsers.add_parser("label", help="Lay out a text label on the tile containing a point.")
    add_common(label_p)
    label_p.add_argument("text", help="Label text.")
    label_p.add_argument("lat", type=float, help="Latitude of the label anchor.")
    label_p.add_argument("lon", type=float, help="Longitude of the label anchor.")
    label_p.add_argument("--zoom", type=int, default=None, help="Zoom level (default from config).")
    label_p.add_argument("--size", type=int, default=None, help="Tile size in pixels (default from config).")
    label_p.add_argument("--wrap", type=int, default=None, help="Wrap lines wider than this many pixels.")

    return parser


def _load_and_setup(args: argparse.Namespace) -> RenderConfig:
    cfg = load_config(args.config) if args.config else RenderConfig.default()
    setup_logging(cfg.logging.log_file, verbose=bool(args.verbose) or cfg.logging.verbose)
    return cfg


def format_tile_bounds_lines(frame: TileFrame, *, x: int, y: int, z: int) -> list[str]:
    return [
        f"tile: {z}/{x}/{y}",
        f"north: {frame.north:.8f}",
        f"south: {frame.south:.8f}",
        f"east: {frame.east:.8f}",
        f"west: {frame.west:.8f}",
        f"size: {frame.width}x{frame.height}",
        f"projection: EPSG:{frame.srid}",
        f"wkt: {frame.boundary_as_text()}",
    ]


def _run_tile_bounds(*, x: int, y: int, zoom: int, size: int, projection: Projection) -> int:
    if not is_valid_tile(x, y, zoom):
        LOGGER.error("Tile %d/%d/%d is outside the zoom %d grid.", zoom, x, y, zoom)
        return 1
    frame = TileFrame.from_tile(x, y, zoom, size, projection)
    for line in format_tile_bounds_lines(frame, x=x, y=y, z=zoom):
        print(line)
    return 0


def _run_locate(*, lat: float, lon: float, zoom: int) -> int:
    x, y = lat_lon_to_tile(lat, lon, zoom)
    print(f"{zoom}/{x}/{y}")
    return 0


def _run_retile(*, x: int, y: int, from_zoom: int, to_zoom: int) -> int:
    if not is_valid_tile(x, y, from_zoom) or to_zoom < 0:
        LOGGER.error("Tile %d/%d/%d cannot be mapped to zoom %d.", from_zoom, x, y, to_zoom)
        return 1
    new_x, new_y = retile(x, y, from_zoom, to_zoom)
    print(f"{to_zoom}/{new_x}/{new_y}")
    return 0


def _run_covering(*, wkt: str, zoom: int) -> int:
    tiles = tiles_covering(wkt, zoom)
    LOGGER.debug("%d tiles cover the geometry at z=%d", len(tiles), zoom)
    for x, y in sorted(tiles, key=lambda item: (item[1], item[0])):
        print(f"{zoom}/{x}/{y}")
    return 0


def _run_label(
    *,
    text: str,
    lat: float,
    lon: float,
    zoom: int,
    size: int,
    cfg: RenderConfig,
    wrap: int | None,
) -> int:
    if wrap is not None and wrap <= 0:
        LOGGER.error("Wrap width must be > 0, got %d.", wrap)
        return 1
    x, y = lat_lon_to_tile(lat, lon, zoom)
    frame = TileFrame.from_tile(x, y, zoom, size, cfg.projection)
    style = MapStyle(font=load_font(cfg.font.path, cfg.font.size), text_wrap=wrap)
    placed = frame.place_label(text, lat, lon, style)
    print(f"tile: {zoom}/{x}/{y}")
    print(f"placed: {'yes' if placed else 'no'}")
    for box in frame.label_boxes:
        print(f"line: x={box.x} y={box.y} width={box.width} height={box.height}")
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    zoom = getattr(args, "zoom", None)
    if zoom is None:
        zoom = cfg.zoom
    if zoom < 0:
        LOGGER.error("Zoom level must be >= 0, got %d.", zoom)
        return 1
    if command == "tile-bounds":
        size = cfg.tile_size if args.size is None else int(args.size)
        return _run_tile_bounds(x=args.x, y=args.y, zoom=zoom, size=size, projection=cfg.projection)
    if command == "locate":
        return _run_locate(lat=args.lat, lon=args.lon, zoom=zoom)
    if command == "retile":
        return _run_retile(x=args.x, y=args.y, from_zoom=args.from_zoom, to_zoom=args.to_zoom)
    if command == "covering":
        return _run_covering(wkt=args.wkt, zoom=zoom)
    if command == "label":
        size = cfg.tile_size if args.size is None else int(args.size)
        return _run_label(
            text=args.text,
            lat=args.lat,
            lon=args.lon,
            zoom=zoom,
            size=size,
            cfg=cfg,
            wrap=args.wrap,
        )
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return _dispatch(args)
    except MapTileError as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
