"""Tests for the maptile.frame module."""

import math
from unittest.mock import patch

import pytest
from shapely.geometry import LineString, MultiPolygon, Polygon

from maptile import frame as frame_module
from maptile.errors import GeometryParseError, InvalidExtent, UnsupportedProjection
from maptile.frame import TileFrame
from maptile.projection import ORIGIN_SHIFT, Projection
from maptile.raster import StrokeStyle

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


class TestConstruction:
    """Tests for building frames from extents and tile indices."""

    def test_world_tile_bounds(self, world_tile):
        assert world_tile.north == pytest.approx(85.0511287798)
        assert world_tile.south == pytest.approx(-85.0511287798)
        assert world_tile.east == pytest.approx(180.0)
        assert world_tile.west == pytest.approx(-180.0)
        assert (world_tile.width, world_tile.height) == (256, 256)
        assert world_tile.srid == 3857

    def test_from_tile_custom_size(self):
        frame = TileFrame.from_tile(1, 1, 1, size=512)
        assert frame.get_pixel_buffer().size == (512, 512)
        assert frame.north == pytest.approx(0.0, abs=1e-9)
        assert frame.west == pytest.approx(0.0, abs=1e-9)

    def test_from_tile_geographic(self):
        frame = TileFrame.from_tile(1, 0, 1, size=256, projection="EPSG:4326")
        assert frame.projection is Projection.GEOGRAPHIC
        assert frame.north == pytest.approx(85.0511287798)
        assert frame.south == pytest.approx(0.0, abs=1e-9)
        assert (frame.east, frame.west) == (pytest.approx(180.0), pytest.approx(0.0, abs=1e-9))
        # Rows are spaced evenly in degrees, unlike the Mercator tile.
        assert frame.geo_to_pixel(frame.north / 2, 90.0) == pytest.approx((128.0, 128.0))
        mercator = TileFrame.from_tile(1, 0, 1, size=256)
        assert mercator.geo_to_pixel(frame.north / 2, 90.0)[1] > 180.0

    def test_from_tile_rejects_unknown_projection(self):
        with pytest.raises(UnsupportedProjection):
            TileFrame.from_tile(0, 0, 0, projection="EPSG:27700")

    def test_geographic_bounds_are_degrees(self, geo_frame):
        assert (geo_frame.north, geo_frame.south, geo_frame.east, geo_frame.west) == (50, 0, 100, 0)
        assert geo_frame.projection is Projection.GEOGRAPHIC

    def test_accepts_projection_names(self):
        frame = TileFrame(-1, -1, 1, 1, 10, 10, "epsg:4326")
        assert frame.srid == 4326

    def test_new_frame_is_transparent(self, world_tile):
        assert world_tile.is_empty()
        assert world_tile.get_pixel(0, 0) == (0, 0, 0, 0)

    @pytest.mark.parametrize(
        "extent",
        [
            (-200.0, 0.0, 10.0, 10.0),
            (0.0, -95.0, 10.0, 10.0),
            (10.0, 0.0, 0.0, 10.0),
            (0.0, 0.0, 0.0, 10.0),
            (0.0, 5.0, 10.0, 5.0),
            (0.0, 0.0, math.nan, 10.0),
            (0.0, 0.0, math.inf, 10.0),
        ],
    )
    def test_invalid_geographic_extent(self, extent):
        with pytest.raises(InvalidExtent):
            TileFrame(*extent, 10, 10, Projection.GEOGRAPHIC)

    def test_invalid_mercator_extent(self):
        with pytest.raises(InvalidExtent):
            TileFrame(-2 * ORIGIN_SHIFT, 0, 0, 1000, 10, 10)

    @pytest.mark.parametrize("size", [(0, 10), (10, -1), (True, 10), (10.5, 10)])
    def test_invalid_size(self, size):
        with pytest.raises(InvalidExtent):
            TileFrame(0, 0, 10, 10, *size, Projection.GEOGRAPHIC)

    def test_unsupported_projection(self):
        with pytest.raises(UnsupportedProjection):
            TileFrame(0, 0, 10, 10, 10, 10, 27700)

    def test_no_buffer_allocated_for_invalid_extent(self):
        """A rejected extent should fail before any pixel buffer exists."""
        with patch.object(frame_module, "Image") as mock_image:
            with pytest.raises(InvalidExtent):
                TileFrame(10, 0, 0, 10, 10, 10, Projection.GEOGRAPHIC)
        mock_image.new.assert_not_called()

    def test_invalid_extent_is_value_error(self):
        with pytest.raises(ValueError):
            TileFrame(0, 0, 0, 0, 10, 10, Projection.GEOGRAPHIC)

    def test_repr_mentions_size_and_srid(self, world_tile):
        text = repr(world_tile)
        assert "256x256" in text
        assert "EPSG:3857" in text


class TestBoundary:
    """Tests for the frame outline."""

    def test_boundary_wkt_format(self):
        frame = TileFrame(-10, -10, 10, 10, 20, 20, Projection.GEOGRAPHIC)
        assert frame.boundary_as_text() == "POLYGON((10 10, -10 10, -10 -10, 10 -10, 10 10))"

    def test_boundary_wkt_trims_decimals(self):
        frame = TileFrame(0.5, -0.25, 1.125, 0.75, 20, 20, Projection.GEOGRAPHIC)
        assert frame.boundary_as_text() == (
            "POLYGON((1.125 0.75, 0.5 0.75, 0.5 -0.25, 1.125 -0.25, 1.125 0.75))"
        )

    def test_world_tile_wkt_uses_eight_decimals(self, world_tile):
        assert world_tile.boundary_as_text().startswith("POLYGON((180 85.05112878, -180 85.05112878")

    def test_boundary_geometry_matches_bounds(self, geo_frame):
        assert geo_frame.boundary_as_geometry().bounds == (0.0, 0.0, 100.0, 50.0)

    def test_intersects(self, geo_frame):
        assert geo_frame.intersects("POINT (50 25)")
        assert geo_frame.intersects(LineString([(-10, 25), (10, 25)]))
        assert not geo_frame.intersects("POINT (150 25)")

    def test_bad_wkt_leaves_frame_usable(self, geo_frame):
        with pytest.raises(GeometryParseError):
            geo_frame.intersects("POLYGON((0 0, 1")
        assert geo_frame.intersects("POINT (1 1)")
        geo_frame.draw_pixel(25, 10, RED)
        assert geo_frame.get_pixel(10, 25) == RED


class TestCoordinateMapping:
    """Tests for geo_to_pixel and pixel_to_geo."""

    def test_geographic_mapping(self, geo_frame):
        assert geo_frame.geo_to_pixel(50, 0) == (0.0, 0.0)
        assert geo_frame.geo_to_pixel(0, 100) == (100.0, 50.0)
        assert geo_frame.pixel_to_geo(25, 10) == (40.0, 25.0)

    def test_world_tile_centre(self, world_tile):
        x, y = world_tile.geo_to_pixel(0.0, 0.0)
        assert x == pytest.approx(128.0)
        assert y == pytest.approx(128.0)

    def test_world_tile_round_trip(self, world_tile):
        lat, lon = world_tile.pixel_to_geo(*world_tile.geo_to_pixel(48.85, 2.35))
        assert lat == pytest.approx(48.85, abs=1e-9)
        assert lon == pytest.approx(2.35, abs=1e-9)

    def test_pixel_x_grows_east_and_y_grows_south(self, world_tile):
        west_x, north_y = world_tile.geo_to_pixel(40.0, -20.0)
        east_x, south_y = world_tile.geo_to_pixel(-40.0, 20.0)
        assert west_x < east_x
        assert north_y < south_y


class TestDrawing:
    """Tests for the drawing operations."""

    def test_background_replaces_pixels(self, geo_frame):
        geo_frame.set_background_color((0, 0, 255, 128))
        assert geo_frame.get_pixel(0, 0) == (0, 0, 255, 128)
        geo_frame.set_background_color("red")
        assert geo_frame.get_pixel(99, 49) == RED

    def test_clear(self, geo_frame):
        geo_frame.set_background_color("white")
        assert not geo_frame.is_empty()
        geo_frame.clear()
        assert geo_frame.is_empty()

    def test_draw_pixel(self, geo_frame):
        geo_frame.draw_pixel(25, 10, RED)
        assert geo_frame.get_pixel(10, 25) == RED
        assert geo_frame.get_pixel(11, 25) == (0, 0, 0, 0)

    def test_translucent_pixel_composites(self, geo_frame):
        geo_frame.set_background_color("white")
        geo_frame.draw_pixel(25, 10, (255, 0, 0, 128))
        r, g, b, a = geo_frame.get_pixel(10, 25)
        assert (r, a) == (255, 255)
        assert 100 < g < 160
        assert g == b

    def test_draw_point(self, geo_frame):
        geo_frame.draw_point(25, 50, BLUE, 6)
        assert geo_frame.get_pixel(50, 25) == BLUE
        assert geo_frame.get_pixel(60, 25) == (0, 0, 0, 0)

    def test_draw_line_from_pairs(self, geo_frame):
        geo_frame.draw_line([(10, 25), (90, 25)], RED)
        assert geo_frame.get_pixel(50, 25) == RED
        assert geo_frame.get_pixel(50, 30) == (0, 0, 0, 0)

    def test_draw_line_from_wkt(self, geo_frame):
        geo_frame.draw_line("MULTILINESTRING((10 10, 10 40), (80 10, 80 40))", BLUE)
        assert geo_frame.get_pixel(10, 25) == BLUE
        assert geo_frame.get_pixel(80, 25) == BLUE
        assert geo_frame.get_pixel(45, 25) == (0, 0, 0, 0)

    def test_draw_line_defaults_to_black(self, geo_frame):
        geo_frame.draw_line(LineString([(10, 25), (90, 25)]))
        assert geo_frame.get_pixel(50, 25) == (0, 0, 0, 255)

    def test_dashed_line_has_gaps(self, geo_frame):
        geo_frame.draw_line([(10, 25), (90, 25)], RED, StrokeStyle(width=1, dash=(5, 5)))
        assert geo_frame.get_pixel(12, 25) == RED
        assert geo_frame.get_pixel(17, 25) == (0, 0, 0, 0)
        assert geo_frame.get_pixel(22, 25) == RED

    def test_wide_stroke(self, geo_frame):
        geo_frame.draw_line([(10, 25), (90, 25)], RED, StrokeStyle(width=5))
        assert geo_frame.get_pixel(50, 26) == RED
        assert geo_frame.get_pixel(50, 32) == (0, 0, 0, 0)

    def test_draw_line_rejects_polygons(self, geo_frame):
        with pytest.raises(ValueError):
            geo_frame.draw_line("POLYGON((0 0, 1 0, 1 1, 0 0))", RED)

    def test_polygon_fill_skips_hole(self, geo_frame):
        exterior = [(10, 10), (90, 10), (90, 45), (10, 45), (10, 10)]
        hole = [(40, 20), (60, 20), (60, 30), (40, 30), (40, 20)]
        geo_frame.draw_polygon(exterior, [hole], fill_color=RED)
        assert geo_frame.get_pixel(20, 25) == RED
        assert geo_frame.get_pixel(50, 25) == (0, 0, 0, 0)
        assert geo_frame.get_pixel(95, 25) == (0, 0, 0, 0)

    def test_polygon_outline_strokes_hole_ring(self, geo_frame):
        polygon = Polygon(
            [(10, 10), (90, 10), (90, 45), (10, 45)],
            [[(40, 20), (60, 20), (60, 30), (40, 30)]],
        )
        geo_frame.draw_polygon(polygon, outline_color=BLUE)
        assert geo_frame.get_pixel(10, 25) == BLUE
        assert geo_frame.get_pixel(40, 25) == BLUE
        assert geo_frame.get_pixel(50, 25) == (0, 0, 0, 0)
        assert geo_frame.get_pixel(20, 25) == (0, 0, 0, 0)

    def test_outline_drawn_over_fill(self, geo_frame):
        exterior = [(10, 10), (90, 10), (90, 45), (10, 45), (10, 10)]
        geo_frame.draw_polygon(exterior, outline_color=BLUE, fill_color=RED)
        assert geo_frame.get_pixel(10, 25) == BLUE
        assert geo_frame.get_pixel(50, 25) == RED

    def test_multipolygon(self, geo_frame):
        shape = MultiPolygon(
            [
                Polygon([(5, 5), (20, 5), (20, 20), (5, 20)]),
                Polygon([(70, 5), (90, 5), (90, 20), (70, 20)]),
            ]
        )
        geo_frame.draw_polygon(shape, fill_color=RED)
        assert geo_frame.get_pixel(12, 38) == RED
        assert geo_frame.get_pixel(80, 38) == RED
        assert geo_frame.get_pixel(45, 38) == (0, 0, 0, 0)

    def test_multipolygon_rejects_extra_interiors(self, geo_frame):
        shape = MultiPolygon([Polygon([(5, 5), (20, 5), (20, 20)])])
        with pytest.raises(ValueError):
            geo_frame.draw_polygon(shape, [[(6, 6), (7, 6), (7, 7)]], fill_color=RED)

    def test_frames_are_independent(self):
        first = TileFrame.from_tile(0, 0, 1)
        second = TileFrame.from_tile(0, 0, 1)
        first.set_background_color("red")
        assert second.is_empty()
