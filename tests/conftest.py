"""Shared pytest fixtures for maptile tests."""

import pytest

from maptile import Projection, TileFrame, load_font


@pytest.fixture
def font():
    """Provide a scalable font for label tests."""
    return load_font(size=14)


@pytest.fixture
def geo_frame():
    """Provide a geographic frame with one pixel per degree.

    Longitude 0..100 maps to pixel x 0..100 and latitude 50..0 maps to
    pixel y 0..50.
    """
    return TileFrame(0, 0, 100, 50, 100, 50, Projection.GEOGRAPHIC)


@pytest.fixture
def world_tile():
    """Provide the single zoom 0 Web Mercator tile."""
    return TileFrame.from_tile(0, 0, 0)


class FixedWidthFont:
    """Font stand-in where every character is 10px wide and 10px tall."""

    def getlength(self, text):
        return 10 * len(text)

    def getmetrics(self):
        return (10, 3)


@pytest.fixture
def fixed_font():
    return FixedWidthFont()
