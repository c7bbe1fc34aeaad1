"""Pixel-level drawing primitives on top of a Pillow RGBA buffer."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from PIL import Image, ImageColor, ImageDraw, ImageFont


RGBA = tuple[int, int, int, int]
PixelPoint = tuple[float, float]
Box = tuple[float, float, float, float]
Offset = tuple[int, int]

TRANSPARENT: RGBA = (0, 0, 0, 0)
BLACK: RGBA = (0, 0, 0, 255)


@dataclass(frozen=True, slots=True)
class StrokeStyle:
    """Stroke descriptor for lines and outlines.

    ``dash`` alternates on/off lengths in pixels; ``None`` draws solid lines.
    """

    width: float = 1.0
    dash: tuple[float, ...] | None = None

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError("Stroke width must be > 0")
        if self.dash is not None:
            if not self.dash or any(value < 0 for value in self.dash) or sum(self.dash) <= 0:
                raise ValueError("Dash pattern must hold non-negative lengths with a positive sum")

    @property
    def pixel_width(self) -> int:
        return max(1, round_half_away(self.width))


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    rounded = math.floor(abs(value) + 0.5)
    return int(rounded) if value >= 0 else -int(rounded)


def to_rgba(color: Any) -> RGBA:
    """Normalize a Pillow color spec (name, hex string or tuple) to RGBA."""
    if isinstance(color, str):
        return ImageColor.getcolor(color, "RGBA")
    if isinstance(color, Sequence) and len(color) in (3, 4):
        values = [int(channel) for channel in color]
        if any(channel < 0 or channel > 255 for channel in values):
            raise ValueError(f"Color channels must be within 0..255: {color!r}")
        if len(values) == 3:
            values.append(255)
        return (values[0], values[1], values[2], values[3])
    raise ValueError(f"Unsupported color value: {color!r}")


def font_metrics(font: Any) -> tuple[int, int]:
    """Return ``(ascent, descent)`` in pixels for a Pillow font."""
    if hasattr(font, "getmetrics"):
        ascent, descent = font.getmetrics()
        return (int(ascent), int(descent))
    left, top, right, bottom = font.getbbox("Ay")
    return (int(bottom - top), 0)


def text_width(font: Any, text: str) -> int:
    return round_half_away(font.getlength(text))


def dash_segments(
    points: Sequence[PixelPoint],
    pattern: Sequence[float],
) -> list[list[PixelPoint]]:
    """Split a polyline into the visible pieces of a dash pattern."""
    lengths = [float(value) for value in pattern]
    if len(lengths) % 2:
        lengths = lengths * 2
    if len(points) < 2:
        return []

    segments: list[list[PixelPoint]] = []
    index = 0
    remaining = lengths[0]
    on = True
    current: list[PixelPoint] = [points[0]]
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        seg_len = math.hypot(x1 - x0, y1 - y0)
        pos = 0.0
        while seg_len - pos > remaining:
            pos += remaining
            t = pos / seg_len
            split = (x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)
            if on:
                current.append(split)
                segments.append(current)
                current = []
            else:
                current = [split]
            on = not on
            index = (index + 1) % len(lengths)
            remaining = lengths[index]
        remaining -= seg_len - pos
        if on:
            current.append((x1, y1))
    if on:
        segments.append(current)
    return [segment for segment in segments if len(segment) >= 2]


class Rasterizer:
    """Draws primitives into an RGBA image.

    Every primitive is painted on a scratch layer and composited over the
    buffer (source-over), except ``fill`` and ``reset`` which replace pixels.
    Scratch layers only cover the primitive's own bounding box, clipped to
    the image.
    """

    def __init__(self, image: Image.Image) -> None:
        if image.mode != "RGBA":
            raise ValueError(f"Expected an RGBA image, got {image.mode}")
        self.image = image
        self.color: RGBA = BLACK

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def reset(self) -> None:
        self.image.paste(TRANSPARENT, (0, 0, *self.image.size))
        self.color = BLACK

    def fill(self, color: Any) -> None:
        self.image.paste(to_rgba(color), (0, 0, *self.image.size))

    def pixel(self, x: int, y: int, color: Any) -> None:
        width, height = self.image.size
        if not (0 <= x < width and 0 <= y < height):
            return
        source = Image.new("RGBA", (1, 1), to_rgba(color))
        self.image.alpha_composite(source, dest=(x, y))

    def ellipse(self, x: int, y: int, diameter: int, color: Any) -> None:
        if diameter <= 0:
            return
        rgba = to_rgba(color)
        box = (x, y, x + diameter - 1, y + diameter - 1)

        def paint(draw: ImageDraw.ImageDraw, offset: Offset) -> None:
            dx, dy = offset
            draw.ellipse((box[0] + dx, box[1] + dy, box[2] + dx, box[3] + dy), fill=rgba)

        self._composite(box, paint)

    def polyline(
        self,
        points: Sequence[PixelPoint],
        color: Any = None,
        stroke: StrokeStyle | None = None,
    ) -> None:
        """Stroke an open polyline; no closing edge is added."""
        if len(points) < 2:
            return
        rgba = self.color if color is None else to_rgba(color)
        style = stroke or StrokeStyle()
        if style.dash:
            runs = dash_segments(points, style.dash)
        else:
            runs = [list(points)]
        if not runs:
            return
        width = style.pixel_width
        pad = width / 2.0 + 1
        min_x, min_y, max_x, max_y = _points_box([point for run in runs for point in run])

        def paint(draw: ImageDraw.ImageDraw, offset: Offset) -> None:
            for run in runs:
                draw.line(
                    _shift(run, offset),
                    fill=rgba,
                    width=width,
                    joint="curve" if width > 2 else None,
                )

        self._composite((min_x - pad, min_y - pad, max_x + pad, max_y + pad), paint)

    def fill_area(
        self,
        exterior: Sequence[PixelPoint],
        holes: Sequence[Sequence[PixelPoint]],
        color: Any,
    ) -> None:
        """Fill the exterior ring minus every hole ring."""
        if len(exterior) < 3:
            return
        rgba = to_rgba(color)
        clip = self._clip(_points_box(exterior))
        if clip is None:
            return
        left, top, right, bottom = clip
        offset = (-left, -top)
        mask = Image.new("L", (right - left, bottom - top), 0)
        mask_draw = ImageDraw.Draw(mask)
        mask_draw.polygon(_shift(exterior, offset), fill=255)
        for hole in holes:
            if len(hole) >= 3:
                mask_draw.polygon(_shift(hole, offset), fill=0)
        layer = Image.new("RGBA", mask.size, TRANSPARENT)
        layer.paste(rgba, mask=mask)
        self.image.alpha_composite(layer, dest=(left, top))

    def text(
        self,
        line: str,
        x: int,
        baseline: int,
        font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
        color: Any,
        *,
        border_color: Any = None,
        border_width: float | None = None,
    ) -> None:
        """Draw one line of text with its left baseline at ``(x, baseline)``."""
        fill = to_rgba(color)
        kwargs: dict[str, Any] = {"font": font, "fill": fill}
        stroke_width = 0
        if border_width is not None:
            # The outline extends half the stroke width beyond the glyph.
            stroke_width = max(1, round_half_away(border_width / 2.0))
            kwargs["stroke_width"] = stroke_width
            kwargs["stroke_fill"] = to_rgba(border_color) if border_color is not None else fill
        if hasattr(font, "getmetrics"):
            position = (x, baseline)
            kwargs["anchor"] = "ls"
            left, top, right, bottom = font.getbbox(line, stroke_width=stroke_width, anchor="ls")
        else:
            ascent, _ = font_metrics(font)
            position = (x, baseline - ascent)
            left, top, right, bottom = font.getbbox(line)
            left, top = left - stroke_width, top - stroke_width
            right, bottom = right + stroke_width, bottom + stroke_width
        box = (position[0] + left - 1, position[1] + top - 1, position[0] + right + 1, position[1] + bottom + 1)

        def paint(draw: ImageDraw.ImageDraw, offset: Offset) -> None:
            draw.text((position[0] + offset[0], position[1] + offset[1]), line, **kwargs)

        self._composite(box, paint)

    def _clip(self, box: Box) -> tuple[int, int, int, int] | None:
        width, height = self.image.size
        left = max(math.floor(box[0]), 0)
        top = max(math.floor(box[1]), 0)
        right = min(math.ceil(box[2]) + 1, width)
        bottom = min(math.ceil(box[3]) + 1, height)
        if left >= right or top >= bottom:
            return None
        return (left, top, right, bottom)

    def _composite(self, box: Box, paint: Callable[[ImageDraw.ImageDraw, Offset], None]) -> None:
        clip = self._clip(box)
        if clip is None:
            return
        left, top, right, bottom = clip
        layer = Image.new("RGBA", (right - left, bottom - top), TRANSPARENT)
        paint(ImageDraw.Draw(layer), (-left, -top))
        self.image.alpha_composite(layer, dest=(left, top))


def _points_box(points: Sequence[PixelPoint]) -> Box:
    xs = [point[0] for point in points]
    ys = [point[1] for point in points]
    return (min(xs), min(ys), max(xs), max(ys))


def _shift(points: Sequence[PixelPoint], offset: Offset) -> list[PixelPoint]:
    dx, dy = offset
    return [(x + dx, y + dy) for x, y in points]
