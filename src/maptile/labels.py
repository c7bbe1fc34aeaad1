"""Multi-line text labels with all-or-nothing collision checks.

A label is split into lines, every line gets a pixel box around the anchor,
and the label is drawn only when none of its boxes touch a box placed
earlier on the same frame. Placement is greedy: earlier labels win, so
callers pick the processing order (see ``order_labels``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from .raster import Rasterizer, font_metrics, round_half_away, text_width
from .style import MapStyle


_LOGGER = logging.getLogger("maptile.labels")


@dataclass(frozen=True, slots=True)
class LabelBox:
    """Pixel rectangle reserved by one rendered line of text.

    ``y`` is the text baseline of the line.
    """

    x: int
    y: int
    width: int
    height: int

    def intersects(self, other: LabelBox) -> bool:
        if self.width <= 0 or self.height <= 0 or other.width <= 0 or other.height <= 0:
            return False
        return (
            self.x < other.x + other.width
            and other.x < self.x + self.width
            and self.y < other.y + other.height
            and other.y < self.y + self.height
        )


@dataclass(frozen=True, slots=True)
class LabelRequest:
    text: str
    lat: float
    lon: float


def order_labels(requests: Iterable[LabelRequest]) -> list[LabelRequest]:
    """Sort labels west to east, then north to south.

    Rendering neighbouring tiles with the same order makes them resolve
    label conflicts identically along shared edges.
    """
    return sorted(requests, key=lambda item: (item.lon, -item.lat))


def wrap_text(text: str, font: Any, wrap_width: int | None) -> list[str]:
    """Greedily pack whitespace-separated words into lines of at most ``wrap_width`` pixels."""
    words = text.split()
    if wrap_width is None or len(words) < 2:
        return [text]
    lines: list[str] = []
    index = 0
    while index < len(words):
        line = words[index]
        index += 1
        while index < len(words) and text_width(font, f"{line} {words[index]}") <= wrap_width:
            line = f"{line} {words[index]}"
            index += 1
        lines.append(line)
    return lines


def layout_label(
    lines: Sequence[str],
    anchor: tuple[float, float],
    font: Any,
    align: str,
    valign: str,
) -> list[LabelBox]:
    """Compute one box per line around a pixel anchor."""
    ascent, _ = font_metrics(font)
    line_height = ascent
    anchor_x, anchor_y = anchor
    y = round_half_away(anchor_y)
    boxes: list[LabelBox] = []
    for i, line in enumerate(lines):
        width = text_width(font, line)

        if align == "center":
            x_offset = round_half_away(anchor_x - width / 2.0)
        elif align == "right":
            x_offset = round_half_away(anchor_x - width)
        else:
            x_offset = round_half_away(anchor_x)

        if valign == "top":
            y_offset = y - (i + 1) * line_height
        elif valign == "bottom":
            y_offset = y + (i + 1) * line_height
        else:
            total_height = line_height * len(lines)
            y_offset = y - round_half_away(total_height / 2.0) + line_height * (i + 1)

        boxes.append(LabelBox(x_offset, y_offset, width, line_height))
    return boxes


class LabelPlacer:
    """Places labels into one frame and remembers the boxes they occupy."""

    def __init__(self, rasterizer: Rasterizer) -> None:
        self._rasterizer = rasterizer
        self._boxes: list[LabelBox] = []

    @property
    def boxes(self) -> tuple[LabelBox, ...]:
        return tuple(self._boxes)

    def place(self, text: str | None, anchor: tuple[float, float], style: MapStyle) -> bool:
        """Draw a label at a pixel anchor. Returns False when nothing was drawn."""
        if text is None:
            return False
        text = text.strip()
        if not text or style.font is None:
            return False

        lines = wrap_text(text, style.font, style.text_wrap)
        boxes = layout_label(lines, anchor, style.font, style.text_align, style.text_valign)
        for box in boxes:
            if any(box.intersects(placed) for placed in self._boxes):
                _LOGGER.debug("Skipping label %r: overlaps an existing label", text)
                return False

        for line, box in zip(lines, boxes):
            self._rasterizer.text(
                line,
                box.x,
                box.y,
                style.font,
                style.color,
                border_color=style.border_color,
                border_width=style.border_width,
            )
            self._boxes.append(box)
        return True
