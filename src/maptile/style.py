"""Drawing style consumed by label placement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from PIL import ImageFont

from .raster import BLACK


TEXT_ALIGNS = ("left", "center", "right")
TEXT_VALIGNS = ("top", "middle", "bottom")

_SYSTEM_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "DejaVuSans.ttf",
    "Arial.ttf",
)

_LOGGER = logging.getLogger("maptile.style")


@dataclass(frozen=True, slots=True)
class MapStyle:
    """Font, colors and alignment for text labels.

    ``border_width`` enables outlined glyphs drawn in ``border_color``.
    ``text_wrap`` is the maximum line width in pixels; ``None`` keeps the
    label on one line.
    """

    font: Any = None
    color: Any = BLACK
    border_color: Any = None
    border_width: float | None = None
    text_align: str = "left"
    text_valign: str = "middle"
    text_wrap: int | None = None

    def __post_init__(self) -> None:
        if self.text_align not in TEXT_ALIGNS:
            raise ValueError(
                f"text_align must be one of: {', '.join(TEXT_ALIGNS)} (got {self.text_align!r})"
            )
        if self.text_valign not in TEXT_VALIGNS:
            raise ValueError(
                f"text_valign must be one of: {', '.join(TEXT_VALIGNS)} (got {self.text_valign!r})"
            )
        if self.border_width is not None and self.border_width <= 0:
            raise ValueError("border_width must be > 0 when provided")
        if self.text_wrap is not None and self.text_wrap <= 0:
            raise ValueError("text_wrap must be > 0 when provided")


def load_font(path: str | Path | None = None, size: int = 12) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a TrueType font, falling back to system fonts and then Pillow's default."""
    if path is not None:
        try:
            return ImageFont.truetype(str(path), size)
        except OSError:
            _LOGGER.warning("Could not load font %s; falling back to system fonts", path)
    for candidate in _SYSTEM_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)
