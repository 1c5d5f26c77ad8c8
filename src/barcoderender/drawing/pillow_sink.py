"""
RU: Общая отрисовка на Pillow для растрового и canvas-бэкендов.
EN: Shared Pillow drawing for the raster and canvas backends.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from ..enums import Rotation
from ..options import to_number

logger = logging.getLogger(__name__)

__all__ = ["PillowSink", "parse_color"]

RGB = Tuple[int, int, int]

# Image.Transpose operations realising each rotation (clockwise for R).
_TRANSPOSE: dict[Rotation, Image.Transpose] = {
    Rotation.RIGHT: Image.Transpose.ROTATE_270,
    Rotation.LEFT: Image.Transpose.ROTATE_90,
    Rotation.INVERTED: Image.Transpose.ROTATE_180,
}


def parse_color(value: Any) -> Optional[RGB]:
    """
    Parse ``RRGGBB`` (with or without ``#``) or any Pillow color name.

    Returns ``None`` for empty or unparseable values.
    """
    if value is None or value == "":
        return None
    s = str(value).strip()
    if len(s) == 6 and all(ch in "0123456789abcdefABCDEF" for ch in s):
        s = "#" + s
    try:
        rgb = ImageColor.getrgb(s)
    except ValueError:
        logger.warning("Unparseable color %r ignored", value)
        return None
    return rgb[0], rgb[1], rgb[2]


class PillowSink:
    """
    Draws primitives into an RGBA ``PIL.Image``.

    Padding (already in pixels, see :func:`barcoderender.options.fixup_options`),
    ``rotate`` and ``backgroundcolor`` are read from the normalized options.
    Subclasses decide where the image lives and what ``finalize`` returns.
    """

    def __init__(self, options: Mapping[str, Any]) -> None:
        self.options = options
        self.scale_x: float = 1
        self.scale_y: float = 1
        self.rotation = Rotation.parse(options.get("rotate"))
        self.padding_left = to_number(options.get("paddingleft")) or 0
        self.padding_top = to_number(options.get("paddingtop")) or 0
        self.padding_right = to_number(options.get("paddingright")) or 0
        self.padding_bottom = to_number(options.get("paddingbottom")) or 0
        self.background = parse_color(options.get("backgroundcolor"))
        self._image: Optional[Image.Image] = None
        self._draw: Optional[ImageDraw.ImageDraw] = None
        self._fills: Dict[str, Tuple[int, int, int, int]] = {}

    def scale(self, sx: float, sy: float) -> None:
        self.scale_x = sx
        self.scale_y = sy

    def init(self, width: float, height: float) -> None:
        px_width = max(
            1, math.ceil(width * self.scale_x) + round(self.padding_left + self.padding_right)
        )
        px_height = max(
            1, math.ceil(height * self.scale_y) + round(self.padding_top + self.padding_bottom)
        )
        fill = (*self.background, 255) if self.background else (0, 0, 0, 0)
        self._image = self._new_surface(px_width, px_height, fill)
        self._draw = ImageDraw.Draw(self._image)
        logger.debug("Surface %dx%d px allocated", px_width, px_height)

    def _new_surface(self, width: int, height: int, fill: Tuple[int, int, int, int]) -> Image.Image:
        return Image.new("RGBA", (width, height), fill)

    def _require_draw(self) -> ImageDraw.ImageDraw:
        if self._draw is None:
            raise RuntimeError("init() must be called before drawing")
        return self._draw

    def bar(self, x: float, y: float, width: float, height: float, rgb: str) -> None:
        draw = self._require_draw()
        x0 = round(self.padding_left + x * self.scale_x)
        y0 = round(self.padding_top + y * self.scale_y)
        x1 = round(self.padding_left + (x + width) * self.scale_x) - 1
        y1 = round(self.padding_top + (y + height) * self.scale_y) - 1
        if x1 < x0 or y1 < y0:
            return
        draw.rectangle([x0, y0, x1, y1], fill=self._fill(rgb))

    def text(self, x: float, y: float, string: str, rgb: str, size: float) -> None:
        draw = self._require_draw()
        font = ImageFont.load_default(size=max(1, round(size * self.scale_y)))
        left, top, right, _ = draw.textbbox((0, 0), string, font=font)
        px = self.padding_left + x * self.scale_x - (right - left) / 2 - left
        py = self.padding_top + y * self.scale_y - top
        draw.text((px, py), string, fill=self._fill(rgb), font=font)

    def _fill(self, rgb: str) -> Tuple[int, int, int, int]:
        # parsed once per color per render
        fill = self._fills.get(rgb)
        if fill is None:
            fill = (*(parse_color(rgb) or (0, 0, 0)), 255)
            self._fills[rgb] = fill
        return fill

    def _finish_image(self) -> Image.Image:
        if self._image is None:
            raise RuntimeError("finalize() called before init()")
        image = self._image
        transpose = _TRANSPOSE.get(self.rotation)
        if transpose is not None:
            image = image.transpose(transpose)
        return image
