"""Raster backend: draws into memory and finalizes as PNG bytes."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Mapping

from .pillow_sink import PillowSink

logger = logging.getLogger(__name__)

__all__ = ["RasterSink"]


class RasterSink(PillowSink):
    """
    Server-side raster producer.

    Args:
        options: Normalized render options (paddings in pixels).
        compress_level: zlib level used for the PNG (0-9).
    """

    def __init__(self, options: Mapping[str, Any], compress_level: int = 6) -> None:
        super().__init__(options)
        self.compress_level = compress_level

    def finalize(self) -> bytes:
        image = self._finish_image()
        buf = BytesIO()
        image.save(buf, format="PNG", compress_level=self.compress_level)
        logger.debug("PNG %dx%d encoded (%d bytes)", image.width, image.height, buf.getbuffer().nbytes)
        return buf.getvalue()
