"""
Canvas surfaces and the canvas drawing backend.

A :class:`Canvas` is a mutable drawable surface: rendering resizes it to the
barcode and replaces its pixels, the way an HTML canvas behaves. Surfaces
can be registered in a :class:`SurfaceRegistry` and referenced by string.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from PIL import Image

from .pillow_sink import PillowSink

logger = logging.getLogger(__name__)

__all__ = ["Canvas", "CanvasSink", "SurfaceRegistry", "default_registry"]


class Canvas:
    """
    Drawable surface backed by an RGBA ``PIL.Image``.

    Args:
        width: Initial width in pixels.
        height: Initial height in pixels.
        id: Identifier used for registry lookups.
        classes: Class names matched by ``.name`` selectors.
    """

    def __init__(
        self,
        width: int = 300,
        height: int = 150,
        id: Optional[str] = None,
        classes: Iterable[str] = (),
    ) -> None:
        self.id = id
        self.classes = frozenset(classes)
        self.image: Image.Image = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def resize(
        self, width: int, height: int, fill: Tuple[int, int, int, int] = (0, 0, 0, 0)
    ) -> Image.Image:
        """Replace the surface with a cleared ``width`` x ``height`` image and return it."""
        self.image = Image.new("RGBA", (width, height), fill)
        return self.image

    def __repr__(self) -> str:
        return f"Canvas(id={self.id!r}, size={self.width}x{self.height})"


class SurfaceRegistry:
    """
    Lookup table for canvases referenced by string.

    Resolution order for :meth:`lookup`: exact identifier, then ``#id``
    selector, then ``.class`` selector (first registered match).
    """

    def __init__(self) -> None:
        self._surfaces: Dict[str, Canvas] = {}

    def register(self, canvas: Canvas) -> Canvas:
        if not canvas.id:
            raise ValueError("canvas must have an id to be registered")
        self._surfaces[canvas.id] = canvas
        return canvas

    def unregister(self, canvas_id: str) -> None:
        self._surfaces.pop(canvas_id, None)

    def lookup(self, reference: str) -> Optional[Canvas]:
        found = self._surfaces.get(reference)
        if found is not None:
            return found
        if reference.startswith("#"):
            return self._surfaces.get(reference[1:])
        if reference.startswith("."):
            name = reference[1:]
            for canvas in self._surfaces.values():
                if name in canvas.classes:
                    return canvas
        return None

    def __contains__(self, canvas_id: object) -> bool:
        return canvas_id in self._surfaces

    def __len__(self) -> int:
        return len(self._surfaces)


default_registry = SurfaceRegistry()


class CanvasSink(PillowSink):
    """Draws onto a caller-supplied :class:`Canvas`; ``finalize`` returns that canvas."""

    def __init__(self, options: Mapping[str, Any], canvas: Canvas) -> None:
        super().__init__(options)
        self.canvas = canvas

    def _new_surface(self, width: int, height: int, fill: Tuple[int, int, int, int]) -> Image.Image:
        return self.canvas.resize(width, height, fill)

    def finalize(self) -> Canvas:
        self.canvas.image = self._finish_image()
        logger.debug("Canvas %r updated", self.canvas)
        return self.canvas
