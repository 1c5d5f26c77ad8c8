"""
Протокол приёмника отрисовки / drawing sink protocol.

A drawing sink receives the scale factors from the render pipeline and the
primitive drawing commands from the encoding engine, then produces a
backend-specific artifact on :meth:`DrawingSink.finalize`.

Coordinates passed to the primitives are in module space (points, y grows
downward, origin at the top-left of the symbol's bounding box). Sinks
convert to pixels with the factors given to :meth:`DrawingSink.scale` and
offset by the padding they were constructed with.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

__all__ = ["DrawingSink"]


@runtime_checkable
class DrawingSink(Protocol):
    """
    Capability set every backend provides.

    Call order during one render:
        scale() -> init() -> bar()/text() ... -> finalize()
    """

    def scale(self, sx: float, sy: float) -> None:
        """Set horizontal/vertical pixel scale; called once before any primitive."""
        ...

    def init(self, width: float, height: float) -> None:
        """Allocate the drawing area for a ``width`` x ``height`` module-space box."""
        ...

    def bar(self, x: float, y: float, width: float, height: float, rgb: str) -> None:
        """Fill a rectangle (a bar or a matrix module)."""
        ...

    def text(self, x: float, y: float, string: str, rgb: str, size: float) -> None:
        """Draw ``string`` horizontally centred on ``x`` with its top at ``y``."""
        ...

    def finalize(self) -> Any:
        """Complete the artifact and return it."""
        ...
