"""
drawing

Бэкенды отрисовки / drawing backends.

Public API:
    - DrawingSink: protocol every backend satisfies
    - RasterSink: PNG bytes (server side)
    - CanvasSink, Canvas, SurfaceRegistry: drawable surfaces (client side)
    - NullSink: no drawing, used by raw extraction

Зависимости:
    Pillow
"""

from .canvas import Canvas, CanvasSink, SurfaceRegistry, default_registry
from .null import NullSink
from .protocols import DrawingSink
from .raster import RasterSink

__all__ = [
    "DrawingSink",
    "RasterSink",
    "CanvasSink",
    "Canvas",
    "SurfaceRegistry",
    "default_registry",
    "NullSink",
]
