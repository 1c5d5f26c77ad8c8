"""Null drawing sink, used only for raw extraction."""

from __future__ import annotations

from typing import Any, Mapping, Optional

__all__ = ["NullSink"]


class NullSink:
    """
    Accepts every drawing call and draws nothing.

    The engine still performs its pre-render initialization calls in raw
    mode; this sink exists to satisfy them.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self.options = dict(options or {})
        self.scale_x: float = 1
        self.scale_y: float = 1

    def scale(self, sx: float, sy: float) -> None:
        self.scale_x = sx
        self.scale_y = sy

    def init(self, width: float, height: float) -> None:
        pass

    def bar(self, x: float, y: float, width: float, height: float, rgb: str) -> None:
        pass

    def text(self, x: float, y: float, string: str, rgb: str, size: float) -> None:
        pass

    def finalize(self) -> None:
        return None
