"""
Публичные точки входа / public entry points.

- :func:`to_buffer` / :func:`to_buffer_async` - PNG bytes
- :func:`to_canvas` - draw onto a :class:`Canvas`
- :func:`raw` - raw encoding records
- :func:`render` / :func:`fixup_options` - building blocks for custom sinks

Internally every buffer render produces a :class:`RenderResult`; the
callback and Future conventions are synthesized from it here and nowhere
else.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

from . import get_config
from .drawing.canvas import Canvas, CanvasSink, SurfaceRegistry, default_registry
from .drawing.raster import RasterSink
from .engine import EncodingEngine
from .exceptions import InvalidSurfaceReferenceError
from .options import fixup_options
from .pipeline import render
from .raw import extract_raw

logger = logging.getLogger(__name__)

__all__ = [
    "RenderResult",
    "fixup_options",
    "render",
    "to_buffer",
    "to_buffer_async",
    "to_canvas",
    "raw",
]

T = TypeVar("T")

BufferCallback = Callable[[Optional[BaseException], Optional[bytes]], Any]


@dataclass(frozen=True)
class RenderResult(Generic[T]):
    """Success value or error of one render; exactly one of them is set."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def capture(cls, fn: Callable[..., T], *args: Any, **kwargs: Any) -> "RenderResult[T]":
        try:
            return cls(value=fn(*args, **kwargs))
        except Exception as e:
            logger.debug("Render failed: %s", e)
            return cls(error=e)


def _render_png(options: Mapping[str, Any], engine: Optional[EncodingEngine]) -> bytes:
    opts = fixup_options(dict(options))
    compress_level = int(get_config().get("png_compress_level", 6))
    return render(opts, RasterSink(opts, compress_level=compress_level), engine)


def to_buffer(
    options: Mapping[str, Any],
    callback: Optional[BufferCallback] = None,
    engine: Optional[EncodingEngine] = None,
) -> Optional["Future[bytes]"]:
    """
    Render ``options`` to PNG bytes.

    Args:
        options: Options record; copied, never mutated.
        callback: ``callback(err, png)``, called exactly once. ``png`` is
            ``None`` when ``err`` is set.
        engine: Encoding engine override.

    Returns:
        ``None`` when a callback is given, otherwise a completed
        ``concurrent.futures.Future`` holding the PNG or the error.

    Example:
        >>> png = to_buffer({"bcid": "qrcode", "text": "hello"}).result()
    """
    result: RenderResult[bytes] = RenderResult.capture(_render_png, options, engine)
    if callback is not None:
        callback(result.error, result.value)
        return None

    future: Future[bytes] = Future()
    if result.error is not None:
        future.set_exception(result.error)
    else:
        future.set_result(result.value)  # type: ignore[arg-type]
    return future


async def to_buffer_async(
    options: Mapping[str, Any],
    engine: Optional[EncodingEngine] = None,
) -> bytes:
    """Awaitable :func:`to_buffer`; rendering and PNG compression run in the default executor."""
    loop = asyncio.get_running_loop()
    result: RenderResult[bytes] = await loop.run_in_executor(
        None, lambda: RenderResult.capture(_render_png, options, engine)
    )
    return result.unwrap()


def _resolve_surface(reference: Any, registry: SurfaceRegistry) -> Any:
    if isinstance(reference, str):
        canvas = registry.lookup(reference)
        if canvas is None:
            raise InvalidSurfaceReferenceError(reference)
        return canvas
    return reference


def _split_canvas_args(first: Any, second: Any, registry: SurfaceRegistry) -> Tuple[Canvas, Dict[str, Any]]:
    """Resolve ``(canvas, options)`` given in either order; strings are surface references."""
    if isinstance(second, str):
        second = _resolve_surface(second, registry)
    elif isinstance(first, str):
        first = _resolve_surface(first, registry)

    if isinstance(first, Canvas):
        canvas, options = first, second
    elif isinstance(second, Canvas):
        canvas, options = second, first
    else:
        raise InvalidSurfaceReferenceError(second)

    if not isinstance(options, Mapping):
        raise TypeError(f"options must be a mapping, got {type(options).__name__}")
    return canvas, dict(options)


def to_canvas(
    first: Any,
    second: Any,
    engine: Optional[EncodingEngine] = None,
    registry: Optional[SurfaceRegistry] = None,
) -> Canvas:
    """
    Render onto a canvas, synchronously.

    Accepts ``(canvas, options)`` or ``(options, canvas)``. A string in
    either position is looked up in ``registry`` (identifier, ``#id`` or
    ``.class``).

    Returns:
        The canvas, resized and redrawn.

    Raises:
        InvalidSurfaceReferenceError: no drawable surface among the arguments.
    """
    canvas, options = _split_canvas_args(first, second, registry or default_registry)
    opts = fixup_options(options)
    return render(opts, CanvasSink(opts, canvas), engine)


def raw(
    encoder: Any,
    text: Any = None,
    options: Optional[Mapping[str, Any]] = None,
    engine: Optional[EncodingEngine] = None,
) -> List[Dict[str, Any]]:
    """
    Raw encoding records.

    Called either as ``raw(options)`` with ``bcid``/``text`` inside the
    options, or as ``raw(encoder, text, options)``.
    """
    if isinstance(encoder, Mapping) and text is None and options is None:
        opts = dict(encoder)
        return extract_raw(opts.get("bcid"), opts.get("text"), opts, engine)
    return extract_raw(encoder, text, options, engine)
