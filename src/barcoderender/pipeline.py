"""
Конвейер рендеринга / render pipeline.

``render(options, sink)`` validates the required options, splits off the
engine pass-through options, converts millimetre dimensions to inches,
configures the sink's scale, runs the encoding engine against the sink and
returns whatever the sink finalizes to.

Synchronous, no shared state. Engine errors propagate unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Final, Mapping, Optional

from .drawing.protocols import DrawingSink
from .engine import EncodingEngine, SymbologyEngine
from .enums import MM_PER_INCH
from .exceptions import MissingFieldError
from .options import pass_through, resolve_scale, to_number

logger = logging.getLogger(__name__)

__all__ = ["render", "prepare_engine_options"]

# Height of this symbology is already expressed in millimetres.
MM_HEIGHT_SYMBOLOGIES: Final[frozenset[str]] = frozenset({"pharmacode2"})

DEFAULT_HEIGHT_INCHES: Final[float] = 0.5


def prepare_engine_options(bcid: str, options: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build the pass-through options forwarded to the engine.

    - reserved keys are removed
    - ``alttext`` forces ``includetext``
    - numeric ``height``/``width`` convert from mm to inches (``height`` of
      pharmacode2 stays in mm)
    """
    opts = pass_through(options)

    if opts.get("alttext"):
        opts["includetext"] = True

    height = to_number(opts.get("height"))
    if height and bcid not in MM_HEIGHT_SYMBOLOGIES:
        opts["height"] = height / MM_PER_INCH or DEFAULT_HEIGHT_INCHES

    width = to_number(opts.get("width"))
    if width:
        opts["width"] = width / MM_PER_INCH or 0

    return opts


def render(
    options: Mapping[str, Any],
    sink: DrawingSink,
    engine: Optional[EncodingEngine] = None,
) -> Any:
    """
    Render a barcode through ``sink``.

    Args:
        options: Options record, normally already passed through
            :func:`barcoderender.options.fixup_options`.
        sink: Drawing backend.
        engine: Encoding engine; a fresh :class:`SymbologyEngine` if omitted.

    Returns:
        ``sink.finalize()``, treated as opaque.

    Raises:
        MissingFieldError: ``text`` or ``bcid`` is empty or absent.
        EncodingError: from the engine, unmodified.
    """
    text = options.get("text")
    bcid = options.get("bcid")
    if not text:
        raise MissingFieldError("text")
    if not bcid:
        raise MissingFieldError("bcid")

    bcid = str(bcid)
    scale_x, scale_y = resolve_scale(options)
    engine_options = prepare_engine_options(bcid, options)
    logger.debug(
        "Rendering bcid=%s scale=%sx%s engine options=%s",
        bcid,
        scale_x,
        scale_y,
        sorted(engine_options),
    )

    sink.scale(scale_x, scale_y)
    if engine is None:
        engine = SymbologyEngine()
    engine(sink, bcid, str(text), engine_options)
    return sink.finalize()
