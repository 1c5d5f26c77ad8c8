"""
Нормализация опций рендеринга / option normalization.

Options are plain ``dict`` records keyed by case-sensitive option names.
:func:`fixup_options` canonicalizes the keys that the drawing backends
consume (scale factors, the four paddings, background color) and must run
once before the record is handed to a drawing sink: paddings are multiplied
by the scale factors, so a second pass would scale them again.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Final, FrozenSet, MutableMapping, Optional, TypedDict, Union

logger = logging.getLogger(__name__)

__all__ = [
    "RenderOptions",
    "RESERVED_OPTIONS",
    "DEFAULT_SCALE",
    "to_number",
    "resolve_scale",
    "resolve_padding",
    "cmyk_to_rgb",
    "fixup_options",
    "pass_through",
]

Number = Union[int, float]

DEFAULT_SCALE: Final[int] = 2

# Consumed by this layer and the drawing sinks; never forwarded to the engine.
RESERVED_OPTIONS: Final[FrozenSet[str]] = frozenset(
    {
        "bcid",
        "text",
        "scale",
        "scaleX",
        "scaleY",
        "rotate",
        "padding",
        "paddingwidth",
        "paddingheight",
        "paddingtop",
        "paddingleft",
        "paddingright",
        "paddingbottom",
        "backgroundcolor",
    }
)

_CMYK_RE: Final[re.Pattern[str]] = re.compile(r"^[0-9a-fA-F]{8}$")


class RenderOptions(TypedDict, total=False):
    """
    Типобезопасные опции рендеринга.

    Only the keys this layer interprets are listed; any other key is a
    symbology-specific parameter passed to the engine verbatim.
    """

    bcid: str  # идентификатор символики (обязателен)
    text: str  # кодируемые данные (обязательны)
    scale: float
    scaleX: float
    scaleY: float
    rotate: str  # N | R | L | I
    padding: float
    paddingwidth: float
    paddingheight: float
    paddingtop: float
    paddingleft: float
    paddingright: float
    paddingbottom: float
    backgroundcolor: str  # RRGGBB или CCMMYYKK
    height: float  # мм
    width: float  # мм
    includetext: bool
    alttext: str


def _fits_float(value: int) -> bool:
    try:
        float(value)
    except OverflowError:
        return False
    return True


def to_number(value: Any) -> Optional[Number]:
    """
    Coerce an option value to a number.

    Numeric strings (as delivered by query strings) are parsed, an empty
    string is ``0``. Returns ``None`` for absent, non-numeric or non-finite
    values (NaN, infinities, overflowing literals such as ``"1e400"``).

    Example:
        >>> to_number("12.7"), to_number(3), to_number("abc")
        (12.7, 3, None)
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value if _fits_float(value) else None
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return 0
        try:
            n = int(s)
        except ValueError:
            pass
        else:
            return n if _fits_float(n) else None
        try:
            f = float(s)
        except ValueError:
            return None
        return f if math.isfinite(f) else None
    return None


def resolve_scale(options: MutableMapping[str, Any]) -> tuple[Number, Number]:
    """Return ``(scaleX, scaleY)``: scaleX falls back to scale (default 2), scaleY to scaleX."""
    scale = to_number(options.get("scale")) or DEFAULT_SCALE
    scale_x = to_number(options.get("scaleX")) or scale
    scale_y = to_number(options.get("scaleY")) or scale_x
    return scale_x, scale_y


def resolve_padding(side: Any, dimensional: Any, overall: Any, scale: Number) -> Number:
    """
    Resolve one padding side in pixels.

    Precedence: explicit side > paddingwidth/paddingheight > padding > 0.
    A zero at a higher level still wins over lower levels.
    """
    for candidate in (side, dimensional):
        if candidate is not None:
            n = to_number(candidate)
            if n is not None:
                return n * scale
    n = to_number(overall)
    return n * scale if n else 0


def cmyk_to_rgb(value: Any) -> Optional[str]:
    """
    Convert an 8-hex-digit CMYK string to 6-hex-digit RGB.

    Returns ``None`` when ``value`` is not 8 hex digits.

    Example:
        >>> cmyk_to_rgb("00000081")
        '7e7e7e'
        >>> cmyk_to_rgb("ffffff") is None
        True
    """
    if not isinstance(value, str) or not _CMYK_RE.match(value):
        return None
    c, m, y, k = (int(value[i : i + 2], 16) / 255 for i in range(0, 8, 2))
    r = math.floor((1 - c) * (1 - k) * 255)
    g = math.floor((1 - m) * (1 - k) * 255)
    b = math.floor((1 - y) * (1 - k) * 255)
    return f"{r:02x}{g:02x}{b:02x}"


def fixup_options(options: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """
    Canonicalize scale, padding and background color in place.

    - ``scaleX``/``scaleY`` are filled with their effective values.
    - ``paddingleft/right`` become pixels via scaleX, ``paddingtop/bottom``
      via scaleY.
    - A CMYK ``backgroundcolor`` is rewritten as RGB; anything else is left
      untouched.

    Never raises. Returns the same mapping.
    """
    scale_x, scale_y = resolve_scale(options)
    options["scaleX"] = scale_x
    options["scaleY"] = scale_y

    padding = options.get("padding")
    paddingwidth = options.get("paddingwidth")
    paddingheight = options.get("paddingheight")
    options["paddingleft"] = resolve_padding(options.get("paddingleft"), paddingwidth, padding, scale_x)
    options["paddingright"] = resolve_padding(options.get("paddingright"), paddingwidth, padding, scale_x)
    options["paddingtop"] = resolve_padding(options.get("paddingtop"), paddingheight, padding, scale_y)
    options["paddingbottom"] = resolve_padding(options.get("paddingbottom"), paddingheight, padding, scale_y)

    rgb = cmyk_to_rgb(options.get("backgroundcolor"))
    if rgb is not None:
        logger.debug("backgroundcolor %s (CMYK) -> %s", options["backgroundcolor"], rgb)
        options["backgroundcolor"] = rgb

    return options


def pass_through(options: MutableMapping[str, Any]) -> Dict[str, Any]:
    """Copy every non-reserved option into a new dict, order preserved."""
    return {k: v for k, v in options.items() if k not in RESERVED_OPTIONS}
