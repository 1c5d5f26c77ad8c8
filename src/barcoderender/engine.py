"""
RU: Движок кодирования символик: текст + bcid -> геометрия штрихов/модулей.
EN: Encoding engine contract and the default, stateless implementation.

The render pipeline only depends on :class:`EncodingEngine`; any callable
with that shape can be injected (tests use doubles). :class:`SymbologyEngine`
covers common linear codes via python-barcode, QR Code via qrcode and PDF417
via pdf417gen.

Raw mode returns the engine stack: a list with one dict per rendered
segment. Array-valued fields are :class:`ArrayView` objects addressing a
sub-range of one backing list shared by the whole call; consumers must copy
what they keep (see :mod:`barcoderender.raw`).

Requirements: python-barcode, qrcode, pdf417gen
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Final, Iterator, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

import barcode as pybarcode
import pdf417gen
import qrcode
from barcode.errors import BarcodeNotFoundError
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q

from .drawing.protocols import DrawingSink
from .enums import POINTS_PER_INCH, Symbology
from .exceptions import EncodingError
from .options import to_number

logger = logging.getLogger(__name__)

__all__ = [
    "ArrayView",
    "EncodingEngine",
    "SymbologyEngine",
]

DEFAULT_LINEAR_HEIGHT_INCHES: Final[float] = 1.0
DEFAULT_TEXT_SIZE: Final[float] = 10.0
TEXT_GAP_POINTS: Final[float] = 2.0
MATRIX_MODULE_POINTS: Final[float] = 2.0
PDF417_ROW_MULTIPLIER: Final[int] = 3
PDF417_DEFAULT_COLUMNS: Final[int] = 6
# 100 inches
MAX_EXTENT_POINTS: Final[float] = 7200.0
DEFAULT_COLOR: Final[str] = "000000"

_QR_EC_LEVELS: Final[Dict[str, int]] = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


@dataclass(frozen=True)
class ArrayView:
    """
    Window onto ``backing[offset:offset + length]`` without copying.

    The backing sequence belongs to the engine; use :meth:`materialize`
    to obtain an owned list.
    """

    backing: Sequence[Any]
    offset: int
    length: int

    def materialize(self) -> List[Any]:
        return list(self.backing[self.offset : self.offset + self.length])

    def __len__(self) -> int:
        return self.length

    def __iter__(self) -> Iterator[Any]:
        return iter(self.backing[self.offset : self.offset + self.length])


@runtime_checkable
class EncodingEngine(Protocol):
    """
    Turns ``(bcid, text, options)`` into drawing calls, or into raw data.

    Must be stateless per call. Raises :class:`EncodingError` for unknown
    symbologies, malformed payloads or out-of-range parameters.
    """

    def __call__(
        self,
        sink: DrawingSink,
        bcid: str,
        text: str,
        options: Mapping[str, Any],
        raw: bool = False,
    ) -> Optional[List[Any]]: ...


@dataclass
class _LinearSymbol:
    sbs: List[int]
    human_text: str
    module_width: float
    bar_height: float


@dataclass
class _MatrixSymbol:
    pixs: List[int]
    pixx: int
    pixy: int
    module_width: float
    module_height: float
    extra: Dict[str, Any] = field(default_factory=dict)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("", "false", "0", "no", "off")
    return bool(value)


def _dimension(opts: Mapping[str, Any], key: str, symbology: Symbology) -> Optional[float]:
    """Numeric ``width``/``height`` option in inches; ``None`` when absent."""
    value = opts.get(key)
    if value is None:
        return None
    n = to_number(value)
    if n is None:
        raise EncodingError(f"invalid {key} {value!r}", bcid=symbology.value, context={key: value})
    return float(n)


def _runs(modules: str) -> List[int]:
    """Run-length encode a module string into widths alternating bar, space, bar...

    ``1`` and ``G`` (guard) are bars. A leading space yields a zero-width first bar.
    """
    runs: List[int] = []
    current_is_bar = True
    count = 0
    for ch in modules:
        is_bar = ch in "1G"
        if is_bar == current_is_bar:
            count += 1
        else:
            runs.append(count)
            current_is_bar = is_bar
            count = 1
    runs.append(count)
    return runs


class SymbologyEngine:
    """
    Default encoding engine.

    Examples:
        >>> engine = SymbologyEngine()
        >>> stack = engine(NullSink(), "code128", "12345", {}, raw=True)
        >>> sorted(stack[0])
        ['bbs', 'bhs', 'height', 'opt', 'ren', 'sbs', 'txt', 'width']
    """

    _pybarcode_support: Dict[Symbology, str] = {
        Symbology.CODE128: "code128",
        Symbology.CODE39: "code39",
        Symbology.EAN13: "ean13",
        Symbology.EAN8: "ean8",
        Symbology.EAN14: "ean14",
        Symbology.UPCA: "upca",
        Symbology.ISBN: "isbn13",
        Symbology.ISSN: "issn",
        Symbology.INTERLEAVED2OF5: "itf",
        Symbology.CODABAR: "codabar",
        Symbology.GS1_128: "gs1_128",
        Symbology.PZN: "pzn",
    }

    def __call__(
        self,
        sink: DrawingSink,
        bcid: str,
        text: str,
        options: Mapping[str, Any],
        raw: bool = False,
    ) -> Optional[List[Any]]:
        symbology = self.lookup(bcid)
        text = str(text)
        opts = dict(options or {})

        symbol: _LinearSymbol | _MatrixSymbol
        if symbology.kind == "linear":
            symbol = self._encode_linear(symbology, text, opts)
        elif symbology is Symbology.QRCODE:
            symbol = self._encode_qrcode(text, opts)
        else:
            symbol = self._encode_pdf417(text, opts)

        include_text = _flag(opts.get("includetext")) and isinstance(symbol, _LinearSymbol)
        text_size = to_number(opts.get("textsize")) or DEFAULT_TEXT_SIZE
        width, height = self._extent(symbol, include_text, text_size)
        if not (math.isfinite(width) and math.isfinite(height)) or max(width, height) > MAX_EXTENT_POINTS:
            raise EncodingError(
                "symbol dimensions out of range",
                bcid=symbology.value,
                context={"width": width, "height": height},
            )
        sink.init(width, height)
        logger.debug("Encoded %s: %.1fx%.1f pt", symbology.value, width, height)

        if raw:
            return [self._raw_entry(symbol, opts)]

        barcolor = str(opts.get("barcolor") or DEFAULT_COLOR)
        if isinstance(symbol, _LinearSymbol):
            self._draw_linear(sink, symbol, barcolor)
            if include_text:
                label = str(opts["alttext"]) if opts.get("alttext") else symbol.human_text
                textcolor = str(opts.get("textcolor") or DEFAULT_COLOR)
                sink.text(width / 2, symbol.bar_height + TEXT_GAP_POINTS, label, textcolor, text_size)
        else:
            self._draw_matrix(sink, symbol, barcolor)
        return None

    @classmethod
    def lookup(cls, bcid: str) -> Symbology:
        try:
            return Symbology(bcid)
        except ValueError:
            raise EncodingError("unknown barcode type", bcid=str(bcid)) from None

    @classmethod
    def supported_symbologies(cls) -> set[Symbology]:
        return set(Symbology)

    # --- Encoding

    def _encode_linear(self, symbology: Symbology, text: str, opts: Dict[str, Any]) -> _LinearSymbol:
        name = self._pybarcode_support[symbology]
        try:
            bclass = pybarcode.get_barcode_class(name)
            code = bclass(text)
            modules = "".join(code.build())
            human_text = code.get_fullcode()
        except BarcodeNotFoundError as e:
            raise EncodingError("barcode class not found", bcid=symbology.value) from e
        except Exception as e:
            raise EncodingError(f"cannot encode {text!r}: {e}", bcid=symbology.value) from e

        sbs = _runs(modules)
        total_modules = sum(sbs)
        width_in = _dimension(opts, "width", symbology)
        if width_in is not None and width_in < 0:
            raise EncodingError("width must not be negative", bcid=symbology.value, context={"width": width_in})
        module_width = (width_in * POINTS_PER_INCH / total_modules) if width_in and total_modules else 1.0
        height_in = _dimension(opts, "height", symbology) or DEFAULT_LINEAR_HEIGHT_INCHES
        if height_in <= 0:
            raise EncodingError("height must be positive", bcid=symbology.value, context={"height": height_in})
        return _LinearSymbol(
            sbs=sbs,
            human_text=human_text,
            module_width=module_width,
            bar_height=height_in * POINTS_PER_INCH,
        )

    def _encode_qrcode(self, text: str, opts: Dict[str, Any]) -> _MatrixSymbol:
        eclevel = str(opts.get("eclevel") or "M").upper()
        if eclevel not in _QR_EC_LEVELS:
            raise EncodingError(f"invalid eclevel {eclevel!r}", bcid=Symbology.QRCODE.value)
        version = to_number(opts.get("version"))
        try:
            qr = qrcode.QRCode(
                version=int(version) if version else None,
                error_correction=_QR_EC_LEVELS[eclevel],
                border=0,
            )
            qr.add_data(text)
            qr.make(fit=not version)
            matrix = qr.get_matrix()
        except Exception as e:
            raise EncodingError(f"cannot encode {text!r}: {e}", bcid=Symbology.QRCODE.value) from e
        return _MatrixSymbol(
            pixs=[1 if cell else 0 for row in matrix for cell in row],
            pixx=len(matrix[0]) if matrix else 0,
            pixy=len(matrix),
            module_width=MATRIX_MODULE_POINTS,
            module_height=MATRIX_MODULE_POINTS,
            extra={"version": qr.version, "eclevel": eclevel},
        )

    def _encode_pdf417(self, text: str, opts: Dict[str, Any]) -> _MatrixSymbol:
        requested = to_number(opts.get("columns"))
        security_level = int(to_number(opts.get("eclevel")) or 2)
        # pdf417gen needs at least 3 rows: short payloads get fewer columns
        candidates = [int(requested)] if requested else list(range(PDF417_DEFAULT_COLUMNS, 0, -1))
        last_error: Optional[Exception] = None
        for columns in candidates:
            try:
                codes = pdf417gen.encode(text, columns=columns, security_level=security_level)
                break
            except Exception as e:
                last_error = e
        else:
            raise EncodingError(f"cannot encode {text!r}: {last_error}", bcid=Symbology.PDF417.value) from last_error
        rows = ["".join(format(value, "b") for value in row) for row in codes]
        return _MatrixSymbol(
            pixs=[1 if bit == "1" else 0 for row in rows for bit in row],
            pixx=len(rows[0]) if rows else 0,
            pixy=len(rows),
            module_width=1.0,
            module_height=float(PDF417_ROW_MULTIPLIER),
            extra={"columns": columns, "eclevel": security_level},
        )

    # --- Geometry

    @staticmethod
    def _extent(symbol: _LinearSymbol | _MatrixSymbol, include_text: bool, text_size: float) -> tuple[float, float]:
        if isinstance(symbol, _LinearSymbol):
            width = sum(symbol.sbs) * symbol.module_width
            height = symbol.bar_height
            if include_text:
                height += TEXT_GAP_POINTS + text_size
            return width, height
        return symbol.pixx * symbol.module_width, symbol.pixy * symbol.module_height

    @staticmethod
    def _draw_linear(sink: DrawingSink, symbol: _LinearSymbol, rgb: str) -> None:
        x = 0.0
        for i, run in enumerate(symbol.sbs):
            w = run * symbol.module_width
            if i % 2 == 0 and run:
                sink.bar(x, 0, w, symbol.bar_height, rgb)
            x += w

    @staticmethod
    def _draw_matrix(sink: DrawingSink, symbol: _MatrixSymbol, rgb: str) -> None:
        mw, mh = symbol.module_width, symbol.module_height
        for y in range(symbol.pixy):
            row = symbol.pixs[y * symbol.pixx : (y + 1) * symbol.pixx]
            x = 0
            while x < symbol.pixx:
                if not row[x]:
                    x += 1
                    continue
                start = x
                while x < symbol.pixx and row[x]:
                    x += 1
                sink.bar(start * mw, y * mh, (x - start) * mw, mh, rgb)

    # --- Raw stack

    @staticmethod
    def _raw_entry(symbol: _LinearSymbol | _MatrixSymbol, opts: Dict[str, Any]) -> Dict[str, Any]:
        if isinstance(symbol, _LinearSymbol):
            nbars = (len(symbol.sbs) + 1) // 2
            height_in = symbol.bar_height / POINTS_PER_INCH
            # sbs, bhs and bbs share one backing list
            backing: List[Any] = list(symbol.sbs) + [height_in] * nbars + [0.0] * nbars
            nsbs = len(symbol.sbs)
            return {
                "ren": "renlinear",
                "sbs": ArrayView(backing, 0, nsbs),
                "bhs": ArrayView(backing, nsbs, nbars),
                "bbs": ArrayView(backing, nsbs + nbars, nbars),
                "txt": [symbol.human_text],
                "width": sum(symbol.sbs) * symbol.module_width / POINTS_PER_INCH,
                "height": height_in,
                "opt": opts,
            }
        backing = list(symbol.pixs)
        return {
            "ren": "renmatrix",
            "pixs": ArrayView(backing, 0, len(backing)),
            "pixx": symbol.pixx,
            "pixy": symbol.pixy,
            "width": symbol.pixx * symbol.module_width / POINTS_PER_INCH,
            "height": symbol.pixy * symbol.module_height / POINTS_PER_INCH,
            "opt": {**opts, **symbol.extra},
        }
