"""
enums.py

(Краткое RU: Перечисления символик и ориентаций, поддерживаемых движком по умолчанию.)

EN: Domain enums for the rendering layer: symbology identifiers (``bcid``)
understood by the default engine, and image rotations.

NO encoding or drawing logic here.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Final, Literal

_logger: Final[logging.Logger] = logging.getLogger(__name__)

POINTS_PER_INCH: Final[float] = 72.0
MM_PER_INCH: Final[float] = 25.4


class Rotation(str, Enum):
    NORMAL = "N"
    RIGHT = "R"  # 90° clockwise
    LEFT = "L"  # 90° counter-clockwise
    INVERTED = "I"  # 180°

    @classmethod
    def parse(cls, value: Any) -> "Rotation":
        """Map an option value to a rotation; empty or unknown values mean ``N``."""
        if isinstance(value, Rotation):
            return value
        if not value:
            return cls.NORMAL
        try:
            return cls(str(value).upper())
        except ValueError:
            _logger.warning("Unknown rotate value %r, using N", value)
            return cls.NORMAL


class Symbology(str, Enum):
    CODE128 = "code128"
    CODE39 = "code39"
    EAN13 = "ean13"
    EAN8 = "ean8"
    EAN14 = "ean14"
    UPCA = "upca"
    ISBN = "isbn"
    ISSN = "issn"
    INTERLEAVED2OF5 = "interleaved2of5"
    CODABAR = "rationalizedCodabar"
    GS1_128 = "gs1-128"
    PZN = "pzn"
    QRCODE = "qrcode"
    PDF417 = "pdf417"

    @property
    def kind(self) -> Literal["linear", "matrix", "stacked"]:
        if self is Symbology.QRCODE:
            return "matrix"
        if self is Symbology.PDF417:
            return "stacked"
        return "linear"

    def localized_name(self, lang: Literal["ru", "en"] = "en") -> str:
        names_en = {
            Symbology.CODE128: "Code 128",
            Symbology.CODE39: "Code 39",
            Symbology.EAN13: "EAN-13",
            Symbology.EAN8: "EAN-8",
            Symbology.EAN14: "EAN-14",
            Symbology.UPCA: "UPC-A",
            Symbology.ISBN: "ISBN",
            Symbology.ISSN: "ISSN",
            Symbology.INTERLEAVED2OF5: "Interleaved 2 of 5",
            Symbology.CODABAR: "Codabar",
            Symbology.GS1_128: "GS1-128",
            Symbology.PZN: "PZN",
            Symbology.QRCODE: "QR Code",
            Symbology.PDF417: "PDF417",
        }
        names_ru = {
            Symbology.EAN14: "EAN-14 (товар/короб)",
            Symbology.INTERLEAVED2OF5: "Чередующийся 2 из 5",
            Symbology.QRCODE: "QR код",
        }
        if lang == "ru":
            return names_ru.get(self, names_en[self])
        return names_en[self]
