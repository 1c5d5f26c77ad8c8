"""
Исключения конвейера рендеринга штрихкодов.

Иерархия:
    BarcodeRenderError (базовое)
    ├── MissingFieldError            - нет text или bcid
    ├── InvalidSurfaceReferenceError - to_canvas не нашёл поверхность
    └── EncodingError                - движок отклонил символику/данные/параметры

Example:
    >>> from barcoderender.exceptions import BarcodeRenderError
    >>> try:
    ...     render({"bcid": "", "text": "123"}, sink)
    ... except BarcodeRenderError as e:
    ...     logger.error("Render failed: %s", e)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__: list[str] = [
    "BarcodeRenderError",
    "MissingFieldError",
    "InvalidSurfaceReferenceError",
    "EncodingError",
]


class BarcodeRenderError(Exception):
    """
    Base class for every error raised by this package.

    Attributes:
        message: Human-readable description.
        bcid: Symbology identifier involved, if known.
        context: Extra key/value details for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        bcid: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.bcid = bcid
        self.context = context or {}

    def __str__(self) -> str:
        parts = [self.__class__.__name__, ": ", self.message]
        if self.bcid:
            parts.append(f" [bcid={self.bcid}]")
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f" ({ctx_str})")
        return "".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"bcid={self.bcid!r}, "
            f"context={self.context!r})"
        )


class MissingFieldError(BarcodeRenderError):
    """
    A required option is empty or absent.

    Raised before the encoding engine is invoked.

    Attributes:
        field: ``"text"`` or ``"bcid"``.
    """

    _DESCRIPTIONS: Dict[str, str] = {
        "text": "bar code text not specified",
        "bcid": "bar code type not specified",
    }

    def __init__(self, field: str) -> None:
        super().__init__(
            self._DESCRIPTIONS.get(field, f"required option '{field}' not specified"),
            context={"field": field},
        )
        self.field = field


class InvalidSurfaceReferenceError(BarcodeRenderError):
    """Neither canvas argument resolves to a drawable surface."""

    def __init__(self, reference: Any = None) -> None:
        detail = f"{reference!r}" if isinstance(reference, str) else type(reference).__name__
        super().__init__("not a canvas", context={"reference": detail})
        self.reference = reference


class EncodingError(BarcodeRenderError):
    """
    The encoding engine rejected the symbology, payload or parameters.

    Propagated unmodified through the render pipeline.
    """
