"""
Извлечение сырых данных кодирования / raw encoding extraction.

Runs the engine in raw mode against a :class:`NullSink` and turns its stack
of per-segment dicts into plain records holding only the geometric fields.
Array views are copied so no record aliases engine storage.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Final, Iterable, List, Mapping, Optional

from .drawing.null import NullSink
from .engine import ArrayView, EncodingEngine, SymbologyEngine
from .exceptions import MissingFieldError

logger = logging.getLogger(__name__)

__all__ = ["RAW_FIELDS", "extract_raw", "clean_stack"]

RAW_FIELDS: Final[frozenset[str]] = frozenset(
    {"pixs", "pixx", "pixy", "sbs", "bbs", "bhs", "width", "height"}
)


def _owned(value: Any) -> Any:
    if isinstance(value, ArrayView):
        return value.materialize()
    if isinstance(value, (list, tuple)):
        return list(value)
    return value


def clean_stack(stack: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Convert engine stack entries into records, preserving order.

    Entries that are not mappings are dropped; correct engine output never
    contains them.
    """
    records: List[Dict[str, Any]] = []
    for index, entry in enumerate(stack):
        if not isinstance(entry, Mapping):
            logger.warning(
                "Dropping non-dictionary raw stack entry #%d (%s)", index, type(entry).__name__
            )
            continue
        records.append({key: _owned(value) for key, value in entry.items() if key in RAW_FIELDS})
    return records


def extract_raw(
    encoder: str,
    text: Any,
    options: Optional[Mapping[str, Any]] = None,
    engine: Optional[EncodingEngine] = None,
) -> List[Dict[str, Any]]:
    """
    Return the raw encoding records for ``text`` in symbology ``encoder``.

    Example:
        >>> extract_raw("code128", "12345", {})[0]["sbs"][:4]
        [2, 1, 1, 2]

    Raises:
        MissingFieldError: ``encoder`` or ``text`` is empty.
        EncodingError: from the engine, unmodified.
    """
    if not text:
        raise MissingFieldError("text")
    if not encoder:
        raise MissingFieldError("bcid")
    if engine is None:
        engine = SymbologyEngine()
    stack = engine(NullSink(), str(encoder), str(text), dict(options or {}), raw=True)
    records = clean_stack(stack or [])
    logger.debug("Raw extraction for %s: %d record(s)", encoder, len(records))
    return records
