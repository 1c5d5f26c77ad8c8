"""
HTTP-адаптер / HTTP request adapter.

Maps a request's query string to an options record and answers with a PNG
(200) or the error text (400). Exposed as a plain function, as a WSGI
application (:func:`make_app`) and as a small blocking server
(:func:`serve`) built on ``wsgiref``.

Example:
    >>> resp = handle_request("bcid=code128&text=12345&includetext")
    >>> resp.status, resp.headers[0]
    (200, ('Content-Type', 'image/png'))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl

from . import get_config
from .api import to_buffer
from .engine import EncodingEngine

logger = logging.getLogger(__name__)

__all__ = ["HttpResponse", "options_from_query", "handle_request", "make_app", "serve"]

WsgiApp = Callable[[Dict[str, Any], Callable[..., Any]], Iterable[bytes]]


@dataclass(frozen=True)
class HttpResponse:
    status: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def status_line(self) -> str:
        return f"{self.status} {HTTPStatus(self.status).phrase}"


def options_from_query(query_string: str, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Parse a query string into options.

    Flag-style parameters (present with an empty value) become ``True``.
    ``overrides`` take precedence over the query.
    """
    options: Dict[str, Any] = {}
    for key, value in parse_qsl(query_string.lstrip("?"), keep_blank_values=True):
        options[key] = True if value == "" else value
    if overrides:
        options.update(overrides)
    return options


def handle_request(
    query_string: str,
    overrides: Optional[Mapping[str, Any]] = None,
    engine: Optional[EncodingEngine] = None,
) -> HttpResponse:
    """Render the barcode described by ``query_string``."""
    options = options_from_query(query_string, overrides)
    responses: List[HttpResponse] = []

    def done(err: Optional[BaseException], png: Optional[bytes]) -> None:
        if err is not None or png is None:
            logger.warning("Request %r failed: %s", query_string, err)
            body = str(err).encode("utf-8")
            responses.append(
                HttpResponse(
                    400,
                    [("Content-Type", "text/plain; charset=utf-8"), ("Content-Length", str(len(body)))],
                    body,
                )
            )
        else:
            responses.append(
                HttpResponse(200, [("Content-Type", "image/png"), ("Content-Length", str(len(png)))], png)
            )

    to_buffer(options, done, engine)
    return responses[0]


def make_app(
    overrides: Optional[Mapping[str, Any]] = None,
    engine: Optional[EncodingEngine] = None,
) -> WsgiApp:
    """WSGI application answering every path with :func:`handle_request`."""
    fixed = dict(overrides or {})

    def app(environ: Dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        response = handle_request(environ.get("QUERY_STRING", ""), fixed, engine)
        start_response(response.status_line, response.headers)
        return [response.body]

    return app


def serve(
    host: Optional[str] = None,
    port: Optional[int] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> None:  # pragma: no cover - blocking loop
    """Serve :func:`make_app` with ``wsgiref``; unset arguments come from configuration."""
    from wsgiref.simple_server import make_server

    config = get_config()
    host = host or config["server_host"]
    port = port or int(config["server_port"])
    if overrides is None:
        overrides = config.get("server_overrides") or {}

    with make_server(host, port, make_app(overrides)) as httpd:
        logger.info("Serving barcodes on http://%s:%d/", host, port)
        httpd.serve_forever()
