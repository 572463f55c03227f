"""WSGI middleware that logs each request with its status and duration."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Iterator
from urllib.parse import quote

StartResponse = Callable[..., Any]
WSGIApp = Callable[[dict, StartResponse], Iterable[bytes]]

_SECOND_NS = 1_000_000_000
_MINUTE_NS = 60 * _SECOND_NS
_HOUR_NS = 60 * _MINUTE_NS


def _fixed(ns: int, unit: int, digits: int) -> str:
    whole, fraction = divmod(ns, unit)
    fraction_text = f"{fraction:0{digits}d}".rstrip("0")
    return f"{whole}.{fraction_text}" if fraction_text else str(whole)


def _format_duration(ns: int) -> str:
    if ns == 0:
        return "0s"
    if ns < 1_000:
        return f"{ns}ns"
    if ns < 1_000_000:
        return _fixed(ns, 1_000, 3) + "µs"
    if ns < _SECOND_NS:
        return _fixed(ns, 1_000_000, 6) + "ms"
    hours, rest = divmod(ns, _HOUR_NS)
    minutes, rest = divmod(rest, _MINUTE_NS)
    text = _fixed(rest, _SECOND_NS, 9) + "s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return text


def _remote_address(environ: dict[str, Any]) -> str:
    address = environ.get("REMOTE_ADDR", "")
    port = environ.get("REMOTE_PORT")
    return f"{address}:{port}" if port else address


def _request_uri(environ: dict[str, Any]) -> str:
    for key in ("REQUEST_URI", "RAW_URI"):
        if environ.get(key):
            return environ[key]
    path = quote(environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", ""))
    query = environ.get("QUERY_STRING", "")
    return f"{path}?{query}" if query else path


class _LoggedBody:
    def __init__(self, body: Iterable[bytes], on_close: Callable[[], None]) -> None:
        self._body = body
        self._on_close = on_close
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._body)

    def close(self) -> None:
        try:
            close = getattr(self._body, "close", None)
            if close is not None:
                close()
        finally:
            if not self._closed:
                self._closed = True
                self._on_close()


class LoggingMiddleware:
    """Logs address, method, URI, protocol, status and elapsed time per request."""

    def __init__(self, app: WSGIApp, logger: logging.Logger | None = None) -> None:
        self.app = app
        self.logger = logger or logging.getLogger(__name__)

    def __call__(self, environ: dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
        started = time.perf_counter_ns()
        status_code = 200

        def recording_start_response(status: str, headers: list, exc_info: Any = None) -> Any:
            nonlocal status_code
            status_code = int(status.split(" ", 1)[0])
            if exc_info is None:
                return start_response(status, headers)
            return start_response(status, headers, exc_info)

        def log() -> None:
            self.logger.info(
                "[%s] %s %s %s - %d %s",
                _remote_address(environ),
                environ.get("REQUEST_METHOD", ""),
                _request_uri(environ),
                environ.get("SERVER_PROTOCOL", ""),
                status_code,
                _format_duration(time.perf_counter_ns() - started),
            )

        return _LoggedBody(self.app(environ, recording_start_response), log)