"""Application assembly and the command that serves it over HTTP."""

from __future__ import annotations

import argparse
import logging
import signal
import sqlite3
import threading
from http import HTTPStatus
from socketserver import ThreadingMixIn
from typing import Any, Callable, Iterable, Sequence
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from .handlers import CampaignService, DeliveryHandler
from .middleware import LoggingMiddleware
from .repository import SqlRepository
from .service import TargetingService

logger = logging.getLogger(__name__)

_SHUTDOWN_TIMEOUT = 30.0


def _plain(start_response: Callable[..., Any], status: HTTPStatus, body: bytes, *extra: tuple):
    start_response(
        f"{status.value} {status.phrase}",
        [
            ("Content-Type", "text/plain; charset=utf-8"),
            ("Content-Length", str(len(body))),
            *extra,
        ],
    )
    return [body]


def create_app(service: CampaignService, enable_health_check: bool = True) -> LoggingMiddleware:
    """Return the WSGI application routing delivery and health requests."""
    delivery = DeliveryHandler(service)

    def router(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        path = environ.get("PATH_INFO") or "/"
        if path == "/v1/delivery":
            return delivery(environ, start_response)
        if enable_health_check and path == "/health":
            return _plain(start_response, HTTPStatus.OK, b"OK")
        return _plain(
            start_response,
            HTTPStatus.NOT_FOUND,
            b"404 page not found\n",
            ("X-Content-Type-Options", "nosniff"),
        )

    return LoggingMiddleware(router)


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        pass


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="targeting-engine", description="Serve campaigns matching delivery requests."
    )
    parser.add_argument("--host", default="", help="address to listen on (default: all)")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    parser.add_argument("--database", default=":memory:", help="path of the SQLite database")
    parser.add_argument(
        "--no-health-check",
        dest="health_check",
        action="store_false",
        help="do not serve /health",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the HTTP server until interrupted; return the exit status."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        repository = SqlRepository(args.database)
    except sqlite3.Error as exc:
        logger.error("Cannot open the database: %s", exc)
        return 1

    with repository:
        logger.info("Adding test data to the database...")
        try:
            repository.init_test_data()
        except sqlite3.Error as exc:
            logger.warning("Could not add test data: %s", exc)

        app = create_app(TargetingService(repository), args.health_check)
        try:
            server = make_server(
                args.host,
                args.port,
                app,
                server_class=_ThreadingWSGIServer,
                handler_class=_QuietHandler,
            )
        except OSError as exc:
            logger.error("Server could not start: %s", exc)
            return 1

        stop = threading.Event()
        previous: dict[int, Any] = {}
        if threading.current_thread() is threading.main_thread():
            for signum in (signal.SIGINT, signal.SIGTERM):
                previous[signum] = signal.signal(signum, lambda *_: stop.set())

        worker = threading.Thread(target=server.serve_forever, daemon=True)
        worker.start()
        logger.info("Starting server on port %d", server.server_port)
        try:
            stop.wait()
        except KeyboardInterrupt:
            pass
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)
            logger.info("Shutting down server...")
            server.shutdown()
            server.server_close()
            worker.join(_SHUTDOWN_TIMEOUT)
        logger.info("Closing the database connection...")

    logger.info("Server shut down nicely")
    return 0