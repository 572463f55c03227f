"""WSGI handler that answers delivery requests with matching campaigns."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any, Callable, Iterable, Protocol, Sequence
from urllib.parse import parse_qs

from .models import CampaignResponse, DeliveryRequest, ErrorResponse
from .service import InvalidRequestError

StartResponse = Callable[..., Any]

_REQUIRED_PARAMS = ("app", "os", "country")

_JSON_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


class CampaignService(Protocol):
    """Anything that can select campaigns for a delivery request."""

    def get_matching_campaigns(self, request: DeliveryRequest) -> Sequence[CampaignResponse]:
        """Return the campaigns that match the request."""
        ...


def _status_line(status: HTTPStatus) -> str:
    return f"{status.value} {status.phrase}"


def _encode_json(value: Any) -> bytes:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    for raw, escaped in _JSON_ESCAPES:
        text = text.replace(raw, escaped)
    return (text + "\n").encode("utf-8")


class DeliveryHandler:
    """Serves ``GET`` requests carrying ``app``, ``os`` and ``country``."""

    def __init__(self, service: CampaignService) -> None:
        self.service = service

    def __call__(self, environ: dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
        if environ.get("REQUEST_METHOD", "GET") != "GET":
            start_response(_status_line(HTTPStatus.METHOD_NOT_ALLOWED), [])
            return [b""]

        query = parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)
        params = {name: query.get(name, [""])[0] for name in _REQUIRED_PARAMS}
        for name, value in params.items():
            if not value:
                return self._error(start_response, HTTPStatus.BAD_REQUEST, f"missing {name} param")

        request = DeliveryRequest(**params)
        try:
            campaigns = self.service.get_matching_campaigns(request)
        except InvalidRequestError as exc:
            return self._error(start_response, HTTPStatus.BAD_REQUEST, str(exc))
        except Exception:
            return self._error(
                start_response, HTTPStatus.INTERNAL_SERVER_ERROR, "internal server error"
            )

        if not campaigns:
            start_response(_status_line(HTTPStatus.NO_CONTENT), [])
            return [b""]

        body = _encode_json([campaign.to_dict() for campaign in campaigns])
        return self._json(start_response, HTTPStatus.OK, body)

    @staticmethod
    def _json(start_response: StartResponse, status: HTTPStatus, body: bytes) -> list[bytes]:
        start_response(
            _status_line(status),
            [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
        )
        return [body]

    def _error(
        self, start_response: StartResponse, status: HTTPStatus, message: str
    ) -> list[bytes]:
        return self._json(start_response, status, _encode_json(ErrorResponse(message).to_dict()))