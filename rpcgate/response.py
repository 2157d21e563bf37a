"""Ready-made HTTP responses used by the server."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus

from rpcgate.errors import ErrorCode, error_response_json

JSON = "application/json; charset=utf-8"
TEXT = "text/plain"


@dataclass(frozen=True)
class HttpResponse:
    """An HTTP response: status, body text and content type."""

    status: HTTPStatus
    body: str
    content_type: str

    @property
    def headers(self) -> dict[str, str]:
        return {"content-type": self.content_type}

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8")


def _from_template(status: HTTPStatus, body: str, content_type: str) -> HttpResponse:
    return HttpResponse(status, body, content_type)


def internal_error() -> HttpResponse:
    """JSON response for an internal error (500)."""
    body = error_response_json(ErrorCode.INTERNAL_ERROR, None)
    return _from_template(HTTPStatus.INTERNAL_SERVER_ERROR, body, JSON)


def host_not_allowed() -> HttpResponse:
    """Text response for a ``Host`` header that is not allowed (403)."""
    return _from_template(
        HTTPStatus.FORBIDDEN, "Provided Host header is not whitelisted.\n", TEXT
    )


def method_not_allowed() -> HttpResponse:
    """Text response for an HTTP method that is not allowed (405)."""
    return _from_template(
        HTTPStatus.METHOD_NOT_ALLOWED,
        "Used HTTP Method is not allowed. POST or OPTIONS is required\n",
        TEXT,
    )


def invalid_allow_origin() -> HttpResponse:
    """Text response for a CORS ``Origin`` that is not allowed (403)."""
    return _from_template(
        HTTPStatus.FORBIDDEN,
        "Origin of the request is not whitelisted. CORS headers would not be sent "
        "and any side-effects were cancelled as well.\n",
        TEXT,
    )


def invalid_allow_headers() -> HttpResponse:
    """Text response for requested CORS headers that are not allowed (403)."""
    return _from_template(
        HTTPStatus.FORBIDDEN,
        "Requested headers are not allowed for CORS. CORS headers would not be sent "
        "and any side-effects were cancelled as well.\n",
        TEXT,
    )


def too_large() -> HttpResponse:
    """JSON response for an oversized request (413)."""
    body = error_response_json(ErrorCode.OVERSIZED_REQUEST, None)
    return _from_template(HTTPStatus.REQUEST_ENTITY_TOO_LARGE, body, JSON)


def malformed() -> HttpResponse:
    """JSON response for an empty or malformed request (400)."""
    body = error_response_json(ErrorCode.PARSE_ERROR, None)
    return _from_template(HTTPStatus.BAD_REQUEST, body, JSON)


def ok_response(body: str) -> HttpResponse:
    """JSON response carrying ``body`` (200)."""
    return _from_template(HTTPStatus.OK, body, JSON)