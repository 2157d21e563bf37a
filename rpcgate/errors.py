"""JSON-RPC error codes and the exceptions raised by the client and server."""

from __future__ import annotations

import json
from enum import IntEnum


class ErrorCode(IntEnum):
    """Error codes carried in a JSON-RPC error object."""

    PARSE_ERROR = -32700
    OVERSIZED_REQUEST = -32701
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    def message(self) -> str:
        """Return the standard message that accompanies this code."""
        return _MESSAGES[self]


_MESSAGES = {
    ErrorCode.PARSE_ERROR: "Parse error",
    ErrorCode.OVERSIZED_REQUEST: "Request is too big",
    ErrorCode.INVALID_REQUEST: "Invalid request",
    ErrorCode.METHOD_NOT_FOUND: "Method not found",
    ErrorCode.INVALID_PARAMS: "Invalid params",
    ErrorCode.INTERNAL_ERROR: "Internal error",
}


def error_response_json(code: ErrorCode | int, request_id: int | str | None) -> str:
    """Serialize a JSON-RPC error response for ``code`` answering ``request_id``."""
    if isinstance(request_id, bool) or not isinstance(request_id, (int, str, type(None))):
        raise TypeError(f"request id must be an int, a str or None, not {type(request_id).__name__}")
    error_code = ErrorCode(code)
    document = {
        "jsonrpc": "2.0",
        "error": {"code": int(error_code), "message": error_code.message()},
        "id": request_id,
    }
    return json.dumps(document, separators=(",", ":"))


class RpcError(Exception):
    """Base class of every error raised by this package."""


class RequestTimeoutError(RpcError):
    """The server did not answer within the configured timeout."""

    def __init__(self) -> None:
        super().__init__("Request timeout")


class InvalidRequestIdError(RpcError):
    """A response carried an id that does not belong to any pending request."""

    def __init__(self) -> None:
        super().__init__("Invalid request ID")


class RequestError(RpcError):
    """The server answered with a JSON-RPC error object.

    ``payload`` holds that error response serialized as JSON.
    """

    def __init__(self, payload: str) -> None:
        super().__init__(payload)
        self.payload = payload


class ParseError(RpcError):
    """A message could not be encoded or decoded as JSON-RPC."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Parse error: {detail}")
        self.detail = detail


class HttpNotImplementedError(RpcError):
    """The operation is not available over HTTP."""

    def __init__(self) -> None:
        super().__init__("Not implemented for HTTP")


class EmptyAllowListError(RpcError):
    """An allow list was configured without any entries."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Configured allowed {kind} list is empty")
        self.kind = kind


class TransportError(RpcError):
    """Base class of errors raised by the HTTP transport."""


class UrlError(TransportError):
    """The target URL is invalid or unsupported."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid Url: {reason}")
        self.reason = reason


class HttpError(TransportError):
    """Networking or HTTP protocol failure while performing a request."""

    def __init__(self, cause: BaseException | None = None) -> None:
        super().__init__("Error while performing the HTTP request")
        self.cause = cause


class RequestFailureError(TransportError):
    """The server replied with a non-success status code."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server returned an error status code: {status_code}")
        self.status_code = status_code


class RequestTooLargeError(TransportError):
    """A request or response body exceeded the configured limit."""

    def __init__(self) -> None:
        super().__init__("The request body was too large")


class MalformedError(TransportError):
    """The HTTP message was malformed."""

    def __init__(self) -> None:
        super().__init__("Malformed request")


class InvalidCertificateStoreError(TransportError):
    """The requested certificate store cannot be used."""

    def __init__(self) -> None:
        super().__init__("Invalid certificate store")