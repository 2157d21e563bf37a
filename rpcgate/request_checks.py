"""Checks applied to an incoming HTTP request before its body is read."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from rpcgate import response
from rpcgate.access_control import AccessControl
from rpcgate.response import HttpResponse

Headers = Mapping[str, str] | Iterable[tuple[str, str]]

_JSON_CONTENT_TYPES = frozenset(
    (
        "application/json",
        "application/json; charset=utf-8",
        "application/json;charset=utf-8",
    )
)

_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


def _first_header(headers: Headers, name: str) -> str | bytes | None:
    wanted = name.lower()
    pairs = headers.items() if isinstance(headers, Mapping) else headers
    return next((value for key, value in pairs if key.lower() == wanted), None)


def _header_text(value: str | bytes | None) -> str | None:
    """Return the header value as text, or None if it is absent or not visible ASCII."""
    if value is None:
        return None
    if isinstance(value, bytes):
        try:
            value = value.decode("ascii")
        except UnicodeDecodeError:
            return None
    if any(not (ch == "\t" or " " <= ch <= "~") for ch in value):
        return None
    return value


def is_json(content_type: str | bytes | None) -> bool:
    """Return True if the ``Content-Type`` value denotes a JSON message."""
    text = _header_text(content_type)
    if text is None:
        return False
    return text.translate(_ASCII_LOWER) in _JSON_CONTENT_TYPES


def content_type_is_valid(method: str, headers: Headers) -> HttpResponse | None:
    """Return None for a JSON ``POST`` request, otherwise the response rejecting it."""
    if method == "POST" and is_json(_first_header(headers, "content-type")):
        return None
    return response.method_not_allowed()


def access_control_is_valid(access_control: AccessControl, headers: Headers) -> HttpResponse | None:
    """Return None if the request passes ``access_control``, otherwise the response rejecting it.

    The host is checked first, then the CORS origin, then the CORS headers.
    """
    materialized = headers if isinstance(headers, Mapping) else list(headers)
    if access_control.deny_host(materialized):
        return response.host_not_allowed()
    if access_control.deny_cors_origin(materialized):
        return response.invalid_allow_origin()
    if access_control.deny_cors_header(materialized):
        return response.invalid_allow_headers()
    return None