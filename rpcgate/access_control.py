"""Access control for incoming HTTP requests based on their headers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from rpcgate.cors import (
    AccessControlAllowHeaders,
    AccessControlAllowOrigin,
    get_cors_allow_headers,
    get_cors_allow_origin,
)
from rpcgate.errors import EmptyAllowListError
from rpcgate.hosts import AllowHosts, Host

Headers = Mapping[str, str] | Iterable[tuple[str, str]]


def _header_items(headers: Headers) -> list[tuple[str, str]]:
    """Return the headers as ``(lower-cased name, value)`` pairs, in order."""
    pairs = headers.items() if isinstance(headers, Mapping) else headers
    return [(name.lower(), value) for name, value in pairs]


def _header_values(headers: Headers, name: str) -> Iterator[str]:
    wanted = name.lower()
    return (value for key, value in _header_items(headers) if key == wanted)


def _header_value(headers: Headers, name: str) -> str | None:
    return next(_header_values(headers, name), None)


def _header_names(headers: Headers) -> list[str]:
    return list(dict.fromkeys(name for name, _ in _header_items(headers)))


@dataclass(frozen=True)
class AccessControl:
    """Access control settings applied to every HTTP request."""

    allowed_hosts: AllowHosts = field(default_factory=AllowHosts.any)
    allowed_origins: tuple[AccessControlAllowOrigin, ...] | None = None
    allowed_headers: AccessControlAllowHeaders = field(default_factory=AccessControlAllowHeaders.any)
    continue_on_invalid_cors: bool = False

    def deny_host(self, headers: Headers) -> bool:
        """Return True if the request's ``Host`` header is not allowed."""
        from rpcgate.hosts import is_host_valid

        return not is_host_valid(_header_value(headers, "host"), self.allowed_hosts)

    def deny_cors_origin(self, headers: Headers) -> bool:
        """Return True if the request's ``Origin`` header is not allowed."""
        allowed = list(self.allowed_origins) if self.allowed_origins is not None else None
        result = get_cors_allow_origin(
            _header_value(headers, "origin"),
            _header_value(headers, "host"),
            allowed,
        ).map(str)
        return result.is_invalid and not self.continue_on_invalid_cors

    def deny_cors_header(self, headers: Headers) -> bool:
        """Return True if the request's headers or requested CORS headers are not allowed."""
        requested = [
            part
            for value in _header_values(headers, "access-control-request-headers")
            for chunk in value.split(", ")
            for part in chunk.split(",")
        ]
        result = get_cors_allow_headers(
            _header_names(headers),
            requested,
            self.allowed_headers,
            lambda name: name,
        )
        return result.is_invalid and not self.continue_on_invalid_cors


class AccessControlBuilder:
    """Step-by-step configuration of an :class:`AccessControl`."""

    def __init__(self) -> None:
        self._allowed_hosts = AllowHosts.any()
        self._allowed_origins: tuple[AccessControlAllowOrigin, ...] | None = None
        self._allowed_headers = AccessControlAllowHeaders.any()
        self._continue_on_invalid_cors = False

    def allow_all_hosts(self) -> AccessControlBuilder:
        """Allow all hosts."""
        self._allowed_hosts = AllowHosts.any()
        return self

    def allow_all_origins(self) -> AccessControlBuilder:
        """Allow all origins (resets the allowed headers to any)."""
        self._allowed_headers = AccessControlAllowHeaders.any()
        return self

    def allow_all_headers(self) -> AccessControlBuilder:
        """Allow all headers (resets the allowed origins to any)."""
        self._allowed_origins = None
        return self

    def set_allowed_hosts(self, hosts: Iterable[Host | str]) -> AccessControlBuilder:
        """Allow only the given hosts; raises if the list is empty."""
        allowed = tuple(h if isinstance(h, Host) else Host.parse(h) for h in hosts)
        if not allowed:
            raise EmptyAllowListError("Host")
        self._allowed_hosts = AllowHosts(allowed)
        return self

    def set_allowed_origins(
        self, origins: Iterable[AccessControlAllowOrigin | str]
    ) -> AccessControlBuilder:
        """Allow only the given origins; raises if the list is empty."""
        allowed = tuple(
            o if isinstance(o, AccessControlAllowOrigin) else AccessControlAllowOrigin.from_str(o)
            for o in origins
        )
        if not allowed:
            raise EmptyAllowListError("Origin")
        self._allowed_origins = allowed
        return self

    def set_allowed_headers(self, headers: Iterable[str]) -> AccessControlBuilder:
        """Allow only the given CORS headers; raises if the list is empty."""
        allowed = tuple(str(h) for h in headers)
        if not allowed:
            raise EmptyAllowListError("Header")
        self._allowed_headers = AccessControlAllowHeaders.only(allowed)
        return self

    def continue_on_invalid_cors(self, enabled: bool) -> AccessControlBuilder:
        """Choose whether requests with invalid CORS are let through."""
        self._continue_on_invalid_cors = bool(enabled)
        return self

    def build(self) -> AccessControl:
        """Return the configured :class:`AccessControl`."""
        return AccessControl(
            allowed_hosts=self._allowed_hosts,
            allowed_origins=self._allowed_origins,
            allowed_headers=self._allowed_headers,
            continue_on_invalid_cors=self._continue_on_invalid_cors,
        )