"""CORS origin and header validation."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from rpcgate.hosts import Host, Port
from rpcgate.matcher import Matcher

T = TypeVar("T")
O = TypeVar("O")

_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


ALWAYS_ALLOWED_HEADERS = frozenset(
    _ascii_lower(name)
    for name in (
        "Accept",
        "Accept-Language",
        "Access-Control-Allow-Origin",
        "Access-Control-Request-Headers",
        "Content-Language",
        "Content-Type",
        "Host",
        "Origin",
        "Content-Length",
        "Connection",
        "User-Agent",
    )
)


@dataclass(frozen=True)
class OriginProtocol:
    """The protocol of an origin: ``http``, ``https`` or a custom scheme."""

    scheme: str

    HTTP: ClassVar[OriginProtocol]
    HTTPS: ClassVar[OriginProtocol]

    def __str__(self) -> str:
        return self.scheme


OriginProtocol.HTTP = OriginProtocol("http")
OriginProtocol.HTTPS = OriginProtocol("https")


class Origin:
    """A request origin: protocol plus host, usable as a glob pattern."""

    __slots__ = ("protocol", "host", "host_with_proto", "_matcher")

    def __init__(
        self,
        protocol: OriginProtocol | str,
        host: str | Host,
        port: Port | int | None = None,
    ) -> None:
        if not isinstance(protocol, OriginProtocol):
            protocol = OriginProtocol(str(protocol).lower())
        self.protocol = protocol
        self.host = host if isinstance(host, Host) else Host(host, port)
        self.host_with_proto = f"{protocol.scheme}://{self.host}"
        self._matcher = Matcher(self.host_with_proto)

    @classmethod
    def parse(cls, text: str) -> Origin:
        """Parse ``text`` as an origin; never fails, falling back to ``http``."""
        parts = text.split("://")
        if len(parts) > 1:
            proto: str | None = parts[0].lower()
            hostname = parts[1]
        else:
            proto = None
            hostname = parts[0]
        if proto is None:
            protocol = OriginProtocol.HTTP
        else:
            protocol = OriginProtocol(proto)
        return cls(protocol, Host.parse(hostname))

    def matches(self, other: str) -> bool:
        """Return True if ``other`` matches this origin pattern."""
        return self._matcher.matches(other)

    def __str__(self) -> str:
        return self.host_with_proto

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Origin):
            return NotImplemented
        return (self.protocol, self.host) == (other.protocol, other.host)

    def __hash__(self) -> int:
        return hash((self.protocol, self.host))

    def __repr__(self) -> str:
        return f"Origin({self.host_with_proto!r})"


@dataclass(frozen=True)
class AccessControlAllowOrigin:
    """An allowed origin: a specific origin, the ``null`` origin, or any origin."""

    origin: Origin | None = None
    wildcard: bool = False

    ANY: ClassVar[AccessControlAllowOrigin]
    NULL: ClassVar[AccessControlAllowOrigin]

    @classmethod
    def value(cls, origin: Origin | str) -> AccessControlAllowOrigin:
        """A specific origin; strings are parsed with :meth:`Origin.parse`."""
        if not isinstance(origin, Origin):
            origin = Origin.parse(origin)
        return cls(origin)

    @classmethod
    def from_str(cls, text: str) -> AccessControlAllowOrigin:
        """Interpret ``all``, ``*`` and ``any`` as any origin and ``null`` as the null origin."""
        if text in ("all", "*", "any"):
            return cls.ANY
        if text == "null":
            return cls.NULL
        return cls.value(text)

    @property
    def is_any(self) -> bool:
        return self.wildcard

    @property
    def is_null(self) -> bool:
        return not self.wildcard and self.origin is None

    def __str__(self) -> str:
        if self.wildcard:
            return "*"
        if self.origin is None:
            return "null"
        return str(self.origin)


AccessControlAllowOrigin.ANY = AccessControlAllowOrigin(None, True)
AccessControlAllowOrigin.NULL = AccessControlAllowOrigin(None, False)


@dataclass(frozen=True)
class AccessControlAllowHeaders:
    """Headers allowed for CORS: any, or only those listed."""

    headers: tuple[str, ...] | None = None

    @classmethod
    def any(cls) -> AccessControlAllowHeaders:
        """Allow any header."""
        return cls(None)

    @classmethod
    def only(cls, headers: Iterable[str]) -> AccessControlAllowHeaders:
        """Allow only the given headers."""
        return cls(tuple(headers))

    @property
    def allows_any(self) -> bool:
        return self.headers is None


class CorsStatus(Enum):
    """Outcome of a CORS check."""

    NOT_REQUIRED = "not_required"
    INVALID = "invalid"
    OK = "ok"


@dataclass(frozen=True)
class AllowCors(Generic[T]):
    """Result of a CORS check, carrying a value when the check passed."""

    status: CorsStatus
    value: Any = None

    NOT_REQUIRED: ClassVar[AllowCors[Any]]
    INVALID: ClassVar[AllowCors[Any]]

    @classmethod
    def ok(cls, value: T) -> AllowCors[T]:
        """A passed check carrying ``value``."""
        return cls(CorsStatus.OK, value)

    @property
    def is_ok(self) -> bool:
        return self.status is CorsStatus.OK

    @property
    def is_invalid(self) -> bool:
        return self.status is CorsStatus.INVALID

    @property
    def is_not_required(self) -> bool:
        return self.status is CorsStatus.NOT_REQUIRED

    def map(self, func: Callable[[T], O]) -> AllowCors[O]:
        """Apply ``func`` to the carried value of a passed check."""
        if self.status is CorsStatus.OK:
            return AllowCors(CorsStatus.OK, func(self.value))
        return AllowCors(self.status)

    def as_optional(self) -> T | None:
        """Return the carried value, or None when the check did not pass."""
        return self.value if self.status is CorsStatus.OK else None


AllowCors.NOT_REQUIRED = AllowCors(CorsStatus.NOT_REQUIRED)
AllowCors.INVALID = AllowCors(CorsStatus.INVALID)


def get_cors_allow_origin(
    origin: str | None,
    host: str | None,
    allowed: list[AccessControlAllowOrigin] | None,
) -> AllowCors[AccessControlAllowOrigin]:
    """Return the CORS origin to answer with, given the allowed origins."""
    if origin is None:
        return AllowCors.NOT_REQUIRED

    if host is not None and origin.endswith(host):
        # The request came from the same server.
        if str(Origin.parse(origin).host) == host:
            return AllowCors.NOT_REQUIRED

    if allowed is None:
        if origin == "null":
            return AllowCors.ok(AccessControlAllowOrigin.NULL)
        return AllowCors.ok(AccessControlAllowOrigin.value(origin))

    if origin == "null":
        if any(entry.is_null for entry in allowed):
            return AllowCors.ok(AccessControlAllowOrigin.NULL)
        return AllowCors.INVALID

    for entry in allowed:
        if entry.is_any or (entry.origin is not None and entry.origin.matches(origin)):
            return AllowCors.ok(AccessControlAllowOrigin.value(origin))
    return AllowCors.INVALID


def _header_allowed(name: str, only: tuple[str, ...]) -> bool:
    lowered = _ascii_lower(name)
    return lowered in ALWAYS_ALLOWED_HEADERS or any(_ascii_lower(h) == lowered for h in only)


def get_cors_allow_headers(
    headers: Iterable[str],
    requested_headers: Iterable[str],
    cors_allow_headers: AccessControlAllowHeaders,
    to_result: Callable[[str], O],
) -> AllowCors[list[O]]:
    """Check the request's headers and requested CORS headers against the allowed ones."""
    only = cors_allow_headers.headers

    if only is not None and not all(_header_allowed(h, only) for h in headers):
        return AllowCors.INVALID

    if only is None:
        filtered = False
        results = [to_result(h) for h in requested_headers]
    else:
        filtered = False
        results = []
        for header in requested_headers:
            filtered = True
            if _header_allowed(header, only):
                results.append(to_result(header))

    if not results:
        return AllowCors.INVALID if filtered else AllowCors.NOT_REQUIRED
    return AllowCors.ok(results)