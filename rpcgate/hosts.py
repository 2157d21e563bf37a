"""Host header validation."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from rpcgate.matcher import Matcher

_MAX_PORT = 65535
_PORT_NUMBER = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class Port:
    """A port: absent (``None``), a fixed number, or a wildcard pattern."""

    value: int | str | None = None

    def __post_init__(self) -> None:
        value = self.value
        if isinstance(value, bool) or not isinstance(value, (int, str, type(None))):
            raise TypeError(f"port must be an int, a str or None, not {type(value).__name__}")
        if isinstance(value, int) and not 0 <= value <= _MAX_PORT:
            raise ValueError(f"port {value} is out of range")

    @classmethod
    def none(cls) -> Port:
        """No port given: the default port."""
        return cls(None)

    @classmethod
    def fixed(cls, number: int) -> Port:
        """A fixed numeric port."""
        return cls(int(number))

    @classmethod
    def pattern(cls, text: str) -> Port:
        """A port given as a wildcard pattern."""
        return cls(str(text))

    @classmethod
    def _parse(cls, text: str) -> Port:
        if _PORT_NUMBER.fullmatch(text) and int(text) <= _MAX_PORT:
            return cls.fixed(int(text))
        return cls.pattern(text)

    def __str__(self) -> str:
        return "" if self.value is None else f":{self.value}"


def _as_port(port: Port | int | None) -> Port:
    if isinstance(port, Port):
        return port
    return Port(port)


def _pre_process(text: str) -> str:
    """Drop any protocol prefix and path, and lower-case what is left."""
    parts = text.split("://")
    host = parts[1] if len(parts) > 1 else parts[0]
    return host.split("/", 1)[0].lower()


class Host:
    """A host name with an optional port, usable as a glob pattern."""

    __slots__ = ("hostname", "port", "host_with_port", "_matcher")

    def __init__(self, hostname: str, port: Port | int | None = None) -> None:
        self.hostname = _pre_process(hostname)
        self.port = _as_port(port)
        self.host_with_port = f"{self.hostname}{self.port}"
        self._matcher = Matcher(self.host_with_port)

    @classmethod
    def parse(cls, text: str) -> Host:
        """Parse ``text`` as a host; never fails, falling back to sensible defaults."""
        host, separator, rest = _pre_process(text).partition(":")
        if not separator:
            return cls(host, Port.none())
        return cls(host, Port._parse(rest.split(":", 1)[0]))

    def matches(self, other: str) -> bool:
        """Return True if ``other`` matches this host pattern."""
        return self._matcher.matches(other)

    def __str__(self) -> str:
        return self.host_with_port

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Host):
            return NotImplemented
        return (self.hostname, self.port) == (other.hostname, other.port)

    def __hash__(self) -> int:
        return hash((self.hostname, self.port))

    def __repr__(self) -> str:
        return f"Host({self.hostname!r}, {self.port!r})"


@dataclass(frozen=True)
class AllowHosts:
    """Hosts allowed in the ``Host`` header: any, or only those listed."""

    hosts: tuple[Host, ...] | None = None

    @classmethod
    def any(cls) -> AllowHosts:
        """Allow requests from any host."""
        return cls(None)

    @classmethod
    def only(cls, hosts: Iterable[Host | str]) -> AllowHosts:
        """Allow only the given hosts; strings are parsed with :meth:`Host.parse`."""
        return cls(tuple(h if isinstance(h, Host) else Host.parse(h) for h in hosts))

    @property
    def allows_any(self) -> bool:
        return self.hosts is None


def is_host_valid(host: str | None, allow_hosts: AllowHosts) -> bool:
    """Return True when the ``Host`` header value is allowed by ``allow_hosts``."""
    if host is None:
        return False
    if allow_hosts.hosts is None:
        return True
    return any(allowed.matches(host) for allowed in allow_hosts.hosts)