"""JSON-RPC 2.0 over HTTP: an asyncio client, access control and request checks for servers."""

__version__ = "0.1.0"

__all__ = [
    "access_control",
    "client",
    "cors",
    "errors",
    "hosts",
    "matcher",
    "request_checks",
    "response",
    "transport",
]