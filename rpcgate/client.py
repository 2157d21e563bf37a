"""JSON-RPC client over HTTP."""

from __future__ import annotations

import asyncio
import json
import threading
from collections.abc import Awaitable, Iterable, Sequence
from datetime import timedelta
from typing import Any, TypeVar

from rpcgate.errors import (
    HttpNotImplementedError,
    InvalidRequestIdError,
    ParseError,
    RequestError,
    RequestTimeoutError,
    RpcError,
)
from rpcgate.transport import TEN_MB_SIZE_BYTES, CertificateStore, HttpTransportClient

_T = TypeVar("_T")
_ID_MODULUS = 2**64
_MISSING = object()


class MaxSlotsExceededError(RpcError):
    """Too many requests are pending at once."""

    def __init__(self) -> None:
        super().__init__("Max concurrent requests exceeded")


class RequestIdManager:
    """Hands out request ids and limits the number of pending requests."""

    def __init__(self, max_concurrent_requests: int) -> None:
        if max_concurrent_requests < 0:
            raise ValueError("max_concurrent_requests must not be negative")
        self.max_concurrent_requests = max_concurrent_requests
        self._pending = 0
        self._next_id = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        return self._pending

    def _take(self, count: int) -> list[int]:
        with self._lock:
            if self._pending + count > self.max_concurrent_requests:
                raise MaxSlotsExceededError()
            self._pending += count
            ids = [(self._next_id + offset) % _ID_MODULUS for offset in range(count)]
            self._next_id = (self._next_id + count) % _ID_MODULUS
            return ids

    def next_request_id(self) -> int:
        """Reserve one slot and return a fresh id."""
        return self._take(1)[0]

    def next_request_ids(self, count: int) -> list[int]:
        """Reserve ``count`` slots and return that many fresh ids."""
        if count < 0:
            raise ValueError("count must not be negative")
        return self._take(count)

    def release(self, count: int) -> None:
        """Give back ``count`` reserved slots."""
        with self._lock:
            if count < 0 or count > self._pending:
                raise ValueError(f"cannot release {count} of {self._pending} pending slots")
            self._pending -= count


def _is_id(value: object) -> bool:
    if value is None or isinstance(value, str):
        return True
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < _ID_MODULUS


def _request_document(method: str, params: Any, request_id: int | None = None) -> dict[str, Any]:
    document: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        document["params"] = list(params) if isinstance(params, tuple) else params
    if request_id is not None:
        document["id"] = request_id
    return document


def _encode(document: Any) -> str:
    try:
        return json.dumps(document, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise ParseError(str(exc)) from None


def _decode(body: bytes) -> Any:
    try:
        return json.loads(body)
    except ValueError as exc:
        raise ParseError(str(exc)) from None


def _parse_response(document: Any) -> tuple[Any, Any] | None:
    """Return ``(id, result)`` if ``document`` is a success response."""
    if not isinstance(document, dict) or document.get("jsonrpc") != "2.0":
        return None
    if "result" not in document or "id" not in document or not _is_id(document["id"]):
        return None
    return document["id"], document["result"]


def _error_from(document: Any) -> RpcError:
    """Turn a document that is not a success response into the matching exception."""
    if (
        isinstance(document, dict)
        and document.get("jsonrpc") == "2.0"
        and isinstance(document.get("error"), dict)
        and _is_id(document.get("id"))
    ):
        error = document["error"]
        code = error.get("code")
        if isinstance(code, int) and not isinstance(code, bool) and isinstance(error.get("message"), str):
            serialized = {"code": code, "message": error["message"]}
            if "data" in error:
                serialized["data"] = error["data"]
            payload = {"jsonrpc": "2.0", "error": serialized, "id": document.get("id")}
            return RequestError(json.dumps(payload, separators=(",", ":")))
    return ParseError("response is neither a JSON-RPC response nor a JSON-RPC error")


def _numeric_id(response_id: Any) -> int:
    if isinstance(response_id, int) and not isinstance(response_id, bool):
        return response_id
    raise InvalidRequestIdError()


class HttpClient:
    """JSON-RPC client that performs method calls and notifications over HTTP."""

    def __init__(
        self,
        target: str,
        max_request_body_size: int = TEN_MB_SIZE_BYTES,
        request_timeout: float | timedelta = 60.0,
        max_concurrent_requests: int = 256,
        certificate_store: CertificateStore = CertificateStore.NATIVE,
    ) -> None:
        self._transport = HttpTransportClient(target, max_request_body_size, certificate_store)
        self._id_manager = RequestIdManager(max_concurrent_requests)
        if isinstance(request_timeout, timedelta):
            request_timeout = request_timeout.total_seconds()
        self.request_timeout = float(request_timeout)

    @property
    def target(self) -> str:
        return self._transport.target

    async def _timed(self, awaitable: Awaitable[_T]) -> _T:
        try:
            return await asyncio.wait_for(awaitable, self.request_timeout)
        except asyncio.TimeoutError:
            raise RequestTimeoutError() from None

    async def notification(self, method: str, params: Any = None) -> None:
        """Send a notification; no response is read."""
        payload = _encode(_request_document(method, params))
        await self._timed(self._transport.send(payload))

    async def request(self, method: str, params: Any = None) -> Any:
        """Call ``method`` and return its result."""
        request_id = self._id_manager.next_request_id()
        try:
            payload = _encode(_request_document(method, params, request_id))
            body = await self._timed(self._transport.send_and_read_body(payload))
        finally:
            self._id_manager.release(1)

        document = _decode(body)
        response = _parse_response(document)
        if response is None:
            raise _error_from(document)
        response_id, result = response
        if _numeric_id(response_id) != request_id:
            raise InvalidRequestIdError()
        return result

    async def batch_request(self, batch: Iterable[tuple[str, Any]]) -> list[Any]:
        """Call several methods in one batch; results come back in request order.

        Entries for which the server sent no response are None.
        """
        calls = list(batch)
        ids = self._id_manager.next_request_ids(len(calls))
        try:
            positions = {request_id: pos for pos, request_id in enumerate(ids)}
            documents = [
                _request_document(method, params, request_id)
                for (method, params), request_id in zip(calls, ids)
            ]
            payload = _encode(documents)
            body = await self._timed(self._transport.send_and_read_body(payload))
        finally:
            self._id_manager.release(len(calls))

        document = _decode(body)
        responses = self._parse_batch(document)
        results: list[Any] = [None] * len(calls)
        for response_id, result in responses:
            pos = positions.get(_numeric_id(response_id), _MISSING)
            if pos is _MISSING:
                raise InvalidRequestIdError()
            results[pos] = result
        return results

    @staticmethod
    def _parse_batch(document: Any) -> Sequence[tuple[Any, Any]]:
        if isinstance(document, list):
            parsed = [_parse_response(entry) for entry in document]
            if all(entry is not None for entry in parsed):
                return parsed  # type: ignore[return-value]
        raise _error_from(document)

    async def subscribe(self, subscribe_method: str, params: Any, unsubscribe_method: str) -> Any:
        """Subscriptions are not available over HTTP; always raises."""
        raise HttpNotImplementedError()

    async def subscribe_to_method(self, method: str) -> Any:
        """Subscriptions are not available over HTTP; always raises."""
        raise HttpNotImplementedError()

    def __repr__(self) -> str:
        return f"HttpClient({self.target!r}, request_timeout={self.request_timeout})"