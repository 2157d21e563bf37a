"""HTTP transport used by the JSON-RPC client."""

from __future__ import annotations

import ssl
from enum import Enum
from urllib.parse import urlsplit

import httpx

from rpcgate.errors import (
    HttpError,
    InvalidCertificateStoreError,
    MalformedError,
    RequestFailureError,
    RequestTooLargeError,
    UrlError,
)

TEN_MB_SIZE_BYTES = 10 * 1024 * 1024
CONTENT_TYPE_JSON = "application/json"
_MAX_BODY_LIMIT = 2**32 - 1


class CertificateStore(Enum):
    """Which set of root certificates to trust for ``https`` targets."""

    NATIVE = "native"
    WEB_PKI = "webpki"


def _verify_for(store: object) -> ssl.SSLContext | bool:
    if store is CertificateStore.NATIVE:
        return ssl.create_default_context()
    if store is CertificateStore.WEB_PKI:
        return True
    raise InvalidCertificateStoreError()


class HttpTransportClient:
    """Sends JSON bodies to one HTTP(S) target with ``POST``."""

    def __init__(
        self,
        target: str,
        max_request_body_size: int = TEN_MB_SIZE_BYTES,
        certificate_store: CertificateStore = CertificateStore.NATIVE,
    ) -> None:
        if not 0 <= max_request_body_size <= _MAX_BODY_LIMIT:
            raise ValueError(f"max_request_body_size {max_request_body_size} is out of range")
        try:
            parts = urlsplit(target)
            port = parts.port
        except ValueError as exc:
            raise UrlError(f"Invalid URL: {exc}") from None
        if not parts.hostname:
            raise UrlError("Invalid URL: host is missing")
        if port is None:
            raise UrlError("Port number is missing in the URL")

        if parts.scheme == "http":
            self._verify: ssl.SSLContext | bool = True
        elif parts.scheme == "https":
            self._verify = _verify_for(certificate_store)
        else:
            raise UrlError("URL scheme not supported, expects 'http' or 'https'")

        self.scheme = parts.scheme
        self.host = parts.hostname
        self.port = port
        path = parts.path or "/"
        self.path_and_query = f"{path}?{parts.query}" if parts.query else path
        self.target = f"{parts.scheme}://{parts.netloc}{self.path_and_query}"
        self.max_request_body_size = max_request_body_size
        self.certificate_store = certificate_store

    def _check_request_size(self, body: str) -> bytes:
        encoded = body.encode("utf-8")
        if len(encoded) > self.max_request_body_size:
            raise RequestTooLargeError()
        return encoded

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(verify=self._verify, timeout=None, trust_env=False)

    @staticmethod
    def _headers() -> dict[str, str]:
        return {"content-type": CONTENT_TYPE_JSON, "accept": CONTENT_TYPE_JSON}

    async def _read_limited(self, response: httpx.Response) -> bytes:
        declared = response.headers.get("content-length")
        if declared is not None:
            try:
                length = int(declared)
            except ValueError:
                raise MalformedError() from None
            if length > self.max_request_body_size:
                raise RequestTooLargeError()
        received = bytearray()
        async for chunk in response.aiter_bytes():
            received.extend(chunk)
            if len(received) > self.max_request_body_size:
                raise RequestTooLargeError()
        return bytes(received)

    async def _post(self, body: str, read_body: bool) -> bytes:
        encoded = self._check_request_size(body)
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", self.target, content=encoded, headers=self._headers()
                ) as response:
                    if not response.is_success:
                        raise RequestFailureError(response.status_code)
                    if not read_body:
                        return b""
                    return await self._read_limited(response)
        except (httpx.HTTPError, httpx.StreamError, httpx.InvalidURL) as exc:
            raise HttpError(exc) from exc

    async def send(self, body: str) -> None:
        """Send ``body`` without reading the response body."""
        await self._post(body, read_body=False)

    async def send_and_read_body(self, body: str) -> bytes:
        """Send ``body`` and return the whole response body."""
        return await self._post(body, read_body=True)

    def __repr__(self) -> str:
        return f"HttpTransportClient({self.target!r}, max_request_body_size={self.max_request_body_size})"