# rpcgate

An asyncio JSON-RPC 2.0 client over HTTP, plus the building blocks a
JSON-RPC HTTP server uses to vet incoming requests: `Host` header checks,
CORS origin and header checks, content-type checks, and ready-made error
responses.

## Installation

```
pip install rpcgate
```

With the test dependencies:

```
pip install "rpcgate[test]"
```

## Client

`rpcgate.client.HttpClient` sends requests, notifications and batches to one
`http://host:port/path` or `https://host:port/path` endpoint. The URL must
include a port; any other scheme raises `UrlError`.

```python
import asyncio
from rpcgate.client import HttpClient

async def main():
    client = HttpClient("http://127.0.0.1:9933")
    greeting = await client.request("say_hello", [1, 2, 3])
    await client.notification("log_event", {"level": "info"})
    results = await client.batch_request([
        ("say_hello", None),
        ("add", [1, 2]),
    ])
    print(greeting, results)

asyncio.run(main())
```

Constructor options and their defaults:

- `max_request_body_size`: 10 MiB. Larger request bodies raise
  `RequestTooLargeError`, and so do response bodies over the same limit.
- `request_timeout`: 60 seconds, as a number of seconds or a `timedelta`.
- `max_concurrent_requests`: 256. More requests in flight at once raise
  `MaxSlotsExceededError` (from `rpcgate.client`).
- `certificate_store`: `CertificateStore.NATIVE` or `CertificateStore.WEB_PKI`
  (from `rpcgate.transport`). It selects the trust roots for `https` targets.

`batch_request` returns results in the order of the calls, even when the
server answers out of order. A call that gets no response is left as `None`.

Subscriptions are not available over HTTP. `subscribe` and
`subscribe_to_method` always raise `HttpNotImplementedError`.

### Errors

Every exception derives from `rpcgate.errors.RpcError`:

- `RequestTimeoutError`: the server did not answer in time.
- `InvalidRequestIdError`: a response id does not match any request.
- `RequestError`: the server answered with a JSON-RPC error object. Its
  `payload` holds that error response as JSON.
- `ParseError`: the response could not be understood.
- `TransportError` and its subclasses `UrlError`, `HttpError`,
  `RequestFailureError` (with `status_code`), `RequestTooLargeError`,
  `MalformedError` and `InvalidCertificateStoreError`.
- `EmptyAllowListError`: an access-control allow list was empty.

`ErrorCode` lists the standard JSON-RPC error codes, plus -32701 for
oversized requests. `error_response_json(code, request_id)` serializes an
error response.

## Access control

`rpcgate.access_control.AccessControlBuilder` restricts which hosts, CORS
origins and CORS request headers are accepted. Patterns may use glob
wildcards and are matched case-insensitively.

```python
from rpcgate.access_control import AccessControlBuilder

acl = (
    AccessControlBuilder()
    .set_allowed_hosts(["localhost:*", "*.example.com"])
    .set_allowed_origins(["https://app.example.com"])
    .set_allowed_headers(["x-request-id"])
    .build()
)

headers = {"host": "localhost:9933", "origin": "https://app.example.com"}
assert not acl.deny_host(headers)
assert not acl.deny_cors_origin(headers)
assert not acl.deny_cors_header(headers)
```

Headers may be given as a mapping or as `(name, value)` pairs. By default
everything is allowed. With `continue_on_invalid_cors(True)`, requests that
fail the CORS checks are let through.

The lower-level pieces are also available:

- `rpcgate.hosts`: `Host`, `Port`, `AllowHosts` and `is_host_valid`.
- `rpcgate.cors`: `Origin`, `OriginProtocol`, `AccessControlAllowOrigin`,
  `AccessControlAllowHeaders`, `AllowCors`, `get_cors_allow_origin` and
  `get_cors_allow_headers`.
- `rpcgate.matcher`: `Matcher`, the glob matcher used by both.

## Request checks and responses

`rpcgate.request_checks` provides:

- `is_json(content_type)`
- `content_type_is_valid(method, headers)`: accepts only `POST` with a JSON
  content type.
- `access_control_is_valid(access_control, headers)`: checks the host first,
  then the CORS origin, then the CORS headers.

Both checks return `None` when the request passes. Otherwise they return the
`HttpResponse` that rejects it.

`rpcgate.response` builds those responses: `host_not_allowed`,
`method_not_allowed`, `invalid_allow_origin`, `invalid_allow_headers`,
`too_large`, `malformed`, `internal_error` and `ok_response`. Each
`HttpResponse` has `status`, `body`, `content_type`, `headers` and
`body_bytes`.

## What this package does not do

It contains no JSON-RPC server. Nothing listens on a socket, registers
methods or dispatches calls. The access-control, request-check and response
pieces are meant to be used inside an HTTP server you provide.

The only transport is HTTP. There is no WebSocket support, so there are no
subscriptions.