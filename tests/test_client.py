import asyncio
import contextlib
import json

import pytest

from rpcgate.client import HttpClient, MaxSlotsExceededError, RequestIdManager
from rpcgate.errors import (
    ErrorCode,
    HttpNotImplementedError,
    InvalidRequestIdError,
    ParseError,
    RequestError,
    RequestTimeoutError,
    UrlError,
    error_response_json,
)


@contextlib.asynccontextmanager
async def hardcoded_server(body, delay=0.0):
    received = []

    async def handle(reader, writer):
        try:
            head = await reader.readuntil(b"\r\n\r\n")
            length = 0
            for line in head.decode("latin-1").split("\r\n")[1:]:
                name, _, value = line.partition(":")
                if name.strip().lower() == "content-length":
                    length = int(value.strip())
            received.append(await reader.readexactly(length))
            if delay:
                await asyncio.sleep(delay)
            data = body.encode()
            writer.write(
                b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                + f"Content-Length: {len(data)}\r\nConnection: close\r\n\r\n".encode()
                + data
            )
            await writer.drain()
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}", received
    finally:
        server.close()
        await server.wait_closed()


def ok_response(result, request_id):
    return json.dumps({"jsonrpc": "2.0", "result": result, "id": request_id})


async def run_request_with_response(response):
    async with hardcoded_server(response) as (url, _):
        client = HttpClient(url)
        return await client.request("say_hello", None)


async def run_batch_request_with_response(batch, response):
    async with hardcoded_server(response) as (url, _):
        client = HttpClient(url)
        return await client.batch_request(batch)


def assert_jsonrpc_error_response(err, code):
    assert isinstance(err, RequestError)
    parsed = json.loads(err.payload)
    assert parsed["error"] == {"code": int(code), "message": code.message()}


@pytest.mark.asyncio
async def test_method_call_works():
    result = await run_request_with_response(ok_response("hello", 0))
    assert result == "hello"


@pytest.mark.asyncio
async def test_notification_works():
    async with hardcoded_server("") as (url, received):
        client = HttpClient(url)
        result = await client.notification(
            "i_dont_care_about_the_response_because_the_server_should_not_respond", None
        )
    assert result is None
    assert json.loads(received[0]) == {
        "jsonrpc": "2.0",
        "method": "i_dont_care_about_the_response_because_the_server_should_not_respond",
    }


@pytest.mark.asyncio
async def test_request_body_is_jsonrpc():
    async with hardcoded_server(ok_response(3, 0)) as (url, received):
        client = HttpClient(url)
        result = await client.request("add", [1, 2])
    assert result == 3
    assert json.loads(received[0]) == {"jsonrpc": "2.0", "method": "add", "params": [1, 2], "id": 0}


@pytest.mark.asyncio
async def test_response_with_wrong_id():
    with pytest.raises(InvalidRequestIdError):
        await run_request_with_response(ok_response("hello", 99))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code",
    [
        ErrorCode.METHOD_NOT_FOUND,
        ErrorCode.PARSE_ERROR,
        ErrorCode.INVALID_REQUEST,
        ErrorCode.INVALID_PARAMS,
        ErrorCode.INTERNAL_ERROR,
    ],
)
async def test_error_responses(code):
    with pytest.raises(RequestError) as info:
        await run_request_with_response(error_response_json(code, 0))
    assert_jsonrpc_error_response(info.value, code)


@pytest.mark.asyncio
async def test_subscription_response_to_request():
    req = (
        '{"jsonrpc":"2.0","method":"subscribe_hello","params":{"subscription":'
        '"3px4FrtxSYQ1zBKW154NoVnrDhrq764yQNCXEgZyM6Mu","result":"hello my friend"}}'
    )
    with pytest.raises(ParseError):
        await run_request_with_response(req)


@pytest.mark.asyncio
async def test_garbage_response_is_parse_error():
    with pytest.raises(ParseError):
        await run_request_with_response("not json at all")


@pytest.mark.asyncio
async def test_batch_request_works():
    batch = [("say_hello", []), ("say_goodbye", [0, 1, 2]), ("get_swag", None)]
    server_response = (
        '[{"jsonrpc":"2.0","result":"hello","id":0}, {"jsonrpc":"2.0","result":"goodbye","id":1},'
        ' {"jsonrpc":"2.0","result":"here\'s your swag","id":2}]'
    )
    response = await run_batch_request_with_response(batch, server_response)
    assert response == ["hello", "goodbye", "here's your swag"]


@pytest.mark.asyncio
async def test_batch_request_out_of_order_response():
    batch = [("say_hello", {}), ("say_goodbye", [0, 1, 2]), ("get_swag", None)]
    server_response = (
        '[{"jsonrpc":"2.0","result":"here\'s your swag","id":2}, {"jsonrpc":"2.0","result":"hello","id":0},'
        ' {"jsonrpc":"2.0","result":"goodbye","id":1}]'
    )
    response = await run_batch_request_with_response(batch, server_response)
    assert response == ["hello", "goodbye", "here's your swag"]


@pytest.mark.asyncio
async def test_batch_request_unknown_id():
    server_response = '[{"jsonrpc":"2.0","result":"hello","id":7}]'
    with pytest.raises(InvalidRequestIdError):
        await run_batch_request_with_response([("say_hello", None)], server_response)


@pytest.mark.asyncio
async def test_batch_request_error_object():
    server_response = error_response_json(ErrorCode.INVALID_REQUEST, None)
    with pytest.raises(RequestError) as info:
        await run_batch_request_with_response([("say_hello", None)], server_response)
    assert_jsonrpc_error_response(info.value, ErrorCode.INVALID_REQUEST)


@pytest.mark.asyncio
async def test_request_timeout():
    async with hardcoded_server(ok_response("late", 0), delay=0.5) as (url, _):
        client = HttpClient(url, request_timeout=0.05)
        with pytest.raises(RequestTimeoutError):
            await client.request("say_hello")


@pytest.mark.asyncio
async def test_subscriptions_not_implemented():
    client = HttpClient("http://localhost:9933")
    with pytest.raises(HttpNotImplementedError):
        await client.subscribe("sub", None, "unsub")
    with pytest.raises(HttpNotImplementedError):
        await client.subscribe_to_method("method")


def test_invalid_target_rejected():
    with pytest.raises(UrlError):
        HttpClient("ws://localhost:9933")


def test_request_id_manager_hands_out_consecutive_ids():
    manager = RequestIdManager(10)
    assert manager.next_request_id() == 0
    assert manager.next_request_ids(3) == [1, 2, 3]
    assert manager.pending == 4
    manager.release(4)
    assert manager.pending == 0
    assert manager.next_request_id() == 4


def test_request_id_manager_limits_slots():
    manager = RequestIdManager(2)
    manager.next_request_ids(2)
    with pytest.raises(MaxSlotsExceededError):
        manager.next_request_id()
    manager.release(1)
    assert manager.next_request_id() == 2


def test_request_id_manager_rejects_over_release():
    manager = RequestIdManager(2)
    manager.next_request_id()
    with pytest.raises(ValueError):
        manager.release(2)


@pytest.mark.asyncio
async def test_slots_are_released_after_request():
    async with hardcoded_server(ok_response("hello", 0)) as (url, _):
        client = HttpClient(url, max_concurrent_requests=1)
        assert await client.request("say_hello") == "hello"
    async with hardcoded_server(ok_response("again", 1)) as (url2, _):
        client._transport = type(client._transport)(url2)
        assert await client.request("say_hello") == "again"