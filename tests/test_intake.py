from __future__ import annotations

import json

import pytest
from aiohttp import test_utils

from remotelog.client import RemoteLogClient
from remotelog.exceptions import RemoteLogTransportError
from remotelog.intake import build_app
from remotelog.models.address import Address
from remotelog.models.message import Message, MessageKind, SendError
from remotelog.models.requests import ControlAction, ControlRequest, LogRequest, parse_request

SOURCE = "alice.os@chat:chat:template.os"


@pytest.mark.asyncio
async def test_post_envelope_queues_message() -> None:
    items: list[Message | SendError] = []
    envelope = {"source": SOURCE, "body": {"Log": list(b'{"msg":"hi"}')}}

    async with test_utils.TestClient(test_utils.TestServer(build_app("/messages", items.append))) as client:
        resp = await client.post("/messages", data=json.dumps(envelope))
        assert resp.status == 202
        assert await resp.read() == b""

    assert len(items) == 1
    message = items[0]
    assert isinstance(message, Message)
    assert message.is_request
    assert message.source == Address.parse(SOURCE)
    request = parse_request(message.body)
    assert isinstance(request, LogRequest)
    assert request.log == b'{"msg":"hi"}'


@pytest.mark.asyncio
async def test_body_may_be_json_text() -> None:
    items: list[Message | SendError] = []
    envelope = {"source": SOURCE, "kind": "response", "body": '{"WhitelistNode": "bob.os"}'}

    async with test_utils.TestClient(test_utils.TestServer(build_app("/messages", items.append))) as client:
        resp = await client.post("/messages", data=json.dumps(envelope))
        assert resp.status == 202

    message = items[0]
    assert isinstance(message, Message)
    assert message.kind == MessageKind.RESPONSE
    assert message.body == b'{"WhitelistNode": "bob.os"}'


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"[]",
        json.dumps({"body": {}}).encode(),
        json.dumps({"source": "no-at-sign", "body": {}}).encode(),
        json.dumps({"source": SOURCE, "kind": "sideways"}).encode(),
        json.dumps({"source": SOURCE, "body": {}, "priority": "high"}).encode(),
        b'{"source": 1' + b"0" * 5000 + b"}",
        b"[" * 100_000 + b"]" * 100_000,
    ],
)
async def test_bad_envelope_answers_400(payload: bytes) -> None:
    items: list[Message | SendError] = []

    async with test_utils.TestClient(test_utils.TestServer(build_app("/messages", items.append))) as client:
        resp = await client.post("/messages", data=payload)
        assert resp.status == 400

    assert len(items) == 1
    assert isinstance(items[0], SendError)
    assert items[0].transport == "http"


@pytest.mark.asyncio
async def test_other_paths_not_found() -> None:
    items: list[Message | SendError] = []

    async with test_utils.TestClient(test_utils.TestServer(build_app("/messages", items.append))) as client:
        resp = await client.post("/elsewhere", data=b"{}")
        assert resp.status == 404

    assert items == []


@pytest.mark.asyncio
async def test_client_round_trip_through_intake() -> None:
    items: list[Message | SendError] = []
    server = test_utils.TestServer(build_app("/messages", items.append))

    async with server:
        base_url = str(server.make_url(""))
        async with RemoteLogClient(base_url, source=SOURCE) as client:
            await client.log({"level": "info", "msg": "hello"})
            await client.whitelist_node("bob.os")
            await client.add_allowed_package("chat:template.os")

    assert len(items) == 3
    assert all(isinstance(item, Message) for item in items)
    requests = [parse_request(item.body) for item in items if isinstance(item, Message)]
    assert isinstance(requests[0], LogRequest)
    assert json.loads(requests[0].log) == {"level": "info", "msg": "hello"}
    assert requests[1] == ControlRequest(action=ControlAction.WHITELIST_NODE, target="bob.os")
    assert requests[2] == ControlRequest(action=ControlAction.ADD_ALLOWED_PACKAGE, target="chat:template.os")


@pytest.mark.asyncio
async def test_client_raises_on_rejected_post() -> None:
    items: list[Message | SendError] = []
    server = test_utils.TestServer(build_app("/messages", items.append))

    async with server:
        base_url = str(server.make_url(""))
        async with RemoteLogClient(base_url, source=SOURCE, path="/wrong") as client:
            with pytest.raises(RemoteLogTransportError) as exc_info:
                await client.blacklist_node("eve.os")

    assert exc_info.value.status_code == 404
