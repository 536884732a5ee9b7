from __future__ import annotations

import json

import pytest

from remotelog.exceptions import UnknownRequestError
from remotelog.models.requests import ControlAction, ControlRequest, LogRequest, encode_request, parse_request


def _body(value: object) -> bytes:
    return json.dumps(value).encode("utf-8")


def test_log_request_from_byte_array() -> None:
    payload = b'{"msg":"hi"}'
    request = parse_request(_body({"Log": list(payload)}))

    assert isinstance(request, LogRequest)
    assert request.log == payload


def test_log_request_from_string() -> None:
    request = parse_request(_body({"Log": '{"msg": "hi"}'}))

    assert isinstance(request, LogRequest)
    assert request.log == b'{"msg": "hi"}'


@pytest.mark.parametrize("action", list(ControlAction))
def test_every_control_command_decodes(action: ControlAction) -> None:
    target = "chat:template.os" if action.targets_package else "alice.os"
    request = parse_request(_body({action.value: target}))

    assert isinstance(request, ControlRequest)
    assert request.action == action
    assert request.target == target


def test_package_command_requires_package_id() -> None:
    with pytest.raises(UnknownRequestError):
        parse_request(_body({"AddAllowedPackage": "not-a-package-id"}))


def test_log_with_extra_key_is_not_a_log_write() -> None:
    with pytest.raises(UnknownRequestError):
        parse_request(_body({"Log": [1, 2], "extra": True}))


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"\xff\xfe",
        _body([1, 2, 3]),
        _body({}),
        _body({"Unknown": "x"}),
        _body({"Log": [256]}),
        _body({"Log": 5}),
        _body({"WhitelistNode": 5}),
        _body({"WhitelistNode": "a", "BlacklistNode": "b"}),
        _body({"log": "{}"}),
        _body({"action": "WhitelistNode", "target": "alice.os"}),
        b'{"Log": 1' + b"0" * 5000 + b"}",
        b"[" * 100_000 + b"]" * 100_000,
    ],
)
def test_unmatched_bodies_raise(body: bytes) -> None:
    with pytest.raises(UnknownRequestError):
        parse_request(body)


def test_encode_request_uses_wire_shapes() -> None:
    log = LogRequest(Log=b"{}")
    control = ControlRequest(action=ControlAction.BLACKLIST_NODE, target="eve.os")

    assert json.loads(encode_request(log)) == {"Log": [123, 125]}
    assert json.loads(encode_request(control)) == {"BlacklistNode": "eve.os"}
    assert parse_request(encode_request(control)) == control


def test_keyword_construction_is_not_a_wire_shape() -> None:
    request = ControlRequest(action=ControlAction.WHITELIST_NODE, target="alice.os")

    assert request.model_dump() == {"WhitelistNode": "alice.os"}
    with pytest.raises(UnknownRequestError):
        parse_request(_body({"action": "WhitelistNode", "target": "alice.os"}))
