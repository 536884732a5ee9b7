"""Request body models and untagged request decoding.

Bodies are JSON using external tagging: the single key names the variant.

* log write: ``{"Log": [123, 34, ...]}`` or ``{"Log": "{\\"msg\\": ...}"}``
* control:   ``{"WhitelistNode": "alice.os"}``

:func:`parse_request` tries each known shape in a fixed order and uses the
first one that validates.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_serializer,
    model_validator,
)

from remotelog.exceptions import InvalidAddressError, UnknownRequestError
from remotelog.models.address import PackageId, validate_component


class LogRequest(BaseModel):
    """A log entry to persist; ``log`` holds the serialized record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    log: bytes = Field(..., alias="Log")

    @field_validator("log", mode="before")
    @classmethod
    def _coerce_bytes(cls, value: Any) -> Any:
        # serde encodes Vec<u8> as an array of integers
        if isinstance(value, list):
            if not all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in value):
                raise ValueError("Log byte array must hold integers in 0..255")
            return bytes(value)
        if isinstance(value, str):
            return value.encode("utf-8")
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        raise ValueError("Log must be a byte array or a string")

    @model_serializer
    def _to_wire(self) -> dict[str, Any]:
        return {"Log": list(self.log)}


class ControlAction(StrEnum):
    ADD_ALLOWED_PACKAGE = "AddAllowedPackage"
    REMOVE_ALLOWED_PACKAGE = "RemoveAllowedPackage"
    WHITELIST_NODE = "WhitelistNode"
    UNWHITELIST_NODE = "UnwhitelistNode"
    BLACKLIST_NODE = "BlacklistNode"
    UNBLACKLIST_NODE = "UnblacklistNode"

    @property
    def targets_package(self) -> bool:
        return self in (ControlAction.ADD_ALLOWED_PACKAGE, ControlAction.REMOVE_ALLOWED_PACKAGE)


class ControlRequest(BaseModel):
    """Administrative command mutating the access filter."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    action: ControlAction
    target: str

    @model_validator(mode="before")
    @classmethod
    def _from_tagged(cls, value: Any, info: ValidationInfo) -> Any:
        # keyword construction passes through; wire bodies use the tagged form only
        if not isinstance(value, dict) or not (info.context or {}).get("wire"):
            return value
        if len(value) != 1:
            raise ValueError("control request must have exactly one key")
        ((action, target),) = value.items()
        return {"action": action, "target": target}

    @model_validator(mode="after")
    def _check_target(self) -> ControlRequest:
        if self.action.targets_package:
            PackageId.parse(self.target)
        else:
            validate_component(self.target)
        return self

    @property
    def package_id(self) -> PackageId:
        return PackageId.parse(self.target)

    @model_serializer
    def _to_wire(self) -> dict[str, str]:
        return {self.action.value: self.target}


Request = LogRequest | ControlRequest

_REQUEST_SHAPES: tuple[type[LogRequest] | type[ControlRequest], ...] = (LogRequest, ControlRequest)


def parse_request(body: bytes) -> Request:
    """Decode a request body into the first request shape it matches."""
    try:
        decoded = json.loads(body)
    except (ValueError, RecursionError) as exc:
        raise UnknownRequestError(f"request body is not JSON: {exc}") from exc

    for shape in _REQUEST_SHAPES:
        try:
            return shape.model_validate(decoded, context={"wire": True})
        except (ValidationError, InvalidAddressError):
            continue
    raise UnknownRequestError(f"request body matches no known request: {_preview(body)}")


def encode_request(request: Request) -> bytes:
    return json.dumps(request.model_dump(), separators=(",", ":")).encode("utf-8")


def _preview(body: bytes, limit: int = 200) -> str:
    text = body.decode("utf-8", errors="replace")
    if len(text) > limit:
        return f"{text[:limit]}…"
    return text
