"""Inbound message envelope shared by all transports."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from remotelog.models.address import Address


class MessageKind(StrEnum):
    REQUEST = "request"
    RESPONSE = "response"


class Message(BaseModel):
    """One unit of work delivered by a transport.

    ``source`` is the apparent sender as reported by the transport.
    ``body`` is the raw request body; transports accept either a JSON
    object or a string of JSON text and normalize both to bytes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: Address
    kind: MessageKind = MessageKind.REQUEST
    body: bytes = Field(default=b"")

    @field_validator("body", mode="before")
    @classmethod
    def _encode_body(cls, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if isinstance(value, str):
            return value.encode("utf-8")
        return json.dumps(value, separators=(",", ":")).encode("utf-8")

    @property
    def is_request(self) -> bool:
        return self.kind == MessageKind.REQUEST

    def to_wire(self) -> dict[str, Any]:
        """Envelope dict suitable for ``json.dumps``."""
        return {
            "source": str(self.source),
            "kind": self.kind.value,
            "body": self.body.decode("utf-8", errors="replace"),
        }


@dataclass(frozen=True)
class SendError:
    """A transport reported that a message could not be delivered."""

    transport: str
    reason: str
    raw: bytes = b""

    def __str__(self) -> str:
        return f"{self.transport}: {self.reason}"


def decode_envelope(payload: bytes | str, *, transport: str) -> Message | SendError:
    """Decode a wire envelope; failures come back as :class:`SendError`."""
    raw = payload.encode("utf-8") if isinstance(payload, str) else payload
    try:
        decoded = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        return SendError(transport=transport, reason=f"envelope is not JSON: {exc}", raw=raw)
    if not isinstance(decoded, dict):
        return SendError(transport=transport, reason="envelope is not a JSON object", raw=raw)
    try:
        return Message.model_validate(decoded)
    except ValidationError as exc:
        return SendError(transport=transport, reason=f"invalid envelope: {exc.error_count()} error(s)", raw=raw)
