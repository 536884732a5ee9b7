"""Data models for remotelog.

Re-exports the identifier, request and envelope models.
"""

from remotelog.models.address import Address, PackageId, ProcessId
from remotelog.models.message import Message, MessageKind, SendError, decode_envelope
from remotelog.models.requests import (
    ControlAction,
    ControlRequest,
    LogRequest,
    Request,
    encode_request,
    parse_request,
)

__all__ = [
    "Address",
    "ControlAction",
    "ControlRequest",
    "LogRequest",
    "Message",
    "MessageKind",
    "PackageId",
    "ProcessId",
    "Request",
    "SendError",
    "decode_envelope",
    "encode_request",
    "parse_request",
]
