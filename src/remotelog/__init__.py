"""remotelog - centralized log ingestion with per-sender access filtering."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("remotelog")
except PackageNotFoundError:
    __version__ = "0+local"
from remotelog.access import AccessFilter
from remotelog.client import RemoteLogClient
from remotelog.config import RemoteLogConfig
from remotelog.exceptions import (
    ForeignControlError,
    InvalidAddressError,
    MalformedLogError,
    RemoteLogConfigError,
    RemoteLogError,
    RemoteLogProtocolError,
    RemoteLogTransportError,
    StorageError,
    UnexpectedResponseError,
    UnknownRequestError,
)
from remotelog.models import (
    Address,
    ControlAction,
    ControlRequest,
    LogRequest,
    Message,
    MessageKind,
    PackageId,
    ProcessId,
    SendError,
)
from remotelog.router import LogRouter
from remotelog.service import LogService, ServiceState, handle_message
from remotelog.storage import Vfs

__all__ = [
    "__version__",
    "AccessFilter",
    "Address",
    "ControlAction",
    "ControlRequest",
    "ForeignControlError",
    "InvalidAddressError",
    "LogRequest",
    "LogRouter",
    "LogService",
    "MalformedLogError",
    "Message",
    "MessageKind",
    "PackageId",
    "ProcessId",
    "RemoteLogClient",
    "RemoteLogConfig",
    "RemoteLogConfigError",
    "RemoteLogError",
    "RemoteLogProtocolError",
    "RemoteLogTransportError",
    "SendError",
    "ServiceState",
    "StorageError",
    "UnexpectedResponseError",
    "UnknownRequestError",
    "Vfs",
    "handle_message",
]
