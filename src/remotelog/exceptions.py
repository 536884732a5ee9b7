"""Custom exception hierarchy for remotelog."""

from __future__ import annotations


class RemoteLogError(Exception):
    """Base exception for all remotelog errors."""


class RemoteLogConfigError(RemoteLogError):
    """Invalid or missing configuration."""


class RemoteLogProtocolError(RemoteLogError):
    """A sender broke the message protocol."""


class UnexpectedResponseError(RemoteLogProtocolError):
    """A response arrived where only requests are accepted."""


class UnknownRequestError(RemoteLogProtocolError):
    """Request body matched none of the known request shapes."""


class ForeignControlError(RemoteLogProtocolError):
    """Control command sent by an address other than the service's own."""

    def __init__(self, message: str, *, source: str = "") -> None:
        self.source = source
        super().__init__(message)


class InvalidAddressError(RemoteLogProtocolError, ValueError):
    """Address, process id or package id string could not be parsed."""


class MalformedLogError(RemoteLogError):
    """Log payload is not a JSON object."""


class StorageError(RemoteLogError):
    """Directory or file creation, or an append, failed."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class RemoteLogTransportError(RemoteLogError):
    """HTTP-level failure talking to a remotelog service."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)
