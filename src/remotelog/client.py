"""Async HTTP client for sending messages to a remotelog service."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from remotelog.exceptions import RemoteLogError, RemoteLogTransportError
from remotelog.models.address import Address, PackageId
from remotelog.models.message import Message, MessageKind
from remotelog.models.requests import ControlAction, ControlRequest, LogRequest, Request, encode_request

_logger = logging.getLogger(__name__)


class RemoteLogClient:
    """Async client posting envelopes to a service's HTTP intake.

    Usage::

        async with RemoteLogClient("http://127.0.0.1:8711", source=address) as client:
            await client.log({"level": "info", "msg": "hello"})
    """

    def __init__(
        self,
        base_url: str,
        *,
        source: Address | str,
        path: str = "/messages",
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}{path}"
        self._source = source if isinstance(source, Address) else Address.parse(source)
        self._external_session = session is not None
        self._http_session = session

    @property
    def source(self) -> Address:
        return self._source

    async def __aenter__(self) -> RemoteLogClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise RemoteLogError("Client not initialized. Use 'async with RemoteLogClient(...) as client:'")
        return self._http_session

    async def send(self, request: Request, *, kind: MessageKind = MessageKind.REQUEST) -> None:
        """Post one request; the service never reports the outcome."""
        message = Message(source=self._source, kind=kind, body=encode_request(request))
        body = json.dumps(message.to_wire(), separators=(",", ":"))
        _logger.debug("POST %s source=%s", self._url, self._source)
        try:
            async with self._require_session().post(
                self._url,
                data=body,
                headers={"content-type": "application/json"},
            ) as resp:
                if resp.status != 202:
                    text = await resp.text()
                    raise RemoteLogTransportError(
                        f"HTTP {resp.status} from {self._url}: {text[:200]}",
                        status_code=resp.status,
                        url=self._url,
                    )
        except RemoteLogTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise RemoteLogTransportError(f"Request to {self._url} failed: {exc}", url=self._url) from exc

    async def log(self, record: Mapping[str, Any]) -> None:
        """Send a structured log record."""
        payload = json.dumps(dict(record), separators=(",", ":")).encode("utf-8")
        await self.send(LogRequest(Log=payload))

    async def control(self, action: ControlAction, target: str) -> None:
        await self.send(ControlRequest(action=action, target=target))

    async def add_allowed_package(self, package_id: PackageId | str) -> None:
        await self.control(ControlAction.ADD_ALLOWED_PACKAGE, str(package_id))

    async def remove_allowed_package(self, package_id: PackageId | str) -> None:
        await self.control(ControlAction.REMOVE_ALLOWED_PACKAGE, str(package_id))

    async def whitelist_node(self, node: str) -> None:
        await self.control(ControlAction.WHITELIST_NODE, node)

    async def unwhitelist_node(self, node: str) -> None:
        await self.control(ControlAction.UNWHITELIST_NODE, node)

    async def blacklist_node(self, node: str) -> None:
        await self.control(ControlAction.BLACKLIST_NODE, node)

    async def unblacklist_node(self, node: str) -> None:
        await self.control(ControlAction.UNBLACKLIST_NODE, node)
