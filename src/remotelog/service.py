"""Message dispatch loop for the remote log service.

Every inbound message goes through the same sequence:

1. reject responses (protocol violation),
2. run the access filter on the sender (denials are logged and dropped),
3. decode the body into a log write or a control command,
4. append the log record, or apply the control command.

Messages are handled one at a time, in arrival order. Handling a message
never awaits, so the filter check, state mutation, and file append for a
message cannot interleave with another message.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any

from remotelog._mqtt import MqttInbox
from remotelog.access import AccessFilter
from remotelog.config import RemoteLogConfig
from remotelog.control import handle_control_request
from remotelog.exceptions import RemoteLogError, UnexpectedResponseError
from remotelog.intake import HttpIntake
from remotelog.models.address import Address
from remotelog.models.message import Message, SendError
from remotelog.models.requests import ControlRequest, LogRequest, parse_request
from remotelog.router import LogRouter
from remotelog.storage import Vfs

_logger = logging.getLogger(__name__)

InboxItem = Message | SendError


@dataclass
class ServiceState:
    """All mutable state of the service, owned by the dispatch loop."""

    router: LogRouter
    access: AccessFilter = field(default_factory=AccessFilter)

    @property
    def drive_path(self) -> str:
        return self.router.drive_path

    @classmethod
    def create(cls, vfs: Vfs, our: Address, drive: str) -> ServiceState:
        """Create the log drive and an empty state.

        A :class:`~remotelog.exceptions.StorageError` here is fatal.
        """
        drive_path = vfs.create_drive(our.package_id, drive)
        return cls(router=LogRouter(vfs, drive_path))


def handle_message(our: Address, message: Message, state: ServiceState) -> None:
    """Handle one inbound message; errors propagate to the caller."""
    if not message.is_request:
        raise UnexpectedResponseError(f"unexpected response from {message.source}")

    source = message.source
    failure_message = state.access.check(source)
    if failure_message is not None:
        _logger.info("%s", failure_message)
        return

    request = parse_request(message.body)
    if isinstance(request, LogRequest):
        state.router.route(source, request.log)
    elif isinstance(request, ControlRequest):
        handle_control_request(our, source, request, state.access)


def process_item(our: Address, item: InboxItem, state: ServiceState) -> None:
    """Handle one inbox item, logging any failure instead of raising it."""
    if isinstance(item, SendError):
        _logger.error("got SendError: %s", item)
        return
    try:
        handle_message(our, item, state)
    except RemoteLogError as exc:
        _logger.error("got error while handling message from %s: %s", item.source, exc)
    except Exception:
        _logger.exception("unexpected failure while handling message from %s", item.source)


class LogService:
    """Remote log service: transports feeding one dispatch loop.

    Usage::

        async with LogService(config) as service:
            await service.run()
    """

    def __init__(
        self,
        config: RemoteLogConfig,
        *,
        vfs: Vfs | None = None,
    ) -> None:
        self._config = config
        self._our = config.our
        self._vfs = vfs or Vfs(config.vfs_root)
        self._state: ServiceState | None = None
        self._inbox: asyncio.Queue[InboxItem] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._mqtt: MqttInbox | None = None
        self._http: HttpIntake | None = None

    @property
    def our(self) -> Address:
        return self._our

    @property
    def state(self) -> ServiceState:
        if self._state is None:
            raise RemoteLogError("Service not started. Use 'async with LogService(...) as service:'")
        return self._state

    @property
    def http(self) -> HttpIntake | None:
        return self._http

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LogService:
        self._loop = asyncio.get_running_loop()
        self._inbox = asyncio.Queue()
        self._state = ServiceState.create(self._vfs, self._our, self._config.drive)
        _logger.info("begin our=%s drive=%s", self._our, self._state.drive_path)

        try:
            if self._config.http_enabled:
                self._http = HttpIntake(self._config, self.submit)
                await self._http.start()
            if self._config.mqtt_enabled:
                self._mqtt = MqttInbox(
                    loop=self._loop,
                    on_item=self.submit,
                    keepalive=self._config.mqtt_keepalive,
                )
                self._mqtt.start(
                    self._config.mqtt_host,
                    self._config.mqtt_port,
                    self._config.inbox_topic,
                    client_id=f"remotelog-{self._our.node}",
                    tls=self._config.mqtt_tls,
                )
        except BaseException:
            await self._shutdown()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._shutdown()

    async def _shutdown(self) -> None:
        if self._mqtt is not None:
            self._mqtt.stop()
            self._mqtt = None
        if self._http is not None:
            await self._http.stop()
            self._http = None
        if self._state is not None:
            self._state.router.close()
        self._loop = None
        _logger.info("stopped our=%s", self._our)

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def submit(self, item: InboxItem) -> None:
        """Queue an inbound message or delivery failure for the loop."""
        if self._inbox is None:
            raise RemoteLogError("Service not started. Use 'async with LogService(...) as service:'")
        self._inbox.put_nowait(item)

    def handle(self, item: InboxItem) -> None:
        process_item(self._our, item, self.state)

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Serve queued messages until *stop* is set or the task is cancelled."""
        inbox = self._inbox
        if inbox is None:
            raise RemoteLogError("Service not started. Use 'async with LogService(...) as service:'")

        while stop is None or not stop.is_set():
            if stop is None:
                item = await inbox.get()
            else:
                item = await self._next_or_stop(inbox, stop)
                if item is None:
                    break
            try:
                self.handle(item)
            finally:
                inbox.task_done()

    async def join(self) -> None:
        """Wait until every queued item has been handled."""
        if self._inbox is not None:
            await self._inbox.join()

    @staticmethod
    async def _next_or_stop(inbox: asyncio.Queue[InboxItem], stop: asyncio.Event) -> InboxItem | None:
        get_task = asyncio.ensure_future(inbox.get())
        stop_task = asyncio.ensure_future(stop.wait())
        try:
            await asyncio.wait({get_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (get_task, stop_task):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task
        if get_task.cancelled():
            return None
        return get_task.result()
