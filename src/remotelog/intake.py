"""HTTP inbound transport.

``POST {http_path}`` with a JSON envelope queues one message and answers
``202 Accepted`` with an empty body. Whether the message is later written,
dropped by the access filter, or fails is never reported back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from aiohttp import web

from remotelog.config import RemoteLogConfig
from remotelog.models.message import Message, SendError, decode_envelope

_logger = logging.getLogger(__name__)

TRANSPORT_NAME = "http"


def build_app(path: str, on_item: Callable[[Message | SendError], None]) -> web.Application:
    """Build the intake application posting into *on_item*."""

    async def receive(request: web.Request) -> web.Response:
        payload = await request.read()
        item = decode_envelope(payload, transport=TRANSPORT_NAME)
        if isinstance(item, SendError):
            _logger.debug("HTTP envelope rejected remote=%s reason=%s", request.remote, item.reason)
            on_item(item)
            return web.Response(status=400, text=item.reason)
        _logger.debug("HTTP message remote=%s source=%s kind=%s", request.remote, item.source, item.kind)
        on_item(item)
        return web.Response(status=202)

    app = web.Application()
    app.router.add_post(path, receive)
    return app


class HttpIntake:
    """aiohttp server running the intake application."""

    def __init__(self, config: RemoteLogConfig, on_item: Callable[[Message | SendError], None]) -> None:
        self._config = config
        self._app = build_app(config.http_path, on_item)
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def app(self) -> web.Application:
        return self._app

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        runner = web.AppRunner(self._app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._config.http_host, self._config.http_port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner
        self._site = site
        _logger.info(
            "HTTP intake listening on http://%s:%s%s",
            self._config.http_host,
            self._config.http_port,
            self._config.http_path,
        )

    async def stop(self) -> None:
        runner = self._runner
        self._runner = None
        self._site = None
        if runner is not None:
            await runner.cleanup()
            _logger.debug("HTTP intake stopped")
