"""MQTT inbound transport.

A paho-mqtt network thread receives envelopes on the inbox topic and hands
decoded messages (or delivery failures) to the asyncio loop. The thread
never touches service state itself.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from remotelog.models.message import Message, SendError, decode_envelope

TRANSPORT_NAME = "mqtt"


class MqttInbox:
    """Threaded paho-mqtt subscriber that emits inbox items onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_item: Callable[[Message | SendError], None],
        keepalive: int = 60,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_item = on_item
        self._keepalive = keepalive
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        """Whether the MQTT network loop is active."""
        return self._running

    def _deliver(self, item: Message | SendError) -> None:
        self._loop.call_soon_threadsafe(self._on_item, item)

    def handle_payload(self, topic: str, payload: bytes) -> None:
        """Decode one MQTT payload and hand it to the loop."""
        item = decode_envelope(payload, transport=TRANSPORT_NAME)
        if isinstance(item, SendError):
            self._logger.debug("MQTT envelope rejected topic=%s reason=%s", topic, item.reason)
        else:
            self._logger.debug("MQTT message topic=%s source=%s kind=%s", topic, item.source, item.kind)
        self._deliver(item)

    def _on_message(self, _client: Any, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        try:
            self.handle_payload(msg.topic, msg.payload)
        except RuntimeError:
            # Loop already closed during shutdown.
            self._logger.debug("MQTT message dropped after loop shutdown", exc_info=True)
        except Exception:
            # paho re-raises callback errors and stops its network thread
            self._logger.exception("MQTT message on %s could not be queued", msg.topic)

    def start(
        self,
        host: str,
        port: int,
        topic: str,
        *,
        client_id: str,
        username: str | None = None,
        password: str | None = None,
        tls: bool = False,
    ) -> None:
        """Connect to the broker and subscribe to *topic*."""
        self.stop()
        self._logger.debug(
            "MQTT inbox start requested host=%s port=%s topic=%s client_id=%s",
            host,
            port,
            topic,
            client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if username is not None:
            client.username_pw_set(username, password)
        if tls:
            client.tls_set()

        self._topic = topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected reason=%s", reason_code)
            if self._topic:
                self._logger.info("MQTT subscribing topic=%s", self._topic)
                c.subscribe(self._topic, qos=1)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.warning("MQTT disconnected: %s", reason_code)
                self._deliver(SendError(transport=TRANSPORT_NAME, reason=f"disconnected: {reason_code}"))

        client.on_connect = on_connect
        client.on_message = self._on_message
        client.on_disconnect = on_disconnect

        client.connect(host, port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect the current client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
