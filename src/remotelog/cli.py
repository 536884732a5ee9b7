"""Command-line entry point: ``remotelog serve|control|log``."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from remotelog._logging import configure_logging
from remotelog.client import RemoteLogClient
from remotelog.config import RemoteLogConfig
from remotelog.exceptions import RemoteLogError
from remotelog.models.requests import ControlAction
from remotelog.service import LogService

_LOG = logging.getLogger("remotelog")

_COMMANDS: dict[str, ControlAction] = {
    "add-allowed-package": ControlAction.ADD_ALLOWED_PACKAGE,
    "remove-allowed-package": ControlAction.REMOVE_ALLOWED_PACKAGE,
    "whitelist-node": ControlAction.WHITELIST_NODE,
    "unwhitelist-node": ControlAction.UNWHITELIST_NODE,
    "blacklist-node": ControlAction.BLACKLIST_NODE,
    "unblacklist-node": ControlAction.UNBLACKLIST_NODE,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remotelog",
        description="Centralized log ingestion with node/package access filtering.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the service until interrupted.")
    serve.add_argument("--node", help="Node name of this service (REMOTELOG_NODE).")
    serve.add_argument("--vfs-root", type=Path, help="Storage root directory (REMOTELOG_VFS_ROOT).")
    serve.add_argument("--http-host", help="HTTP intake bind host.")
    serve.add_argument("--http-port", type=int, help="HTTP intake port.")
    serve.add_argument("--no-http", action="store_true", help="Disable the HTTP intake.")
    serve.add_argument("--mqtt-host", help="Enable MQTT intake against this broker host.")
    serve.add_argument("--mqtt-port", type=int, help="MQTT broker port.")
    serve.add_argument("--mqtt-topic", help="MQTT inbox topic.")
    serve.add_argument("--verbose", "-v", action="store_true", help="Console logging at DEBUG.")

    control = sub.add_parser("control", help="Send a control command to a running service.")
    control.add_argument("action", choices=sorted(_COMMANDS))
    control.add_argument("target", help="Package id (package:publisher) or node name.")
    control.add_argument("--url", help="Service base URL (default from REMOTELOG_HTTP_HOST/PORT).")

    log = sub.add_parser("log", help="Send one log record (for smoke testing).")
    log.add_argument("record", help="JSON object to log.")
    log.add_argument("--source", required=True, help="Sender address node@process:package:publisher.")
    log.add_argument("--url", help="Service base URL (default from REMOTELOG_HTTP_HOST/PORT).")
    return parser


def _serve_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.node:
        overrides["node"] = args.node
    if args.vfs_root:
        overrides["vfs_root"] = args.vfs_root
    if args.http_host:
        overrides["http_host"] = args.http_host
    if args.http_port is not None:
        overrides["http_port"] = args.http_port
    if args.no_http:
        overrides["http_enabled"] = False
    if args.mqtt_host:
        overrides["mqtt_enabled"] = True
        overrides["mqtt_host"] = args.mqtt_host
    if args.mqtt_port is not None:
        overrides["mqtt_port"] = args.mqtt_port
    if args.mqtt_topic:
        overrides["mqtt_topic"] = args.mqtt_topic
    if args.verbose:
        overrides["console_level"] = "DEBUG"
    return overrides


async def _serve(config: RemoteLogConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    async with LogService(config) as service:
        await service.run(stop)


def _base_url(config: RemoteLogConfig, url: str | None) -> str:
    return url or f"http://{config.http_host}:{config.http_port}"


async def _send_control(config: RemoteLogConfig, url: str, action: ControlAction, target: str) -> None:
    async with RemoteLogClient(url, source=config.our, path=config.http_path) as client:
        await client.control(action, target)


async def _send_log(config: RemoteLogConfig, url: str, source: str, record: dict[str, Any]) -> None:
    async with RemoteLogClient(url, source=source, path=config.http_path) as client:
        await client.log(record)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        if args.command == "serve":
            config = RemoteLogConfig.from_env(**_serve_overrides(args))
            log_path = configure_logging(config)
            _LOG.debug("Diagnostics log at %s", log_path)
            asyncio.run(_serve(config))
            return 0

        logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
        config = RemoteLogConfig.from_env()
        url = _base_url(config, args.url)

        if args.command == "control":
            asyncio.run(_send_control(config, url, _COMMANDS[args.action], args.target))
            return 0

        record = json.loads(args.record)
        if not isinstance(record, dict):
            print("record must be a JSON object", file=sys.stderr)
            return 2
        asyncio.run(_send_log(config, url, args.source, record))
        return 0
    except json.JSONDecodeError as exc:
        print(f"invalid JSON record: {exc}", file=sys.stderr)
        return 2
    except RemoteLogError as exc:
        print(f"remotelog: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
