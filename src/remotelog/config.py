"""Service configuration for remotelog."""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any

from remotelog.exceptions import RemoteLogConfigError
from remotelog.models.address import Address


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise RemoteLogConfigError(f"{env_key} must be an integer, got {value!r}") from exc


def _level(name: str, value: str | int) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        raise RemoteLogConfigError(f"{name} is not a logging level: {value!r}")
    return level


@dataclasses.dataclass(frozen=True)
class RemoteLogConfig:
    """Service configuration.

    Parameters
    ----------
    node : str
        Name of the node this service runs on.
    process : str
        Process name of the service itself.
    package : str
        Package name of the service.
    publisher : str
        Publisher node of the service's package.
    vfs_root : Path
        Directory on local disk that backs the storage drives.
    drive : str
        Drive name for received logs; the drive lives at
        ``/{package}:{publisher}/{drive}`` inside ``vfs_root``.
    mqtt_enabled : bool
        Subscribe to an MQTT broker for inbound messages.
    mqtt_host, mqtt_port : str, int
        Broker location.
    mqtt_topic : str or None
        Inbox topic. Defaults to ``remotelog/{node}/inbox``.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_tls : bool
        Wrap the broker connection in TLS.
    http_enabled : bool
        Serve the HTTP intake endpoint.
    http_host, http_port, http_path : str, int, str
        HTTP intake bind address and route.
    console_level, file_level : str
        Levels for the console and the service's own log file.
    """

    node: str = "localhost"
    process: str = "logging"
    package: str = "logging"
    publisher: str = "sys"
    vfs_root: Path = Path("vfs")
    drive: str = "remote_log"
    mqtt_enabled: bool = False
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_topic: str | None = None
    mqtt_keepalive: int = 60
    mqtt_tls: bool = False
    http_enabled: bool = True
    http_host: str = "127.0.0.1"
    http_port: int = 8711
    http_path: str = "/messages"
    console_level: str = "INFO"
    file_level: str = "DEBUG"

    def __post_init__(self) -> None:
        # Fail early on identifiers that could not form an Address.
        _ = self.our
        _level("console_level", self.console_level)
        _level("file_level", self.file_level)
        if not self.http_path.startswith("/"):
            raise RemoteLogConfigError(f"http_path must start with '/', got {self.http_path!r}")

    @property
    def our(self) -> Address:
        """The service's own address."""
        try:
            return Address.build(self.node, self.process, self.package, self.publisher)
        except ValueError as exc:
            raise RemoteLogConfigError(f"invalid service identity: {exc}") from exc

    @property
    def inbox_topic(self) -> str:
        return self.mqtt_topic or f"remotelog/{self.node}/inbox"

    @property
    def console_log_level(self) -> int:
        return _level("console_level", self.console_level)

    @property
    def file_log_level(self) -> int:
        return _level("file_level", self.file_level)

    @classmethod
    def from_env(cls, **overrides: Any) -> RemoteLogConfig:
        """Create configuration from ``REMOTELOG_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "REMOTELOG_NODE": "node",
            "REMOTELOG_PROCESS": "process",
            "REMOTELOG_PACKAGE": "package",
            "REMOTELOG_PUBLISHER": "publisher",
            "REMOTELOG_DRIVE": "drive",
            "REMOTELOG_MQTT_HOST": "mqtt_host",
            "REMOTELOG_MQTT_TOPIC": "mqtt_topic",
            "REMOTELOG_HTTP_HOST": "http_host",
            "REMOTELOG_HTTP_PATH": "http_path",
            "REMOTELOG_CONSOLE_LEVEL": "console_level",
            "REMOTELOG_FILE_LEVEL": "file_level",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        root_env = env.get("REMOTELOG_VFS_ROOT")
        if root_env is not None:
            config_kwargs["vfs_root"] = Path(root_env)

        _ENV_INT_MAP = {
            "REMOTELOG_MQTT_PORT": "mqtt_port",
            "REMOTELOG_MQTT_KEEPALIVE": "mqtt_keepalive",
            "REMOTELOG_HTTP_PORT": "http_port",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        _ENV_BOOL_MAP = {
            "REMOTELOG_MQTT_ENABLED": ("mqtt_enabled", False),
            "REMOTELOG_MQTT_TLS": ("mqtt_tls", False),
            "REMOTELOG_HTTP_ENABLED": ("http_enabled", True),
        }
        for env_key, (field_name, default) in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), default)

        if "vfs_root" in overrides and not isinstance(overrides["vfs_root"], Path):
            overrides["vfs_root"] = Path(overrides["vfs_root"])

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
