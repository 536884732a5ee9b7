"""Logging setup for the service process.

Console output at the configured console level, plus a file in the
service's own package drive (``/{package}:{publisher}/log/{process}.log``)
at the configured file level.
"""

from __future__ import annotations

import logging
from pathlib import Path

from remotelog.config import RemoteLogConfig
from remotelog.storage import Vfs

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(config: RemoteLogConfig, vfs: Vfs | None = None) -> Path:
    """Install console and file handlers on the root logger.

    Returns the local path of the log file.
    """
    vfs = vfs or Vfs(config.vfs_root)
    our = config.our
    log_dir = vfs.open_dir(f"/{our.package_id}/log", create=True)
    log_path = vfs.resolve(f"{log_dir}/{our.process_name}.log")

    formatter = logging.Formatter(_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(config.console_log_level)
    console.setFormatter(formatter)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(config.file_log_level)
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(console)
    root.addHandler(file_handler)
    root.setLevel(min(config.console_log_level, config.file_log_level))
    # intake logs each request itself
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    return log_path
