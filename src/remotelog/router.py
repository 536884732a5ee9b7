"""Per-sender log file multiplexing.

Each sender address gets one append-only file,
``{drive_path}/{package_id}/{process_name}.log``, opened on first use and
cached for the lifetime of the router.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from remotelog._redact import redact_for_log
from remotelog.exceptions import MalformedLogError
from remotelog.models.address import Address
from remotelog.storage import LogFile, Vfs

_logger = logging.getLogger(__name__)


def stamp_record(payload: bytes, source: Address) -> tuple[dict[str, Any], bytes]:
    """Parse *payload*, set its ``source`` field, and re-serialize it."""
    try:
        record = json.loads(payload)
    except (ValueError, RecursionError) as exc:
        raise MalformedLogError(f"log from {source} is not JSON: {exc}") from exc
    if record is None:
        record = {}
    if not isinstance(record, dict):
        raise MalformedLogError(f"log from {source} is a JSON {type(record).__name__}, not an object")
    record["source"] = str(source)
    return record, json.dumps(record, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class LogRouter:
    """Routes accepted log records to per-sender files."""

    def __init__(self, vfs: Vfs, drive_path: str) -> None:
        self._vfs = vfs
        self._drive_path = drive_path
        self._files: dict[Address, LogFile] = {}

    @property
    def drive_path(self) -> str:
        return self._drive_path

    @property
    def log_files(self) -> dict[Address, LogFile]:
        return self._files

    def dir_path(self, source: Address) -> str:
        return f"{self._drive_path}/{source.package_id}"

    def file_path(self, source: Address) -> str:
        return f"{self.dir_path(source)}/{source.process_name}.log"

    def _target(self, source: Address) -> LogFile:
        log_file = self._files.get(source)
        if log_file is None:
            self._vfs.open_dir(self.dir_path(source), create=True)
            log_file = self._vfs.open_file(self.file_path(source), create=True)
            self._files[source] = log_file
            _logger.debug("Opened log file source=%s path=%s", source, log_file.path)
        return log_file

    def route(self, source: Address, payload: bytes) -> None:
        """Stamp and append one log record from *source*."""
        record, data = stamp_record(payload, source)
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("Log from %s: %s", source, redact_for_log(record))
        self._target(source).append(data)

    def close(self) -> None:
        """Close every cached file handle."""
        files = list(self._files.values())
        self._files.clear()
        for log_file in files:
            try:
                log_file.close()
            except OSError:
                _logger.warning("Failed to close %s", log_file.path, exc_info=True)
