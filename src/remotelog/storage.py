"""Local-filesystem storage substrate.

Paths handed to this module are drive-style absolute strings such as
``/logging:sys/remote_log/chat:template.os``; they are resolved beneath a
root directory on disk. All primitives are create-if-absent.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath

from remotelog.exceptions import StorageError
from remotelog.models.address import PackageId

_logger = logging.getLogger(__name__)


class LogFile:
    """Append-only handle to one file."""

    def __init__(self, path: str, fd: int) -> None:
        self.path = path
        self._fd: int | None = fd

    @property
    def closed(self) -> bool:
        return self._fd is None

    def append(self, data: bytes) -> None:
        """Append *data* with a single write call."""
        if self._fd is None:
            raise StorageError(f"append to closed file {self.path}", path=self.path)
        try:
            written = os.write(self._fd, data)
        except OSError as exc:
            raise StorageError(f"append to {self.path} failed: {exc}", path=self.path) from exc
        if written != len(data):
            raise StorageError(
                f"partial append to {self.path}: wrote {written} of {len(data)} bytes",
                path=self.path,
            )

    def close(self) -> None:
        fd = self._fd
        self._fd = None
        if fd is not None:
            os.close(fd)


class Vfs:
    """Drive/directory/file primitives rooted at a local directory."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> Path:
        """Map a drive-style path onto the local root."""
        parts = PurePosixPath(path).parts
        if not parts or parts[0] != "/":
            raise StorageError(f"path must be absolute: {path!r}", path=path)
        for part in parts[1:]:
            if part in {".", ".."}:
                raise StorageError(f"path may not contain {part!r}: {path!r}", path=path)
        return self._root.joinpath(*parts[1:])

    def create_drive(self, package_id: PackageId, drive: str) -> str:
        """Create ``/{package_id}/{drive}`` and return its drive path."""
        drive_path = f"/{package_id}/{drive}"
        self.open_dir(drive_path, create=True)
        _logger.debug("Drive ready path=%s local=%s", drive_path, self.resolve(drive_path))
        return drive_path

    def open_dir(self, path: str, *, create: bool = False) -> str:
        local = self.resolve(path)
        try:
            if create:
                local.mkdir(parents=True, exist_ok=True)
            elif not local.is_dir():
                raise StorageError(f"directory does not exist: {path}", path=path)
        except OSError as exc:
            raise StorageError(f"cannot open directory {path}: {exc}", path=path) from exc
        return path

    def open_file(self, path: str, *, create: bool = False) -> LogFile:
        """Open *path* for appending."""
        local = self.resolve(path)
        flags = os.O_WRONLY | os.O_APPEND
        if create:
            flags |= os.O_CREAT
        try:
            fd = os.open(local, flags, 0o644)
        except OSError as exc:
            raise StorageError(f"cannot open file {path}: {exc}", path=path) from exc
        return LogFile(path, fd)
