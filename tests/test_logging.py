from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from remotelog._logging import configure_logging
from remotelog.config import RemoteLogConfig


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_configure_logging_writes_to_own_drive(tmp_path: Path, restore_root_logger: None) -> None:
    config = RemoteLogConfig(node="hub.os", vfs_root=tmp_path, console_level="WARNING", file_level="DEBUG")

    log_path = configure_logging(config)
    logging.getLogger("remotelog.test").debug("diagnostic line")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path == tmp_path / "logging:sys" / "log" / "logging.log"
    assert "diagnostic line" in log_path.read_text(encoding="utf-8")
