from __future__ import annotations

from pathlib import Path

import pytest

from remotelog import cli


def test_serve_flags_become_overrides(tmp_path: Path) -> None:
    args = cli._build_parser().parse_args(
        ["serve", "--node", "hub.os", "--vfs-root", str(tmp_path), "--no-http", "--mqtt-host", "broker", "-v"]
    )

    overrides = cli._serve_overrides(args)

    assert overrides == {
        "node": "hub.os",
        "vfs_root": tmp_path,
        "http_enabled": False,
        "mqtt_enabled": True,
        "mqtt_host": "broker",
        "console_level": "DEBUG",
    }


def test_control_rejects_unknown_action() -> None:
    with pytest.raises(SystemExit):
        cli._build_parser().parse_args(["control", "delete-everything", "x"])


def test_log_rejects_non_object_record(capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["log", "--source", "alice.os@chat:chat:template.os", "[1, 2]"])

    assert code == 2
    assert "JSON object" in capsys.readouterr().err


def test_log_rejects_invalid_json(capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(["log", "--source", "alice.os@chat:chat:template.os", "{oops"])

    assert code == 2
    assert "invalid JSON" in capsys.readouterr().err
