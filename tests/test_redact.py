from __future__ import annotations

from remotelog._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    record = {
        "msg": "login",
        "password": "pw",
        "headers": {"Authorization": "Bearer abc"},
        "items": [{"token": "t"}],
    }

    redacted = redact_for_log(record)
    assert redacted["msg"] == "login"
    assert redacted["password"] == "<redacted>"
    assert redacted["headers"]["Authorization"] == "<redacted>"
    assert redacted["items"][0]["token"] == "<redacted>"


def test_redact_for_log_truncates_long_strings_and_lists() -> None:
    redacted = redact_for_log({"value": "x" * 600, "many": list(range(10))}, max_string=10, max_items=3)

    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]
    assert redacted["many"] == [0, 1, 2, "<7 more>"]
