from __future__ import annotations

import json
import logging

from eventplan.core.logging import JsonLogFormatter, set_correlation_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="eventplan.auth.service",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="auth_failure",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_correlation_id_and_whitelisted_extras() -> None:
    set_correlation_id("req-42")

    payload = json.loads(
        JsonLogFormatter().format(
            _record(reason="token_expired", status_code=401, password="hunter2")
        )
    )

    assert payload["message"] == "auth_failure"
    assert payload["level"] == "WARNING"
    assert payload["correlation_id"] == "req-42"
    assert payload["reason"] == "token_expired"
    assert payload["status_code"] == 401
    assert "password" not in payload
