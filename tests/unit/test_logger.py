"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

from certadmin.core.logger import JSONFormatter, configure_logging, ensure_request_id


def test_configure_logging_sets_level() -> None:
    """``configure_logging`` should set the root logger level."""

    configure_logging("DEBUG")
    assert logging.getLogger().level == logging.DEBUG
    configure_logging("INFO")


def test_json_formatter_includes_structured_extras() -> None:
    record = logging.LogRecord("certadmin.test", logging.WARNING, __file__, 1, "pool.retry", None, None)
    record.attempt = 2
    record.delay_s = 2.0
    record.unrelated = "dropped"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "pool.retry"
    assert payload["level"] == "WARNING"
    assert payload["attempt"] == 2
    assert payload["delay_s"] == 2.0
    assert "unrelated" not in payload


def test_request_id_is_scoped_to_each_request(app) -> None:
    with app.test_request_context(headers={"X-Request-ID": "req-a"}):
        assert ensure_request_id() == "req-a"
    with app.test_request_context(headers={"X-Request-ID": "req-b"}):
        assert ensure_request_id() == "req-b"
    with app.test_request_context():
        generated = ensure_request_id()
        assert generated not in {"req-a", "req-b"}
        assert ensure_request_id() == generated
