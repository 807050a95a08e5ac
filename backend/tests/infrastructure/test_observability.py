"""Structured Logging — tests for the JSON formatter."""

import json
import logging

from persona_ai.infrastructure.observability import JSONFormatter


def _record(**extra):
    record = logging.LogRecord(
        "persona_ai.test", logging.WARNING, __file__, 1, "retrying", None, None,
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_json_formatter_base_fields():
    log = json.loads(JSONFormatter().format(_record()))
    assert log["level"] == "WARNING"
    assert log["logger"] == "persona_ai.test"
    assert log["message"] == "retrying"
    assert "timestamp" in log


def test_json_formatter_surfaces_invocation_extras():
    log = json.loads(JSONFormatter().format(
        _record(attempt=2, credential_index=1, delay_ms=2000, action="generateMbtiProfile"),
    ))
    assert log["attempt"] == 2
    assert log["credential_index"] == 1
    assert log["delay_ms"] == 2000
    assert log["action"] == "generateMbtiProfile"
    assert "error_code" not in log
