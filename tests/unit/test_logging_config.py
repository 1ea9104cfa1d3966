"""
Unit tests for structured logging

Checks the JSON shape, correlation IDs and redaction of credential fields.
"""

import json
import logging

import pytest

from domo_relay.core.utils.logging_config import (
    StructuredFormatter,
    get_correlation_id,
    set_correlation_id,
)

pytestmark = pytest.mark.unit


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("domo_relay.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def reset_correlation_id():
    set_correlation_id(None)
    yield
    set_correlation_id(None)


class TestStructuredFormatter:
    def test_json_fields(self):
        entry = json.loads(StructuredFormatter().format(_record()))

        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "domo_relay.test"

    def test_sensitive_extra_redacted(self):
        entry = json.loads(
            StructuredFormatter().format(_record(access_token="abc", dataset_id="7"))
        )

        assert entry["extra"]["access_token"] == "[REDACTED]"
        assert entry["extra"]["dataset_id"] == "7"

    def test_sensitive_extra_kept_when_allowed(self):
        formatter = StructuredFormatter(include_sensitive=True)
        entry = json.loads(formatter.format(_record(client_secret="s3cr3t")))

        assert entry["extra"]["client_secret"] == "s3cr3t"

    def test_correlation_id_included(self):
        set_correlation_id("req-1")
        entry = json.loads(StructuredFormatter().format(_record()))

        assert entry["correlation_id"] == "req-1"


class TestCorrelationId:
    def test_generated_once_per_context(self):
        first = get_correlation_id()
        assert first
        assert get_correlation_id() == first
