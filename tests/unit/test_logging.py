"""Unit tests for logging configuration."""

import json

import pytest
from loguru import logger

from notebuyer.logging import get_logger, serialize, trace_context


@pytest.fixture
def captured():
    """Capture JSON log lines."""
    lines = []
    handler_id = logger.add(lines.append, format=serialize, level="DEBUG")
    yield lines
    logger.remove(handler_id)


def test_json_record_carries_trace_and_extras(captured):
    """Test structured fields end up in the JSON line."""
    with trace_context("investor-42") as trace_id:
        get_logger("tests").info("Order reconciled", purchased=2)

    record = json.loads(captured[-1])
    assert trace_id == "investor-42"
    assert record["trace_id"] == "investor-42"
    assert record["purchased"] == 2
    assert record["message"] == "Order reconciled"
    assert record["level"] == "INFO"
    assert record["service"] == "notebuyer"


def test_braces_in_message_survive(captured):
    """Test messages containing braces serialize cleanly."""
    logger.info("payload {'aid': 1}")

    assert json.loads(captured[-1])["message"] == "payload {'aid': 1}"


def test_trace_context_generates_id():
    """Test a trace id is generated when none is given."""
    with trace_context() as trace_id:
        assert len(trace_id) == 36


def test_token_extras_are_redacted(captured):
    """Test credentials passed as extras never reach the sink."""
    get_logger("tests").info("Prepared account", authorization_token="secret-token")

    record = json.loads(captured[-1])
    assert record["authorization_token"] == "***"
    assert "secret-token" not in captured[-1]
