"""Tests for structured logging configuration and context binding."""

import json

import pytest
import structlog

from newsletter.logging import bind_context, clear_context, configure_structlog, get_logger
from newsletter.logging.structured import SERVICE_NAME, add_service_info


@pytest.fixture(autouse=True)
def reset_context():
    clear_context()
    yield
    clear_context()


class TestContextBinding:
    def test_bind_context_values(self):
        generation_id = "6f1c2a9e-8d7b-4e1a-9a0c-3b5d7e9f1a2b"

        bind_context(request_id="req-1", user_id="user-1", generation_id=generation_id)

        context = structlog.contextvars.get_contextvars()
        assert context == {
            "request_id": "req-1",
            "user_id": "user-1",
            "generation_id": generation_id,
        }

    def test_none_values_not_bound(self):
        bind_context(request_id="req-1", user_id=None)

        assert structlog.contextvars.get_contextvars() == {"request_id": "req-1"}

    def test_clear_context(self):
        bind_context(request_id="req-1")

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}


class TestProcessors:
    def test_add_service_info(self):
        event = add_service_info(None, "info", {"event": "generation_created"})
        assert event["service"] == SERVICE_NAME


class TestJsonOutput:
    def test_json_lines_carry_context(self, caplog):
        configure_structlog(json_format=True, log_level="INFO")
        try:
            bind_context(generation_id="gen-1")
            with caplog.at_level("INFO"):
                get_logger("tests.json_output").info("generation_created", content_type="Article")
            entry = json.loads(caplog.records[-1].getMessage())
        finally:
            configure_structlog(json_format=False, log_level="INFO")

        assert entry["event"] == "generation_created"
        assert entry["generation_id"] == "gen-1"
        assert entry["content_type"] == "Article"
        assert entry["level"] == "info"
        assert entry["logger"] == "tests.json_output"
        assert entry["service"] == SERVICE_NAME
