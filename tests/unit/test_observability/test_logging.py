"""Tests for structured logging setup."""

import io
import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from src.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
    resolve_level,
)


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Restore structlog defaults after each test."""
    yield
    clear_request_context()
    structlog.reset_defaults()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output_with_request_context(self) -> None:
        """JSON lines include level, timestamp and bound request ID."""
        output = io.StringIO()
        configure_logging(output=output, json_format=True)
        bind_request_context("req-123")

        get_logger().info("rank_started", commodity_type="hemp")

        event = json.loads(output.getvalue().strip())
        assert event["event"] == "rank_started"
        assert event["level"] == "info"
        assert event["request_id"] == "req-123"
        assert event["commodity_type"] == "hemp"
        assert "timestamp" in event

    def test_context_cleared(self) -> None:
        """Cleared context is no longer attached."""
        output = io.StringIO()
        configure_logging(output=output, json_format=True)
        bind_request_context("req-123")
        clear_request_context()

        get_logger().info("rank_complete")

        assert "request_id" not in json.loads(output.getvalue().strip())

    def test_level_name_filters(self) -> None:
        """Level names are accepted and filter lower events."""
        output = io.StringIO()
        configure_logging(level="warning", output=output, json_format=True)

        logger = get_logger()
        logger.info("candidate_scored")
        logger.warning("candidate_skipped", reason="negative price")

        lines = output.getvalue().strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["candidate_skipped"]

    def test_extra_request_context(self) -> None:
        """Extra context fields are bound alongside the request ID."""
        output = io.StringIO()
        configure_logging(output=output, json_format=True)
        bind_request_context("req-9", command="rank")

        get_logger().info("cli_rank_started")

        event = json.loads(output.getvalue().strip())
        assert event["command"] == "rank"
        assert event["request_id"] == "req-9"


class TestResolveLevel:
    """Tests for level resolution."""

    def test_numeric_passthrough(self) -> None:
        """Numeric levels are returned unchanged."""
        assert resolve_level(logging.DEBUG) == logging.DEBUG

    def test_names_case_insensitive(self) -> None:
        """Level names are case-insensitive."""
        assert resolve_level(" info ") == logging.INFO

    def test_unknown_name(self) -> None:
        """Unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            resolve_level("chatty")
