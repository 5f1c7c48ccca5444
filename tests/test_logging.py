"""Tests for structured logging setup."""

import structlog

from featmodel.config import with_config
from featmodel.utils.logging import get_logger, log_context


class TestLogContext:
    """Tests for context variable binding."""

    def test_bound_within_block(self) -> None:
        """Test values are bound only inside the block."""
        with log_context(run="abc"):
            assert structlog.contextvars.get_contextvars()["run"] == "abc"
        assert "run" not in structlog.contextvars.get_contextvars()

    def test_config_scope_binds_model(self, model_config) -> None:
        """Test the active model name is part of the log context."""
        with with_config(model_config):
            assert structlog.contextvars.get_contextvars()["model"] == "count-flag"
        assert "model" not in structlog.contextvars.get_contextvars()


def test_get_logger_logs() -> None:
    """Test loggers accept key/value events."""
    with structlog.testing.capture_logs() as logs:
        get_logger(__name__).info("Something happened", count=3)
    assert logs == [{"event": "Something happened", "count": 3, "log_level": "info"}]
