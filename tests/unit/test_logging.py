"""Unit tests for ticketcache logging configuration."""

import logging
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from ticketcache.logging import RedactingFilter, sanitize_for_log, setup_logging


@pytest.fixture
def log_dir():
    """Temporary log directory; handlers are detached afterwards."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
        for name in ("ticketcache", "uvicorn"):
            target = logging.getLogger(name)
            for handler in target.handlers:
                handler.close()
            target.handlers.clear()


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_creates_nested_log_directory(self, log_dir: Path) -> None:
        """Missing log directories are created."""
        nested = log_dir / "a" / "b"
        setup_logging(log_dir=nested, console=False)

        assert (nested / "ticketcache.log").exists()

    def test_component_loggers_share_the_file(self, log_dir: Path) -> None:
        """Module loggers propagate to the ticketcache file handler."""
        setup_logging(log_dir=log_dir, console=False)

        logging.getLogger("ticketcache.attention.aggregator").info("attention log")
        logging.getLogger("ticketcache.security.rate_limit").info("limiter log")

        content = (log_dir / "ticketcache.log").read_text()
        assert "attention log" in content
        assert "limiter log" in content
        assert " | ticketcache.attention.aggregator | " in content

    def test_format_has_level_column(self, log_dir: Path) -> None:
        """Entries carry the padded level name."""
        logger = setup_logging(log_dir=log_dir, console=False)
        logger.warning("level check")

        content = (log_dir / "ticketcache.log").read_text()
        assert " | WARNING  | ticketcache | level check" in content

    def test_level_filters_messages(self, log_dir: Path) -> None:
        """Messages below the configured level are dropped."""
        logger = setup_logging(log_dir=log_dir, level="ERROR", console=False)
        logger.warning("dropped")
        logger.error("kept")

        content = (log_dir / "ticketcache.log").read_text()
        assert "dropped" not in content
        assert "kept" in content

    def test_level_and_dir_from_env(self, log_dir: Path) -> None:
        """TICKETCACHE_LOG_LEVEL and TICKETCACHE_LOG_DIR are honored."""
        env = {"TICKETCACHE_LOG_LEVEL": "DEBUG", "TICKETCACHE_LOG_DIR": str(log_dir)}
        with patch.dict(os.environ, env):
            logger = setup_logging(console=False)

        assert logger.level == logging.DEBUG
        assert (log_dir / "ticketcache.log").exists()

    def test_repeated_setup_replaces_handlers(self, log_dir: Path) -> None:
        """Calling setup twice leaves a single file handler."""
        setup_logging(log_dir=log_dir, console=False)
        logger = setup_logging(log_dir=log_dir, console=False)

        assert logger.name == "ticketcache"
        assert len(logger.handlers) == 1

    def test_rotation_settings(self, log_dir: Path) -> None:
        """The file handler rotates at the configured size."""
        logger = setup_logging(log_dir=log_dir, max_bytes=400, backup_count=2, console=False)
        for i in range(40):
            logger.info("rotation padding message %d", i)

        handler = logger.handlers[0]
        assert handler.maxBytes == 400
        assert handler.backupCount == 2
        assert (log_dir / "ticketcache.log.1").exists()

    def test_credentials_redacted_in_file(self, log_dir: Path) -> None:
        """Records are redacted before they are written."""
        logger = setup_logging(log_dir=log_dir, console=False)
        logger.warning("forge said %s", "Authorization: Bearer s3cr3t")

        content = (log_dir / "ticketcache.log").read_text()
        assert "s3cr3t" not in content
        assert "Bearer [REDACTED]" in content

    def test_server_loggers_share_the_file(self, log_dir: Path) -> None:
        """uvicorn loggers are routed into the ticketcache handlers when serving."""
        setup_logging(log_dir=log_dir, console=False, server_loggers=True)
        logging.getLogger("uvicorn.error").info("server started")

        content = (log_dir / "ticketcache.log").read_text()
        assert " | uvicorn.error | server started" in content


@pytest.mark.unit
class TestSanitize:
    """Tests for sanitize_for_log function."""

    def test_redacts_personal_access_token(self) -> None:
        result = sanitize_for_log("using ghp_" + "a" * 36)
        assert "ghp_" not in result
        assert "[FORGE_TOKEN]" in result

    def test_redacts_fine_grained_token(self) -> None:
        result = sanitize_for_log("github_pat_" + "b" * 82)
        assert result == "[FORGE_TOKEN]"

    def test_redacts_bearer_credential(self) -> None:
        result = sanitize_for_log("Authorization: Bearer abc.def-123")
        assert "abc.def" not in result
        assert "Bearer [REDACTED]" in result

    def test_redacts_query_token(self) -> None:
        assert sanitize_for_log("GET /x?token=s3cr3t") == "GET /x?token=[REDACTED]"

    def test_plain_text_unchanged(self) -> None:
        text = "PR #12 in acme/widgets: pending_checks -> mergeable"
        assert sanitize_for_log(text) == text


@pytest.mark.unit
class TestRedactingFilter:
    """Tests for RedactingFilter."""

    def test_rewrites_formatted_message(self) -> None:
        record = logging.LogRecord(
            "ticketcache", logging.INFO, __file__, 1, "token=%s", ("abc123",), None
        )

        assert RedactingFilter().filter(record) is True
        assert record.getMessage() == "token=[REDACTED]"
        assert record.args is None

    def test_leaves_clean_record_untouched(self) -> None:
        record = logging.LogRecord(
            "ticketcache", logging.INFO, __file__, 1, "PR #%d", (12,), None
        )

        RedactingFilter().filter(record)

        assert record.msg == "PR #%d"
        assert record.args == (12,)
