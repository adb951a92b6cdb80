"""Tests for devagent.log module."""

import logging

import pytest

from devagent.log import LOG_FILE_NAME, configure_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("devagent")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_sets_level(self):
        """Test that the level name is applied."""
        logger = configure_logging("debug")
        assert logger.level == logging.DEBUG

    def test_unknown_level_defaults_to_info(self):
        """Test the fallback for bad level names."""
        assert configure_logging("chatty").level == logging.INFO

    def test_writes_log_file(self, temp_dir):
        """Test that a log directory adds devagent.log."""
        configure_logging("INFO", temp_dir / "logs")
        logging.getLogger("devagent.test").info("hello file")

        for handler in logging.getLogger("devagent").handlers:
            handler.flush()
        content = (temp_dir / "logs" / LOG_FILE_NAME).read_text()
        assert "[INFO] devagent.test: hello file" in content

    def test_reconfigure_replaces_handlers(self, temp_dir):
        """Test that handlers do not accumulate."""
        configure_logging("INFO", temp_dir)
        logger = configure_logging("INFO", temp_dir)

        assert len(logger.handlers) == 2
