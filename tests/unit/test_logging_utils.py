"""Tests for CLI logging setup."""

import logging

import pytest

from smart_agent.cli.logging_utils import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_argument_wins(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("SMART_AGENT_LOG_LEVEL", "ERROR")
        setup_logging("DEBUG")
        assert restore_root_logger.level == logging.DEBUG

    def test_env_var(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("SMART_AGENT_LOG_LEVEL", "info")
        setup_logging()
        assert restore_root_logger.level == logging.INFO

    def test_unknown_level_defaults_to_warning(self, restore_root_logger, monkeypatch):
        monkeypatch.delenv("SMART_AGENT_LOG_LEVEL", raising=False)
        setup_logging("LOUD")
        assert restore_root_logger.level == logging.WARNING

    def test_log_file(self, restore_root_logger, tmp_path):
        path = tmp_path / "run.log"
        setup_logging("WARNING", str(path))
        logging.getLogger("smart_agent.test").debug("written to file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert "written to file" in path.read_text(encoding="utf-8")
        for handler in restore_root_logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.close()
