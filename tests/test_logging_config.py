# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import tempfile
import unittest
from pathlib import Path

from src.config.logging_config import setup_logging


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Start each test with a bare market_tracker logger."""
        self.root_logger = logging.getLogger("market_tracker")
        self._clear_handlers()
        self.tmp_dir = Path(tempfile.mkdtemp()) / "logs"

    def tearDown(self) -> None:
        """Close file handlers so temp files can be removed."""
        self._clear_handlers()

    def _clear_handlers(self) -> None:
        for handler in list(self.root_logger.handlers):
            handler.close()
            self.root_logger.removeHandler(handler)

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging(self.tmp_dir)
        self.assertTrue(log_path.exists())

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging(self.tmp_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_file_and_console_handlers(self) -> None:
        """File handler logs DEBUG+, console handler WARNING+."""
        setup_logging(self.tmp_dir)
        file_handlers = [
            h
            for h in self.root_logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        stream_handlers = [
            h
            for h in self.root_logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(file_handlers), 1)
        self.assertEqual(file_handlers[0].level, logging.DEBUG)
        self.assertEqual(len(stream_handlers), 1)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        setup_logging(self.tmp_dir)
        count_before = len(self.root_logger.handlers)
        setup_logging(self.tmp_dir)
        self.assertEqual(count_before, len(self.root_logger.handlers))

    def test_child_loggers_reach_file(self) -> None:
        """Records from module loggers land in the run log."""
        log_path = setup_logging(self.tmp_dir)
        logging.getLogger("market_tracker.acquisition").info("acquisition line")
        for handler in self.root_logger.handlers:
            handler.flush()
        self.assertIn("acquisition line", log_path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
