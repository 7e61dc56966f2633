# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path) -> Generator[None, None, None]:
    """Keep the database and log files of every test in a temp dir."""
    with patch(
        "src.config.settings.Settings.DB_PATH", tmp_path / "tracker.db"
    ), patch("src.config.settings.Settings.LOGS_DIR", tmp_path / "logs"):
        yield
