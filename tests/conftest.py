"""Pytest configuration and shared fixtures for lambda-deploy tests."""

import logging
import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from lambda_deploy.lib.logging_config import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None]:
    """Undo setup_logging() calls made by CLI commands under test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.

    Yields:
        Dictionary of original environment variables
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Create a small code artifacts directory.

    Returns:
        Path to a directory holding an index.js handler
    """
    path = tmp_path / "dist"
    path.mkdir()
    (path / "index.js").write_text("exports.handler = async () => 'ok';\n")
    return path


def pytest_configure(config: Any) -> None:
    """Configure pytest with marker options."""
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests",
    )
