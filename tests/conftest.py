"""Shared pytest fixtures and configuration."""

import logging

import pytest


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")
    config.addinivalue_line("markers", "real: actual agent CLI invocation (local only)")


@pytest.fixture(autouse=True)
def reset_repomirror_logger():
    """Drop handlers installed by setup_logging so tests don't share log files."""
    yield
    logger = logging.getLogger("repomirror")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
