"""
Global pytest fixtures for the Central Staging Promoter test suite

Provides:
- Fake HTTP responses and sessions
- Environment isolation for configuration tests
- Logger reset between tests
"""

import logging
from typing import Optional
from unittest.mock import MagicMock

import pytest
import requests

from promoter_config.loader import ENV_MAPPING, CONFIG_PATH_ENV
from staging_promoter.logging_config import LOGGER_NAME


# ============================================================================
# HTTP FIXTURES
# ============================================================================

@pytest.fixture
def make_response():
    """Factory for stand-ins of requests.Response."""
    def _make(status_code: int = 200, text: str = "") -> MagicMock:
        response = MagicMock(spec=requests.Response)
        response.status_code = status_code
        response.text = text
        return response
    return _make


@pytest.fixture
def fake_session():
    """Session double whose request() results are set per test via side_effect."""
    return MagicMock(spec=requests.Session)


@pytest.fixture
def search_body():
    """Search response body with two open repositories."""
    return (
        '{"repositories": ['
        '{"key": "abc123", "state": "open", "portal_deployment_id": null}, '
        '{"key":"def456", "state": "open"}'
        ']}'
    )


# ============================================================================
# ENVIRONMENT FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def clean_promoter_env(monkeypatch):
    """Remove every environment variable the config loader reads."""
    for _, names in ENV_MAPPING:
        for name in names:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_promoter_logger():
    """Drop handlers added by configure_logging so tests do not leak them."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def release_env(monkeypatch):
    """Gradle-style environment for a release build with credentials."""
    def _apply(version: Optional[str] = "1.4.0"):
        monkeypatch.setenv("ORG_GRADLE_PROJECT_mavenCentralUsername", "token-user")
        monkeypatch.setenv("ORG_GRADLE_PROJECT_mavenCentralPassword", "token-pass")
        if version is not None:
            monkeypatch.setenv("ORG_GRADLE_PROJECT_projectVersion", version)
    return _apply
