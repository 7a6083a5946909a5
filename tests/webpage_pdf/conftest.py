"""
Pytest fixtures for webpage PDF service tests.

The remote browser is never contacted: Playwright is replaced with
AsyncMock objects wired like ``async_playwright().start()``.
"""

import os

# IMPORTANT: Set environment variables BEFORE any imports from webpage_pdf
# so settings loaded at import time are not taken from a developer .env.
os.environ["ENVIRONMENT"] = "development"
os.environ["BROWSERLESS_TOKEN"] = ""
os.environ["CORS_ORIGINS"] = ""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient


def make_settings(**overrides):
    """Build PDFSettings with a test token and short timeouts."""
    from webpage_pdf.config import PDFSettings

    values = {
        "browserless_token": "test-token",
        "browserless_endpoint": "wss://browser.test",
        "connect_timeout_ms": 1000,
        "navigation_timeout_ms": 1000,
        "image_timeout_ms": 500,
        "pdf_timeout_ms": 1000,
        "total_timeout_ms": 5000,
        "close_timeout_ms": 500,
    }
    values.update(overrides)
    return PDFSettings(**values)


@pytest.fixture
def settings():
    """Settings with a configured token."""
    return make_settings()


@pytest.fixture
def settings_factory():
    """Factory for settings with per-test overrides."""
    return make_settings


@pytest.fixture
def mock_page():
    """Playwright page double that renders a small fake PDF."""
    page = AsyncMock()
    page.set_default_navigation_timeout = MagicMock()
    page.goto = AsyncMock(return_value=SimpleNamespace(ok=True, status=200))
    page.content = AsyncMock(return_value="<html><body>ok</body></html>")
    page.wait_for_function = AsyncMock(return_value=None)
    page.evaluate = AsyncMock(return_value={"total": 2, "settled": 2, "timedOut": False})
    page.pdf = AsyncMock(return_value=b"%PDF-1.4 fake webpage pdf")
    return page


@pytest.fixture
def mock_browser(mock_page):
    """Remote browser double returning ``mock_page``."""
    browser = AsyncMock()
    browser.new_page = AsyncMock(return_value=mock_page)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def mock_playwright(mock_browser):
    """
    Patch ``async_playwright`` in the renderer.

    Yields a namespace with the patched factory, the started Playwright
    instance (``pw``) and the connected browser.
    """
    pw = MagicMock()
    pw.chromium.connect_over_cdp = AsyncMock(return_value=mock_browser)
    pw.stop = AsyncMock()

    with patch("webpage_pdf.renderer.async_playwright") as factory:
        factory.return_value.start = AsyncMock(return_value=pw)
        yield SimpleNamespace(factory=factory, pw=pw, browser=mock_browser)


@pytest.fixture
def client(settings):
    """Test client with a configured browser token."""
    from webpage_pdf.app import app
    from webpage_pdf.config import get_settings

    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client_factory():
    """Build test clients whose settings take per-test overrides."""
    from webpage_pdf.app import app
    from webpage_pdf.config import get_settings

    def _make_client(**overrides):
        custom = make_settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: custom
        return TestClient(app)

    yield _make_client
    app.dependency_overrides.clear()


@pytest.fixture
def client_without_token():
    """Test client whose settings have no browser token."""
    from webpage_pdf.app import app
    from webpage_pdf.config import get_settings

    unconfigured = make_settings(browserless_token=None)
    app.dependency_overrides[get_settings] = lambda: unconfigured
    yield TestClient(app)
    app.dependency_overrides.clear()


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: needs a local Chromium (playwright install chromium)"
    )
