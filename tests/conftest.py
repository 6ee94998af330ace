"""
Pytest configuration and fixtures.
"""
from typing import Callable, List, Optional

import httpx
import pytest

from clareia.config import Settings, get_settings
from helpers import API_KEY, EXTRACTION_URL


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Keep developer .env files and CLAREIA_* variables out of the tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "CLAREIA_EXTRACTION_URL",
        "CLAREIA_API_KEY",
        "CLAREIA_DEMO_MODE",
        "CLAREIA_PDF_TEXT_LAYER",
        "CLAREIA_IMAGE_OCR",
        "CLAREIA_TRANSPORT_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(extraction_url=EXTRACTION_URL, api_key=API_KEY)


@pytest.fixture
def demo_settings() -> Settings:
    return Settings(demo_mode=True)


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """
    Build an AsyncClient backed by httpx.MockTransport. Every request is
    appended to ``calls`` (when given) before ``handler`` answers it.
    """

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        calls: Optional[List[httpx.Request]] = None,
    ) -> httpx.AsyncClient:
        def _record(request: httpx.Request) -> httpx.Response:
            if calls is not None:
                calls.append(request)
            return handler(request)

        return httpx.AsyncClient(transport=httpx.MockTransport(_record))

    return _make
