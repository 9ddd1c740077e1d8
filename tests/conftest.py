from typing import Dict
from unittest.mock import patch

import httpx
import pytest

from storyscout.config import get_settings
from storyscout.models.page import PageAnalysis
from storyscout.models.site import SiteAnalysis
from storyscout.services.crawler import aggregate_site


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Run each test from an empty directory with zero delays and no server-side Gemini key."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("STORYSCOUT_CRAWL_DELAY", "0")
    monkeypatch.setenv("STORYSCOUT_SAVE_DELAY", "0")
    monkeypatch.setenv("STORYSCOUT_LLM_BASE_DELAY", "0")
    monkeypatch.setenv("STORYSCOUT_GEMINI_API_KEY", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def gemini_client():
    """Replace the Gemini client class; yields the mock so tests can check how it was built."""
    with patch("storyscout.services.llm.genai.Client") as client_cls:
        yield client_cls


@pytest.fixture()
def fake_fetch():
    """Factory for ``fetch_url`` stand-ins serving a URL -> HTML mapping.

    URLs missing from the mapping fail with :class:`httpx.ConnectError`.
    """

    def factory(pages: Dict[str, str]):
        async def fetch(url: str) -> str:
            if url not in pages:
                raise httpx.ConnectError(f"Cannot connect to {url}")
            return pages[url]

        return fetch

    return factory


@pytest.fixture()
def site_analysis() -> SiteAnalysis:
    """A two-page analysis: a homepage with search and an about page."""
    home = PageAnalysis(
        url="https://example.com/",
        title="Example Home",
        has_search=True,
        forms=1,
        links=12,
        images=3,
        interactive_elements=4,
        navigation_items=["Home", "About"],
        technologies=["React"],
    )
    about = PageAnalysis(
        url="https://example.com/about",
        title="About Example",
        links=8,
        images=1,
        navigation_items=["Home", "Team"],
    )
    return aggregate_site(
        "https://example.com/",
        "<html><body>We use cookies</body></html>",
        [home, about],
        ["https://example.com/", "https://example.com/about"],
    )
