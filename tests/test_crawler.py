"""Tests for the page fetcher wrapper and site aggregation in storyscout.services.crawler."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from storyscout.config import get_settings
from storyscout.models.page import PageAnalysis
from storyscout.services.crawler import aggregate_site, analyze_page, perform_site_analysis

_ENTRY = "https://example.com/"

_HOME_HTML = """
<html>
<head><title>Acme Home</title></head>
<body>
  <nav><a href="/about">About</a><a href="/shop">Shop</a><a href="/contact">Contact</a></nav>
  <div class="breadcrumb">Home</div>
  <p>We use cookies.</p>
  <a href="https://twitter.com/acme">Twitter</a>
  <a href="/brochure.pdf">Brochure</a>
  <img src="/logo.png">
</body>
</html>
"""

_ABOUT_HTML = """
<html>
<head><title>About Acme</title></head>
<body>
  <nav><a href="/">Home</a></nav>
  <input type="search" placeholder="Search the site">
  <img src="/team.jpg">
</body>
</html>
"""

_SHOP_HTML = """
<html>
<head><title>Acme Shop</title></head>
<body>
  <p>Add to cart – only $25</p>
  <form action="/cart"><button>Buy</button></form>
</body>
</html>
"""

_SITE = {
    _ENTRY: _HOME_HTML,
    "https://example.com/about": _ABOUT_HTML,
    "https://example.com/shop": _SHOP_HTML,
    # /contact is deliberately unreachable
}


def _bool_fields(model) -> dict:
    return {
        name: getattr(model, name)
        for name, field in type(model).model_fields.items()
        if field.annotation is bool
    }


# ---------------------------------------------------------------------------
# analyze_page – fail-soft contract
# ---------------------------------------------------------------------------

class TestAnalyzePage:
    @pytest.mark.asyncio
    async def test_success(self):
        with patch(
            "storyscout.services.crawler.fetch_url", new=AsyncMock(return_value=_ABOUT_HTML)
        ):
            page = await analyze_page("https://example.com/about")

        assert page.title == "About Acme"
        assert page.has_search is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("dns failure"),
            httpx.ReadTimeout("timed out"),
            httpx.HTTPStatusError(
                "404 Not Found",
                request=httpx.Request("GET", _ENTRY),
                response=httpx.Response(404),
            ),
            ValueError("Requests to private/internal addresses are not allowed."),
            RuntimeError("Response body exceeds the maximum allowed size."),
            httpx.InvalidURL("Invalid non-printable ASCII character in URL"),
        ],
    )
    async def test_failure_returns_empty_analysis(self, error):
        with patch("storyscout.services.crawler.fetch_url", new=AsyncMock(side_effect=error)):
            page = await analyze_page(_ENTRY)

        assert page.url == _ENTRY
        assert page.title == "Error loading page"
        assert (page.forms, page.links, page.images, page.interactive_elements) == (0, 0, 0, 0)
        assert not any(_bool_fields(page).values())
        assert page.navigation_items == []
        assert page.technologies == []

    def test_failed_sentinel_matches_constructor(self):
        assert PageAnalysis.failed(_ENTRY) == PageAnalysis(url=_ENTRY, title="Error loading page")


# ---------------------------------------------------------------------------
# aggregate_site – pure aggregation
# ---------------------------------------------------------------------------

class TestAggregateSite:
    def _pages(self):
        return [
            PageAnalysis(url=_ENTRY, title="Home", forms=1, links=10, images=2,
                         interactive_elements=3, technologies=["React"],
                         navigation_items=["Home", "Blog"]),
            PageAnalysis(url=_ENTRY + "blog", title="Our Blog", has_search=True, links=5,
                         images=7, has_image_gallery=True, technologies=["React", "jQuery"],
                         navigation_items=["Blog", "Archive"]),
            PageAnalysis.failed(_ENTRY + "broken"),
        ]

    def test_totals_are_sums_of_page_counts(self):
        pages = self._pages()
        site = aggregate_site(_ENTRY, "", pages, [p.url for p in pages])

        assert site.pages_crawled == len(site.pages) == 3
        assert site.site_structure.forms == sum(p.forms for p in pages) == 1
        assert site.site_structure.links == sum(p.links for p in pages) == 15
        assert site.site_structure.images == sum(p.images for p in pages) == 9
        assert site.site_structure.interactive_elements == 3

    def test_flags_are_ored_across_pages(self):
        site = aggregate_site(_ENTRY, "", self._pages(), [])
        assert site.detected_features.has_search is True
        assert site.detected_features.has_image_gallery is True
        assert site.detected_features.has_login is False

    def test_flag_false_when_no_page_has_it(self):
        site = aggregate_site(_ENTRY, "", [PageAnalysis(url=_ENTRY, title="Home")], [_ENTRY])
        assert site.detected_features.has_search is False

    def test_deeper_analysis_flags_are_always_false(self):
        pages = [PageAnalysis(url=_ENTRY, title="Dashboard", has_login=True)]
        site = aggregate_site(_ENTRY, "<p>Choose language: English | Deutsch</p>", pages, [])
        assert site.detected_features.has_user_dashboard is False
        assert site.detected_features.has_multi_language is False

    def test_cookie_consent_and_breadcrumbs_come_from_entry_markup(self):
        other = PageAnalysis(url=_ENTRY + "x", title="X", has_cookie_consent=True)
        site = aggregate_site(_ENTRY, "<p>plain</p>", [PageAnalysis(url=_ENTRY, title="H"), other], [])
        assert site.detected_features.has_cookie_consent is False
        assert site.navigation_structure.breadcrumbs is False

        site = aggregate_site(_ENTRY, '<ol class="Breadcrumb"></ol><p>Cookie banner</p>', [other], [])
        assert site.detected_features.has_cookie_consent is True
        assert site.navigation_structure.breadcrumbs is True

    def test_unions_keep_first_seen_order(self):
        site = aggregate_site(_ENTRY, "", self._pages(), [])
        assert site.technologies == ["React", "jQuery"]
        assert site.navigation_structure.main_menu_items == ["Home", "Blog", "Archive"]
        assert site.navigation_structure.footer_links == []

    def test_page_types(self):
        pages = [
            PageAnalysis(url=_ENTRY, title="Welcome", has_contact_form=True),
            PageAnalysis(url=_ENTRY + "shop", title="Services and shop", has_ecommerce=True),
            PageAnalysis(url=_ENTRY + "about", title="About us", has_image_gallery=True),
            PageAnalysis(url=_ENTRY + "news", title="Company Blog", has_ecommerce=True),
        ]
        site = aggregate_site(_ENTRY, "", pages, [])
        assert site.page_types == [
            "Homepage",
            "Contact Page",
            "Product/Shop Page",
            "Services Page",
            "About Page",
            "Gallery Page",
            "Blog Page",
        ]


# ---------------------------------------------------------------------------
# perform_site_analysis – sequential crawl
# ---------------------------------------------------------------------------

class TestPerformSiteAnalysis:
    @pytest.mark.asyncio
    async def test_crawls_entry_and_discovered_pages(self, fake_fetch):
        fetch = AsyncMock(side_effect=fake_fetch(_SITE))
        with patch("storyscout.services.crawler.fetch_url", new=fetch):
            site = await perform_site_analysis(_ENTRY)

        assert site.test_urls == [
            _ENTRY,
            "https://example.com/about",
            "https://example.com/shop",
            "https://example.com/contact",
        ]
        assert [p.url for p in site.pages] == site.test_urls
        assert site.pages_crawled == 4
        # The entry markup is fetched once and reused for link discovery
        assert [c.args[0] for c in fetch.await_args_list] == site.test_urls

        assert site.pages[0].title == "Acme Home"
        assert site.pages[3].title == "Error loading page"

        features = site.detected_features
        assert features.has_search is True
        assert features.has_ecommerce is True
        assert features.has_cookie_consent is True
        assert site.navigation_structure.breadcrumbs is True
        assert site.navigation_structure.main_menu_items == ["About", "Shop", "Contact", "Home"]
        assert {"Homepage", "About Page", "Product/Shop Page"} <= set(site.page_types)

        assert site.site_structure.images == sum(p.images for p in site.pages) == 2
        assert site.site_structure.forms == 1

    @pytest.mark.asyncio
    async def test_politeness_delay_before_each_additional_fetch(self, fake_fetch, monkeypatch):
        monkeypatch.setenv("STORYSCOUT_CRAWL_DELAY", "1")
        get_settings.cache_clear()
        sleep = AsyncMock()

        with (
            patch("storyscout.services.crawler.fetch_url", new=AsyncMock(side_effect=fake_fetch(_SITE))),
            patch("storyscout.services.crawler.asyncio.sleep", new=sleep),
        ):
            await perform_site_analysis(_ENTRY)

        assert sleep.await_count == 3
        assert all(c.args == (1.0,) for c in sleep.await_args_list)

    @pytest.mark.asyncio
    async def test_entry_page_failure_is_fatal(self):
        with patch(
            "storyscout.services.crawler.fetch_url",
            new=AsyncMock(side_effect=httpx.ConnectError("dns failure")),
        ):
            with pytest.raises(httpx.ConnectError):
                await perform_site_analysis(_ENTRY)

    @pytest.mark.asyncio
    async def test_respects_max_pages_setting(self, fake_fetch, monkeypatch):
        monkeypatch.setenv("STORYSCOUT_MAX_PAGES", "2")
        get_settings.cache_clear()

        with patch(
            "storyscout.services.crawler.fetch_url", new=AsyncMock(side_effect=fake_fetch(_SITE))
        ):
            site = await perform_site_analysis(_ENTRY)

        assert site.test_urls == [_ENTRY, "https://example.com/about"]
        assert site.pages_crawled == 2

    @pytest.mark.asyncio
    async def test_unfetchable_discovered_link_does_not_abort_crawl(self):
        entry_html = '<html><head><title>Home</title></head><body><a href="/a\x01b">odd</a></body></html>'

        async def fetch(url: str) -> str:
            if url == _ENTRY:
                return entry_html
            raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

        with patch("storyscout.services.crawler.fetch_url", new=AsyncMock(side_effect=fetch)):
            site = await perform_site_analysis(_ENTRY)

        assert site.test_urls == [_ENTRY, "https://example.com/a\x01b"]
        assert site.pages_crawled == 2
        assert site.pages[1] == PageAnalysis.failed("https://example.com/a\x01b")
