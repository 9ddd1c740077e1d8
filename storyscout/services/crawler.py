"""Site crawler: analyses the entry page plus a few same-origin pages and aggregates them."""

import asyncio
import logging
from typing import Dict, Iterable, List

import httpx

from storyscout.config import get_settings
from storyscout.models.page import PageAnalysis
from storyscout.models.site import (
    DetectedFeatures,
    NavigationStructure,
    SiteAnalysis,
    SiteStructure,
)
from storyscout.services.detector import analyze_markup
from storyscout.services.discovery import discover_pages
from storyscout.services.fetcher import fetch_url

logger = logging.getLogger(__name__)

# Flags OR-ed across pages; the remaining DetectedFeatures flags are set explicitly
_PAGE_FLAGS = (
    "has_login",
    "has_search",
    "has_ecommerce",
    "has_contact_form",
    "has_newsletter",
    "has_chatbot",
    "has_file_upload",
    "has_payment_form",
    "has_video_content",
    "has_image_gallery",
    "has_social_login",
    "has_comments",
)

# Title keyword -> page type label
_TITLE_PAGE_TYPES = (
    ("about", "About Page"),
    ("service", "Services Page"),
    ("blog", "Blog Page"),
)


async def analyze_page(url: str) -> PageAnalysis:
    """Fetch and analyse *url*.

    Never raises for fetch problems: a page that cannot be loaded yields
    :meth:`PageAnalysis.failed` so the rest of the crawl can continue.
    """
    logger.info("Analyzing page %s", url)
    try:
        html = await fetch_url(url)
    except (ValueError, httpx.HTTPError, httpx.InvalidURL, RuntimeError) as exc:
        logger.warning("Crawler: could not analyze %s – %s", url, exc)
        return PageAnalysis.failed(url)
    return analyze_markup(html, url)


def _unique(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


def _page_types(entry_url: str, pages: List[PageAnalysis]) -> List[str]:
    labels: List[str] = []
    for page in pages:
        if page.url == entry_url:
            labels.append("Homepage")
        if page.has_contact_form:
            labels.append("Contact Page")
        if page.has_ecommerce:
            labels.append("Product/Shop Page")
        title = page.title.lower()
        labels.extend(label for keyword, label in _TITLE_PAGE_TYPES if keyword in title)
        if page.has_image_gallery:
            labels.append("Gallery Page")
    return _unique(labels)


def aggregate_site(
    url: str,
    entry_html: str,
    pages: List[PageAnalysis],
    test_urls: List[str],
) -> SiteAnalysis:
    """Merge per-page analyses into a :class:`SiteAnalysis`.

    Counts are summed, feature flags OR-ed, technologies and navigation items
    unioned in first-seen order.  Cookie consent and breadcrumbs are read from
    the entry page markup.
    """
    entry_lower = entry_html.lower()

    features = DetectedFeatures(
        **{flag: any(getattr(page, flag) for page in pages) for flag in _PAGE_FLAGS},
        has_user_dashboard=False,
        has_multi_language=False,
        has_cookie_consent="cookie" in entry_lower,
    )

    structure = SiteStructure(
        forms=sum(p.forms for p in pages),
        links=sum(p.links for p in pages),
        images=sum(p.images for p in pages),
        interactive_elements=sum(p.interactive_elements for p in pages),
    )

    return SiteAnalysis(
        url=url,
        pages_crawled=len(pages),
        pages=pages,
        site_structure=structure,
        technologies=_unique(t for p in pages for t in p.technologies),
        detected_features=features,
        page_types=_page_types(url, pages),
        navigation_structure=NavigationStructure(
            main_menu_items=_unique(i for p in pages for i in p.navigation_items),
            footer_links=[],
            breadcrumbs="breadcrumb" in entry_lower,
        ),
        test_urls=test_urls,
    )


async def perform_site_analysis(url: str) -> SiteAnalysis:
    """Crawl *url* and up to ``max_pages - 1`` linked pages, one at a time.

    The entry page is required: its fetch errors propagate to the caller.
    Every other page goes through :func:`analyze_page` and cannot abort the
    crawl.  A politeness delay precedes each additional fetch.

    Raises:
        ValueError: if *url* fails validation.
        httpx.HTTPError: if the entry page cannot be fetched.
        RuntimeError: if the entry page is too large or redirects loop.
    """
    settings = get_settings()
    logger.info("Starting site analysis of %s", url)

    entry_html = await fetch_url(url)
    entry_page = analyze_markup(entry_html, url)

    test_urls = discover_pages(url, entry_html, limit=settings.max_pages)
    logger.info("Discovered %d pages to analyze for %s", len(test_urls), url)

    pages = [entry_page]
    for page_url in test_urls:
        if page_url == url:
            continue
        await asyncio.sleep(settings.crawl_delay)
        pages.append(await analyze_page(page_url))

    return aggregate_site(url, entry_html, pages, test_urls)
