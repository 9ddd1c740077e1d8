"""Same-origin link discovery on the entry page."""

import logging
import re
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlparse

logger = logging.getLogger(__name__)

MAX_PAGES = 5

_HREF_PATTERN = re.compile(r"""<a\b[^>]*href=["']([^"']+)["']""", re.IGNORECASE)

# Substrings that mark fragment, mail and phone links
_SKIP_MARKERS = ("#", "mailto:", "tel:")

# Binary / image resources that are not pages
_SKIP_EXTENSIONS = (".pdf", ".jpg", ".png", ".gif")


def _origin(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*; ValueError if it has neither."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Cannot determine the origin of '{url}'.")
    return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"


def _resolve(href: str, origin: str) -> Optional[str]:
    """Return *href* as an absolute same-origin URL, or None when it should be ignored."""
    href = href.strip()
    try:
        if href.startswith(("/", "./")):
            href = urljoin(origin + "/", href)
        elif not href.startswith("http"):
            return None
        if _origin(href) != origin:
            return None
    except ValueError:
        return None
    return href


def _should_skip(url: str) -> bool:
    if any(marker in url for marker in _SKIP_MARKERS):
        return True
    return urlparse(url).path.lower().endswith(_SKIP_EXTENSIONS)


def discover_pages(base_url: str, html: str, limit: int = MAX_PAGES) -> List[str]:
    """Return up to *limit* same-origin page URLs linked from *html*.

    *base_url* is always the first entry.  Relative ``/…`` and ``./…`` links
    are resolved against the origin of *base_url*; other non-``http`` links
    are ignored.  Order follows first appearance in the markup.
    """
    # dict keeps insertion order and de-duplicates on the full URL string
    pages: Dict[str, None] = {base_url: None}

    try:
        origin = _origin(base_url)
    except ValueError as exc:
        logger.warning("Discovery: using the entry URL only for %s – %s", base_url, exc)
        return [base_url]

    for href in _HREF_PATTERN.findall(html):
        url = _resolve(href, origin)
        if url is None or _should_skip(url):
            continue
        pages.setdefault(url, None)

    return list(pages)[:limit]
