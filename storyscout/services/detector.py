"""Heuristic feature detection from raw page HTML.

The markup is treated as plain text, not as a DOM: every signal below is a
regular-expression or substring test.  This keeps detection fast and tolerant
of broken HTML at the cost of the occasional false positive.

Signals
-------
Element counts
    Occurrences of ``<form``, ``<a … href``, ``<img`` and interactive controls
    (``<button``, ``<input``, ``<select``, ``<textarea``).

Navigation items
    Anchor text found inside ``<nav>…</nav>`` blocks.

Technologies
    Case-insensitive substrings for a handful of well-known frameworks.

Feature flags
    One :class:`FeatureRule` per flag in :data:`FEATURE_RULES`.  A rule fires
    when its pattern matches *and* its optional guard accepts the page, which
    is how co-occurring evidence (a login keyword plus a password field, a
    gallery keyword plus enough images, …) is expressed.
"""

import re
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from bs4 import BeautifulSoup

from storyscout.models.page import PageAnalysis

MAX_CONTENT_CHARS = 1000
DEFAULT_TITLE = "No title"

# Gallery keywords only count on pages carrying more images than this
_GALLERY_MIN_IMAGES = 5

# ---------------------------------------------------------------------------
# Element patterns
# ---------------------------------------------------------------------------
_FORM_PATTERN = re.compile(r"<form\b[^>]*>", re.IGNORECASE)
_LINK_PATTERN = re.compile(r"<a\b[^>]*href", re.IGNORECASE)
_IMAGE_PATTERN = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_INTERACTIVE_PATTERNS = tuple(
    re.compile(rf"<{tag}\b[^>]*>", re.IGNORECASE)
    for tag in ("button", "input", "select", "textarea")
)

_TITLE_PATTERN = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_NAV_PATTERN = re.compile(r"<nav\b[^>]*>[\s\S]*?</nav>", re.IGNORECASE)
_NAV_LINK_PATTERN = re.compile(r"<a\b[^>]*>([^<]+)</a>", re.IGNORECASE)

_WHITESPACE = re.compile(r"\s+")

# (substrings, technology name) – matched against the lower-cased markup
_TECHNOLOGIES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("react",), "React"),
    (("next.js", "nextjs"), "Next.js"),
    (("vue",), "Vue.js"),
    (("angular",), "Angular"),
    (("jquery",), "jQuery"),
    (("bootstrap",), "Bootstrap"),
    (("tailwind",), "Tailwind CSS"),
    (("wordpress",), "WordPress"),
)


class ElementCounts(NamedTuple):
    forms: int
    links: int
    images: int
    interactive_elements: int


class FeatureRule(NamedTuple):
    """One heuristic: *flag* is set when *pattern* matches and *guard* agrees."""

    flag: str
    pattern: re.Pattern
    guard: Optional[Callable[[str, ElementCounts], bool]] = None

    def matches(self, html: str, counts: ElementCounts) -> bool:
        if not self.pattern.search(html):
            return False
        return self.guard is None or self.guard(html, counts)


def _rule(flag: str, pattern: str, guard=None) -> FeatureRule:
    return FeatureRule(flag, re.compile(pattern, re.IGNORECASE), guard)


_CREDENTIAL_FIELD = re.compile(r"password|username|email", re.IGNORECASE)

FEATURE_RULES: Tuple[FeatureRule, ...] = (
    _rule(
        "has_login",
        r"login|sign\s*in|log\s*in|signin|authentication|auth",
        lambda html, _counts: bool(_CREDENTIAL_FIELD.search(html)),
    ),
    _rule(
        "has_search",
        r"search|<input[^>]*type=[\"']search|<input[^>]*placeholder[^>]*search",
    ),
    _rule(
        "has_contact_form",
        r"contact.*form|form.*contact|<form[^>]*contact|name.*email.*message",
        lambda _html, counts: counts.forms > 0,
    ),
    _rule("has_newsletter", r"newsletter|subscribe|signup.*email|email.*signup"),
    _rule("has_chatbot", r"chat|\bbot\b|support.*chat|live.*chat|intercom|zendesk"),
    _rule("has_file_upload", r"<input[^>]*type=[\"']file"),
    _rule("has_payment_form", r"payment|checkout|credit.*card|paypal|stripe|billing"),
    _rule(
        "has_ecommerce",
        r"shop|store|cart|product|buy|purchase|price|\$\d+|add.*to.*cart",
    ),
    _rule("has_video_content", r"<video|youtube|vimeo|embed.*video"),
    _rule(
        "has_image_gallery",
        r"gallery|portfolio|<img[^>]*gallery|lightbox",
        lambda _html, counts: counts.images > _GALLERY_MIN_IMAGES,
    ),
    _rule(
        "has_social_login",
        r"facebook.*login|google.*login|twitter.*login|github.*login|oauth",
    ),
    _rule("has_comments", r"comment|reply|discussion|disqus"),
    _rule("has_cookie_consent", r"cookie"),
)


def count_elements(html: str) -> ElementCounts:
    return ElementCounts(
        forms=len(_FORM_PATTERN.findall(html)),
        links=len(_LINK_PATTERN.findall(html)),
        images=len(_IMAGE_PATTERN.findall(html)),
        interactive_elements=sum(len(p.findall(html)) for p in _INTERACTIVE_PATTERNS),
    )


def extract_title(html: str) -> str:
    match = _TITLE_PATTERN.search(html)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return DEFAULT_TITLE


def extract_navigation_items(html: str) -> List[str]:
    """Return the text of every anchor found inside ``<nav>`` blocks, in order."""
    items: List[str] = []
    for nav in _NAV_PATTERN.findall(html):
        for text in _NAV_LINK_PATTERN.findall(nav):
            text = text.strip()
            if text:
                items.append(text)
    return items


def detect_technologies(html: str) -> List[str]:
    html_lower = html.lower()
    return [
        name
        for needles, name in _TECHNOLOGIES
        if any(needle in html_lower for needle in needles)
    ]


def detect_features(html: str, counts: Optional[ElementCounts] = None) -> Dict[str, bool]:
    """Evaluate every rule in :data:`FEATURE_RULES` against *html*.

    Returns:
        A mapping of flag name (e.g. ``"has_login"``) to its boolean result.
    """
    if counts is None:
        counts = count_elements(html)
    return {rule.flag: rule.matches(html, counts) for rule in FEATURE_RULES}


def extract_text(html: str, limit: int = MAX_CONTENT_CHARS) -> str:
    """Return the page's visible text with whitespace collapsed, cut to *limit* characters."""
    text = BeautifulSoup(html, "lxml").get_text(separator=" ")
    return _WHITESPACE.sub(" ", text).strip()[:limit]


def analyze_markup(html: str, url: str) -> PageAnalysis:
    """Build a :class:`PageAnalysis` for *url* from its raw *html*."""
    counts = count_elements(html)
    return PageAnalysis(
        url=url,
        title=extract_title(html),
        **detect_features(html, counts),
        **counts._asdict(),
        navigation_items=extract_navigation_items(html),
        technologies=detect_technologies(html),
        content=extract_text(html),
    )
