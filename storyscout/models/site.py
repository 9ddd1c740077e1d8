from typing import List

from storyscout.models.base import CamelModel
from storyscout.models.page import PageAnalysis


class SiteStructure(CamelModel):
    forms: int = 0
    links: int = 0
    images: int = 0
    interactive_elements: int = 0


class DetectedFeatures(CamelModel):
    """Site-wide feature summary (logical OR over the crawled pages)."""

    has_login: bool = False
    has_search: bool = False
    has_ecommerce: bool = False
    has_contact_form: bool = False
    has_newsletter: bool = False
    has_chatbot: bool = False
    has_file_upload: bool = False
    has_payment_form: bool = False
    has_user_dashboard: bool = False  # needs authenticated crawling, never detected
    has_multi_language: bool = False  # needs deeper analysis, never detected
    has_cookie_consent: bool = False
    has_video_content: bool = False
    has_image_gallery: bool = False
    has_social_login: bool = False
    has_comments: bool = False

    def names(self) -> List[str]:
        """Return detected flags as feature names, e.g. ``hasContactForm`` -> ``ContactForm``."""
        return [
            field.alias.removeprefix("has")
            for name, field in type(self).model_fields.items()
            if getattr(self, name)
        ]


class NavigationStructure(CamelModel):
    main_menu_items: List[str] = []
    footer_links: List[str] = []  # not extracted
    breadcrumbs: bool = False


class SiteAnalysis(CamelModel):
    url: str
    pages_crawled: int
    pages: List[PageAnalysis]
    site_structure: SiteStructure
    technologies: List[str]
    detected_features: DetectedFeatures
    page_types: List[str]
    navigation_structure: NavigationStructure
    test_urls: List[str]
