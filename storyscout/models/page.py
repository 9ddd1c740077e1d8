from typing import List

from storyscout.models.base import CamelModel

ERROR_TITLE = "Error loading page"


class PageAnalysis(CamelModel):
    """Facts extracted from one fetched page."""

    url: str
    title: str

    has_login: bool = False
    has_search: bool = False
    has_contact_form: bool = False
    has_newsletter: bool = False
    has_chatbot: bool = False
    has_file_upload: bool = False
    has_payment_form: bool = False
    has_ecommerce: bool = False
    has_video_content: bool = False
    has_image_gallery: bool = False
    has_social_login: bool = False
    has_comments: bool = False
    has_cookie_consent: bool = False

    forms: int = 0
    links: int = 0
    images: int = 0
    interactive_elements: int = 0

    navigation_items: List[str] = []
    technologies: List[str] = []
    content: str = ""  # first 1000 characters of visible text, prompt context only

    @classmethod
    def failed(cls, url: str) -> "PageAnalysis":
        """Return the sentinel analysis used when *url* could not be fetched."""
        return cls(url=url, title=ERROR_TITLE)
