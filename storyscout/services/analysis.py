"""Analysis entry point: crawl a site, then turn the findings into user stories."""

import logging
from typing import Optional

from storyscout.models.story import AnalysisResult
from storyscout.services.crawler import perform_site_analysis
from storyscout.services.llm import StoryGenerationError, generate_ai_user_stories
from storyscout.services.stories import fallback_user_stories

logger = logging.getLogger(__name__)


async def analyze_site(url: str, api_key: Optional[str] = None) -> AnalysisResult:
    """Analyse *url* and attach generated user stories.

    With *api_key* the stories come from Gemini and any generation failure is
    raised; without it a single generic navigation story is produced.

    Raises:
        ValueError, httpx.HTTPError, RuntimeError: if the entry page cannot be fetched.
        StoryGenerationError: if Gemini story generation fails.
    """
    site = await perform_site_analysis(url)

    if api_key:
        try:
            stories = await generate_ai_user_stories(site, api_key)
        except StoryGenerationError as exc:
            logger.error("AI story generation failed for %s (%s): %s", url, exc.kind, exc)
            raise
    else:
        stories = fallback_user_stories(site)

    return AnalysisResult(**dict(site), user_stories=stories)
