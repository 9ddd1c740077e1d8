"""Persistence stub for generated user stories."""

import asyncio
import json
import logging
from typing import List

from storyscout.config import get_settings
from storyscout.models.story import UserStory

logger = logging.getLogger(__name__)


async def save_acceptance_criteria(user_stories: List[UserStory], url: str) -> None:
    """Simulate saving *user_stories* for *url*: wait, then log them as JSON.

    Nothing is stored durably.
    """
    await asyncio.sleep(get_settings().save_delay)
    logger.info("Acceptance criteria saved for: %s", url)
    logger.info(
        json.dumps([story.model_dump(by_alias=True) for story in user_stories], indent=2)
    )
