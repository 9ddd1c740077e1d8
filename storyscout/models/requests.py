from typing import List, Optional

from pydantic import Field, HttpUrl

from storyscout.models.base import CamelModel
from storyscout.models.story import TestingScenario, UserStory


class AnalyzeRequest(CamelModel):
    url: HttpUrl
    gemini_api_key: Optional[str] = Field(
        default=None,
        description=(
            "Google Gemini API key. When omitted (and no server-side key is configured) "
            "a single generic navigation story is generated instead."
        ),
    )


class GherkinExportRequest(CamelModel):
    scenario: TestingScenario
    story_title: str
    url: str


class GherkinExportResponse(CamelModel):
    filename: str
    path: str


class GherkinExistsResponse(CamelModel):
    filename: str
    exists: bool


class SaveStoriesRequest(CamelModel):
    user_stories: List[UserStory]
    url: str


class SaveStoriesResponse(CamelModel):
    url: str
    saved: bool
