from typing import Any, List, Literal

from pydantic import field_validator

from storyscout.models.base import CamelModel
from storyscout.models.site import SiteAnalysis

Priority = Literal["high", "medium", "low"]


class AcceptanceCriteria(CamelModel):
    id: str
    description: str  # Given / When / Then phrasing
    testable: bool = True


class TestingScenario(CamelModel):
    __test__ = False  # not a pytest test class

    id: str
    category: str
    priority: Priority
    title: str
    description: str
    steps: List[str]  # first step is a "Prerequisites:" line by convention
    expected_outcome: str

    @field_validator("priority", mode="before")
    @classmethod
    def normalise_priority(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class UserStory(CamelModel):
    id: str
    title: str
    description: str
    persona: str
    priority: Priority
    acceptance_criteria: List[AcceptanceCriteria] = []
    scenarios: List[TestingScenario] = []

    @field_validator("priority", mode="before")
    @classmethod
    def normalise_priority(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class AnalysisResult(SiteAnalysis):
    """A site analysis together with the user stories generated from it."""

    user_stories: List[UserStory]
