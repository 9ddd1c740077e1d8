"""Export testing scenarios as Gherkin ``.feature`` files."""

import logging
import re
from pathlib import Path

from storyscout.config import get_settings
from storyscout.models.story import TestingScenario

logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r"\s+")

_BROWSERS = ("chrome", "firefox", "safari")


def _kebab(value: str) -> str:
    """Lower-case *value* and replace each whitespace run with one hyphen; nothing else changes."""
    return _WHITESPACE_RUN.sub("-", value.lower())


def feature_filename(scenario_id: str, title: str) -> str:
    """Return ``{id}-{kebab title}.feature``, e.g. ``test-001-xss-&-sql-injection-testing.feature``."""
    return f"{scenario_id}-{_kebab(title)}.feature"


def gherkin_dir() -> Path:
    return Path.cwd() / get_settings().gherkin_dir


def feature_path(scenario_id: str, title: str) -> Path:
    """Return the path of the feature file for this scenario inside :func:`gherkin_dir`.

    Raises:
        ValueError: if the id or title would place the file anywhere else.
    """
    directory = gherkin_dir().resolve()
    path = (directory / feature_filename(scenario_id, title)).resolve()
    if path.parent != directory:
        raise ValueError(
            f"Scenario id and title must not contain path separators: {scenario_id!r}, {title!r}"
        )
    return path


def gherkin_file_exists(scenario_id: str, title: str) -> bool:
    """Return True when the feature file for this scenario has already been written."""
    try:
        return feature_path(scenario_id, title).exists()
    except (OSError, ValueError):
        return False


def render_feature(scenario: TestingScenario, story_title: str, url: str) -> str:
    """Return the feature-file text for *scenario*."""
    steps = "\n".join(
        f"  # Step {number}: {step}" for number, step in enumerate(scenario.steps, start=1)
    )
    examples = "\n".join(f"    | {browser:<7} |" for browser in _BROWSERS)

    return f"""Feature: {scenario.category} - {scenario.title}
  User story: {story_title}

Background:
  Given I am testing the website "{url}"
  And I am acting as the user persona for this scenario

Scenario: {scenario.title}
  # {scenario.description}

  # Test Steps (convert to Gherkin format):
{steps}

  # Expected Outcome:
  # {scenario.expected_outcome}

  # Convert the above steps into Given/When/Then steps. Example structure:
  Given I am on the homepage
  When I click on the navigation menu
  Then I should see all menu items clearly labeled
  And the navigation should work without errors

@{_kebab(scenario.category)}
@{scenario.priority}-priority
Scenario Outline: {scenario.title} - Cross Browser Testing
  Given I am using "<browser>" browser
  When I perform the test steps for "{scenario.title}"
  Then the expected outcome should be achieved

  Examples:
    | browser |
{examples}
"""


def write_feature(scenario: TestingScenario, story_title: str, url: str) -> Path:
    """Write the feature file for *scenario* and return its path.

    Raises:
        ValueError: if the id or title would place the file outside the export directory.
        OSError: if the directory or file cannot be written.
    """
    path = feature_path(scenario.id, scenario.title)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_feature(scenario, story_title, url), encoding="utf-8")
    logger.info("Wrote feature file %s", path)
    return path
