"""User-story construction: the deterministic fallback story and the LLM prompt."""

from typing import List

from storyscout.models.site import SiteAnalysis
from storyscout.models.story import AcceptanceCriteria, TestingScenario, UserStory

_FALLBACK_TITLE = (
    "As a user, I want to navigate the website effectively, "
    "so that I can find the information I need"
)

_PROMPT_TEMPLATE = """
You are an expert QA testing consultant. Based on the REAL website analysis below, generate comprehensive user stories and testing scenarios.

ACTUAL WEBSITE ANALYSIS:
- URL: {url}
- Pages Analyzed: {pages_crawled}
- Detected Features: {features}
- Technologies Found: {technologies}
- Navigation Items: {navigation}

PAGES ANALYZED:
{page_summaries}

SITE STRUCTURE:
- Total Forms: {forms}
- Total Links: {links}
- Total Images: {images}
- Interactive Elements: {interactive}

TEST URLS TO USE:
{test_urls}

IMPORTANT: Only generate scenarios for features that were ACTUALLY DETECTED. Do not create scenarios for login, ecommerce, or other features unless they were found in the analysis above.

REQUIREMENTS:
1. Generate 3-5 user stories based ONLY on detected features
2. Each user story must follow "AS [persona], I WANT [goal], SO THAT [benefit]" format
3. Each story should have 2-4 acceptance criteria in Gherkin "GIVEN, WHEN, THEN" format
4. Each story should have 1-3 testing scenarios with detailed steps including prerequisites
5. Use the actual URLs provided above in your test steps
6. Make personas realistic for this specific website
7. Focus on what was actually found, not assumptions
"""

# Kept apart from the template above: the literal braces would clash with str.format
_RESPONSE_FORMAT = """
RESPONSE FORMAT (JSON):
{
  "userStories": [
    {
      "id": "story-001",
      "title": "AS [persona], I WANT [specific goal based on detected features], SO THAT [specific benefit]",
      "description": "Detailed description explaining why this story is important for this specific website",
      "persona": "Specific User Type",
      "priority": "high|medium|low",
      "acceptanceCriteria": [
        {
          "id": "ac-001-1",
          "description": "GIVEN [specific context], WHEN [specific action on actual URLs], THEN [specific expected result]",
          "testable": true
        }
      ],
      "scenarios": [
        {
          "id": "scenario-001",
          "category": "Relevant Category",
          "priority": "high|medium|low",
          "title": "Specific Test Scenario Name",
          "description": "What this scenario tests and why it's important for this website",
          "steps": [
            "Prerequisites: Specific setup requirements",
            "Step 1: Navigate to {url}",
            "Step 2: Specific action based on detected features",
            "Step 3: Verification step using actual page content"
          ],
          "expectedOutcome": "Specific expected result based on actual website functionality"
        }
      ]
    }
  ]
}

ONLY generate scenarios for features that were actually detected: {features}
"""


def _join(values: List[str], empty: str) -> str:
    return ", ".join(values) or empty


def build_prompt(analysis: SiteAnalysis) -> str:
    """Serialise *analysis* into the story-generation prompt."""
    features = ", ".join(analysis.detected_features.names())
    page_summaries = "\n".join(
        f'- {page.url}: "{page.title}" '
        f"({page.forms} forms, {page.links} links, {page.images} images)"
        for page in analysis.pages
    )
    structure = analysis.site_structure

    prompt = _PROMPT_TEMPLATE.format(
        url=analysis.url,
        pages_crawled=analysis.pages_crawled,
        features=features or "None detected",
        technologies=_join(analysis.technologies, "None detected"),
        navigation=_join(analysis.navigation_structure.main_menu_items, "None found"),
        page_summaries=page_summaries,
        forms=structure.forms,
        links=structure.links,
        images=structure.images,
        interactive=structure.interactive_elements,
        test_urls="\n".join(analysis.test_urls),
    )
    response_format = _RESPONSE_FORMAT.replace("{url}", analysis.url).replace(
        "{features}", features or "basic navigation and content display"
    )
    return prompt + response_format


def fallback_user_stories(analysis: SiteAnalysis) -> List[UserStory]:
    """Return the single generic navigation story used when no LLM is available."""
    url = analysis.url
    pages = analysis.pages_crawled
    features = analysis.detected_features.names()
    detected = (
        f"Detected features: {', '.join(features)}"
        if features
        else "No special features detected."
    )

    return [
        UserStory(
            id="story-001",
            title=_FALLBACK_TITLE,
            description=(
                f"Basic navigation and content testing for {url}. {detected} "
                "Provide a Google Gemini API key for AI-generated, site-specific scenarios."
            ),
            persona="Website Visitor",
            priority="high",
            acceptance_criteria=[
                AcceptanceCriteria(
                    id="ac-001-1",
                    description=(
                        f"Given I am on {url}, When I navigate through the site, "
                        f"Then I should be able to access all {pages} discovered pages"
                    ),
                    testable=True,
                )
            ],
            scenarios=[
                TestingScenario(
                    id="nav-001",
                    category="Navigation",
                    priority="high",
                    title="Website Navigation Testing",
                    description=f"Test navigation across the {pages} discovered pages",
                    steps=[
                        f"Prerequisites: Open {url} in a browser",
                        "Navigate through all discovered pages",
                        "Verify all links work correctly",
                        "Check page loading and content display",
                    ],
                    expected_outcome=(
                        "All pages should load correctly and navigation should work without errors"
                    ),
                )
            ],
        )
    ]
