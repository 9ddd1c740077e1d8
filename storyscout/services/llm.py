"""LLM-backed user-story generation (Google Gemini) with classified retries.

Every failed call is classified into an :data:`ErrorKind`.  Credential and
quota problems fail at once; every other kind is retried with its own
backoff curve until ``llm_max_attempts`` calls have been made:

============  ===========================================
kind          delay before attempt ``n + 1``
============  ===========================================
rate_limit    ``base * 2**(n-1)`` + up to 1 s jitter
overloaded    ``base * 3**(n-1)`` + up to 2 s jitter
transient     ``base * 2**(n-1)``
malformed     ``base * n``
unknown       ``base * 2**(n-1)``
============  ===========================================
"""

import asyncio
import json
import logging
import random
from typing import Callable, Dict, List, Literal

import httpx
from google import genai

from storyscout.config import get_settings
from storyscout.models.site import SiteAnalysis
from storyscout.models.story import UserStory
from storyscout.services.json_extract import parse_json_object
from storyscout.services.stories import build_prompt

logger = logging.getLogger(__name__)

ErrorKind = Literal[
    "credential", "quota", "rate_limit", "overloaded", "transient", "malformed", "unknown"
]

NON_RETRYABLE = frozenset({"credential", "quota"})

_CREDENTIAL_MARKERS = ("api_key_invalid", "api key", "invalid api key")
_RATE_LIMIT_MARKERS = ("rate_limit_exceeded", "rate limit")
_TRANSIENT_MARKERS = ("internal", "unavailable", "500", "502", "504", "network", "fetch")

_FAILURE_MESSAGES: Dict[str, str] = {
    "credential": "Invalid Google Gemini API key. Please check your API key and try again.",
    "quota": "Google Gemini API quota exceeded. Please check your usage limits.",
    "rate_limit": (
        "Google Gemini API rate limit exceeded after multiple retries. "
        "Please wait a few minutes and try again."
    ),
    "overloaded": (
        "Google Gemini model is currently overloaded after multiple retries. "
        "Please try again in a few minutes."
    ),
    "transient": "Google Gemini API server error after multiple retries. Please try again later.",
    "malformed": (
        "Google Gemini kept returning responses that could not be parsed as user stories."
    ),
    "unknown": (
        "Failed to generate user stories with Gemini after multiple retries. "
        "Please check your API key and try again."
    ),
}


class MalformedResponseError(ValueError):
    """The model answered, but not with the expected user-story JSON."""


class StoryGenerationError(RuntimeError):
    """User stories could not be generated; ``kind`` names the final error class."""

    def __init__(self, message: str, kind: ErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised while calling the model to an :data:`ErrorKind`.

    HTTP status codes (``exc.code``, as carried by ``google.genai.errors.APIError``)
    are preferred; message keywords cover SDK and transport errors without one.
    """
    if isinstance(exc, (MalformedResponseError, json.JSONDecodeError)):
        return "malformed"

    code = getattr(exc, "code", None)
    if not isinstance(code, int):
        code = None
    message = str(exc).lower()

    if code in (401, 403) or any(marker in message for marker in _CREDENTIAL_MARKERS):
        return "credential"
    if "quota" in message:
        return "quota"
    if code == 429 or any(marker in message for marker in _RATE_LIMIT_MARKERS):
        return "rate_limit"
    if code == 503 or "overloaded" in message or "503" in message:
        return "overloaded"
    if (
        code in (500, 502, 504)
        or isinstance(exc, (httpx.TransportError, TimeoutError))
        or any(marker in message for marker in _TRANSIENT_MARKERS)
    ):
        return "transient"
    return "unknown"


def backoff_delay(
    kind: ErrorKind,
    attempt: int,
    base_delay: float,
    jitter: Callable[[], float] = random.random,
) -> float:
    """Return the seconds to wait after failed *attempt* (1-based) of class *kind*."""
    if kind in NON_RETRYABLE:
        raise ValueError(f"Errors of kind '{kind}' are not retried.")
    if kind == "rate_limit":
        return base_delay * 2 ** (attempt - 1) + jitter() * 1.0
    if kind == "overloaded":
        return base_delay * 3 ** (attempt - 1) + jitter() * 2.0
    if kind == "malformed":
        return base_delay * attempt
    return base_delay * 2 ** (attempt - 1)


def parse_user_stories(text: str) -> List[UserStory]:
    """Parse the model's reply into user stories.

    Raises:
        MalformedResponseError: if the reply holds no JSON object, invalid
            JSON, or stories that do not match the expected structure.
    """
    try:
        data = parse_json_object(text)
        return [UserStory.model_validate(item) for item in data.get("userStories") or []]
    except (ValueError, TypeError, AttributeError) as exc:
        # ValueError covers NoJSONFoundError, JSONDecodeError and ValidationError
        raise MalformedResponseError(f"Unusable model response: {exc}") from exc


async def _generate_text(client: genai.Client, prompt: str) -> str:
    """Send *prompt* to Gemini through *client* and return the text of the reply."""
    response = await client.aio.models.generate_content(
        model=get_settings().gemini_model,
        contents=prompt,
    )
    return response.text or ""


async def generate_ai_user_stories(analysis: SiteAnalysis, api_key: str) -> List[UserStory]:
    """Generate user stories for *analysis* with Gemini.

    Raises:
        StoryGenerationError: on a missing/invalid key, exhausted quota, or
            once every attempt has failed.
    """
    if not api_key:
        raise StoryGenerationError("Google Gemini API key is required.", "credential")

    settings = get_settings()
    max_attempts = settings.llm_max_attempts
    prompt = build_prompt(analysis)
    client = genai.Client(api_key=api_key)

    for attempt in range(1, max_attempts + 1):
        try:
            text = await _generate_text(client, prompt)
            stories = parse_user_stories(text)
        except Exception as exc:
            kind = classify_error(exc)
            logger.warning(
                "Gemini attempt %d/%d failed (%s): %s", attempt, max_attempts, kind, exc
            )
            if kind in NON_RETRYABLE or attempt == max_attempts:
                raise StoryGenerationError(_FAILURE_MESSAGES[kind], kind) from exc

            delay = backoff_delay(kind, attempt, settings.llm_base_delay)
            logger.info(
                "Retrying Gemini in %.2fs (attempt %d/%d)", delay, attempt + 1, max_attempts
            )
            await asyncio.sleep(delay)
            continue

        logger.info("Gemini generated %d user stories for %s", len(stories), analysis.url)
        return stories

    # Only reachable when llm_max_attempts < 1
    raise StoryGenerationError(_FAILURE_MESSAGES["unknown"], "unknown")
