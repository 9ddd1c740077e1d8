import logging

import httpx
from fastapi import APIRouter, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from storyscout.config import get_settings
from storyscout.models.requests import AnalyzeRequest
from storyscout.models.story import AnalysisResult
from storyscout.services.analysis import analyze_site
from storyscout.services.llm import StoryGenerationError

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

# StoryGenerationError.kind -> HTTP status
_GENERATION_STATUS = {
    "credential": 400,
    "quota": 429,
    "rate_limit": 429,
}


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    summary="Analyze a website and generate user stories",
    description=(
        "Fetches *url* and up to four same-origin pages linked from it, detects "
        "site features heuristically and returns the aggregated analysis with "
        "user stories, acceptance criteria and testing scenarios.\n\n"
        "Pass `geminiApiKey` to have Google Gemini write site-specific stories; "
        "otherwise a single generic navigation story is returned."
    ),
)
@limiter.limit("5/minute")
async def analyze(request: Request, body: AnalyzeRequest) -> AnalysisResult:
    url = str(body.url)
    api_key = body.gemini_api_key or get_settings().gemini_api_key or None
    logger.info("Analyze request received", extra={"url": url, "ai": bool(api_key)})

    try:
        return await analyze_site(url, api_key)
    except StoryGenerationError as exc:
        status = _GENERATION_STATUS.get(exc.kind, 502)
        raise HTTPException(status_code=status, detail=str(exc))
    except (ValueError, httpx.InvalidURL) as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except httpx.TimeoutException:
        logger.error("Timeout fetching URL: %s", url)
        raise HTTPException(status_code=504, detail="The target URL timed out.")
    except httpx.HTTPStatusError as exc:
        logger.error("HTTP error fetching URL %s: %s", url, exc)
        raise HTTPException(
            status_code=502, detail=f"Target URL returned HTTP {exc.response.status_code}."
        )
    except (httpx.RequestError, RuntimeError) as exc:
        logger.error("Error analyzing URL %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=str(exc))
