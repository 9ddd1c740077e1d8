import logging

from fastapi import APIRouter

from storyscout.models.requests import SaveStoriesRequest, SaveStoriesResponse
from storyscout.services.storage import save_acceptance_criteria

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stories", tags=["Stories"])


@router.post(
    "/save",
    response_model=SaveStoriesResponse,
    summary="Save the acceptance criteria of generated user stories",
)
async def save_stories(body: SaveStoriesRequest) -> SaveStoriesResponse:
    logger.info("Saving %d user stories", len(body.user_stories), extra={"url": body.url})
    await save_acceptance_criteria(body.user_stories, body.url)
    return SaveStoriesResponse(url=body.url, saved=True)
