import logging

from fastapi import APIRouter, HTTPException, Query

from storyscout.models.requests import (
    GherkinExistsResponse,
    GherkinExportRequest,
    GherkinExportResponse,
)
from storyscout.services.gherkin import feature_filename, gherkin_file_exists, write_feature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gherkin", tags=["Gherkin"])


@router.post(
    "",
    response_model=GherkinExportResponse,
    summary="Export a testing scenario as a Gherkin feature file",
)
async def export_scenario(body: GherkinExportRequest) -> GherkinExportResponse:
    scenario = body.scenario
    try:
        path = write_feature(scenario, body.story_title, body.url)
    except ValueError as exc:
        logger.warning("Rejected feature file name for %s: %s", scenario.id, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except OSError as exc:
        logger.error("Could not write feature file for %s: %s", scenario.id, exc)
        raise HTTPException(status_code=500, detail=f"Could not write feature file: {exc}")

    return GherkinExportResponse(filename=path.name, path=str(path))


@router.get(
    "/exists",
    response_model=GherkinExistsResponse,
    summary="Check whether a scenario has already been exported",
)
async def scenario_exported(
    scenario_id: str = Query(..., description="Scenario identifier, e.g. 'nav-001'."),
    title: str = Query(..., description="Scenario title."),
) -> GherkinExistsResponse:
    return GherkinExistsResponse(
        filename=feature_filename(scenario_id, title),
        exists=gherkin_file_exists(scenario_id, title),
    )
