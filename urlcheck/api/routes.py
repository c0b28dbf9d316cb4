import json
import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from urlcheck.api.schemas import ErrorResponse, HealthResponse, UrlCheckResult
from urlcheck.core.errors import InvalidInputError
from urlcheck.services.batch import BatchOrchestrator

router = APIRouter()


def get_orchestrator(request: Request) -> BatchOrchestrator:
    """Orchestrator built during application startup."""
    return request.app.state.orchestrator


@router.get("/health", response_model=HealthResponse)
async def health_check(orchestrator: BatchOrchestrator = Depends(get_orchestrator)):
    """Liveness probe, with the number of cached verdicts."""
    return {"status": "healthy", "cache_entries": len(orchestrator.scanner.cache)}


@router.post(
    "/check-urls",
    response_model=List[UrlCheckResult],
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
async def check_urls(request: Request, orchestrator: BatchOrchestrator = Depends(get_orchestrator)):
    """Check structure, reputation and redirects for every URL in the body."""
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        data = None
    urls = data.get("urls") if isinstance(data, dict) else None

    try:
        return await orchestrator.check_batch(urls)
    except InvalidInputError as e:
        logging.warning(f"Rejected /check-urls payload: {e.message}")
        return JSONResponse(status_code=400, content={"error": e.message})
