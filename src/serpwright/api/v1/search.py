"""
Search API Endpoints

Thin adapter over SearchEngine. Engine errors are turned into the
{"error": {"kind", "message"}} envelope by the application's exception handler.
"""

import logging

from fastapi import APIRouter, Depends

from ...schemas.search import ErrorResponse, HtmlCaptureSummary, SearchRequest, SearchResponse
from ...services.serp import SearchEngine
from ..dependencies import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])

_ERROR_RESPONSES = {
    500: {"model": ErrorResponse, "description": "Unexpected engine failure"},
    502: {"model": ErrorResponse, "description": "Navigation failed or verification was not completed"},
    503: {"model": ErrorResponse, "description": "Browser could not be launched"},
    504: {"model": ErrorResponse, "description": "Search results did not appear in time"},
}


async def _capture_summary(payload: SearchRequest, engine: SearchEngine) -> HtmlCaptureSummary:
    warning = engine.no_state_warning(payload)
    capture = await engine.capture_html(payload)
    summary = capture.summary(engine.config.html_capture.preview_length)
    summary.warning = warning
    return summary


@router.post(
    "",
    response_model=SearchResponse | HtmlCaptureSummary,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Run a Google search",
    description="Search Google and return parsed results, or an HTML capture summary when getHtml is set.",
)
async def search(
    payload: SearchRequest,
    engine: SearchEngine = Depends(get_engine),
) -> SearchResponse | HtmlCaptureSummary:
    """
    Run a search.

    Starts headless. If Google asks for verification a visible browser window
    opens on the service host and the request waits (up to the headed ceiling)
    for it to be completed.
    """
    if payload.get_html:
        return await _capture_summary(payload, engine)
    return await engine.search(payload)


@router.post(
    "/html",
    response_model=HtmlCaptureSummary,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Capture the rendered results page",
    description="Search Google and return a summary of the cleaned page HTML, optionally saved to disk.",
)
async def search_html(
    payload: SearchRequest,
    engine: SearchEngine = Depends(get_engine),
) -> HtmlCaptureSummary:
    return await _capture_summary(payload, engine)
