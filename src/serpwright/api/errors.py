"""
Maps engine exceptions onto HTTP responses.

Body shape for every engine failure:
    {"error": {"kind": "<kind tag>", "message": "<text>"}}
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from ..schemas.search import ErrorDetail, ErrorResponse
from ..services.serp import (
    BrowserLaunchError,
    ChallengeUnresolvedError,
    NavigationError,
    NavigationTimeoutError,
    SerpException,
)

logger = logging.getLogger(__name__)


def status_code_for(exc: SerpException) -> int:
    # Order matters: NavigationTimeoutError is a NavigationError
    if isinstance(exc, NavigationTimeoutError):
        return 504
    if isinstance(exc, (NavigationError, ChallengeUnresolvedError)):
        return 502
    if isinstance(exc, BrowserLaunchError):
        return 503
    return 500


def error_body(exc: SerpException) -> dict:
    return ErrorResponse(error=ErrorDetail(**exc.to_dict())).model_dump()


async def serp_exception_handler(request: Request, exc: SerpException) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.error(f"{request.method} {request.url.path} failed ({status_code}): {exc}")
    return JSONResponse(status_code=status_code, content=error_body(exc))
