from typing import Any

from fastapi import APIRouter, Request

from ...core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Service health")
async def health(request: Request) -> dict[str, Any]:
    shared = getattr(request.app.state, "shared_browser", None)
    return {
        "status": "ok",
        "version": settings.APP_VERSION,
        "browser": "running" if shared is not None and shared.is_running else "stopped",
    }
