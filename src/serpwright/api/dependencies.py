from fastapi import Request

from ..services.serp import BrowserLaunchError, SearchEngine


def get_engine(request: Request) -> SearchEngine:
    """Engine built by the application lifespan."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise BrowserLaunchError("Search engine is not initialized", headless=True)
    return engine
