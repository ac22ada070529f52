"""
HTTP service entry point.

The shared headless browser is started in the lifespan and closed exactly
once on shutdown (uvicorn triggers shutdown on SIGINT/SIGTERM).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .api import router as api_router
from .api.errors import serp_exception_handler
from .core.config import settings
from .core.logger import setup_logging
from .services.serp import BrowserController, SearchEngine, SerpException, SharedBrowser
from .services.serp.config import ConfigLoader

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()

    config = ConfigLoader.from_default_file()
    shared = SharedBrowser(BrowserController(config.launch, channel=settings.SERP_BROWSER_CHANNEL))
    app.state.shared_browser = shared

    try:
        await shared.start()
        app.state.engine = SearchEngine(
            settings,
            shared_browser=shared,
            config=config,
            default_state_file=settings.SERP_SERVICE_STATE_PATH,
        )
        logger.info(f"{settings.APP_NAME} ready (state file: {settings.SERP_SERVICE_STATE_PATH})")
        yield
    finally:
        app.state.engine = None
        await shared.close()


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION or "0.0.0",
    lifespan=lifespan,
)
app.include_router(api_router)
app.add_exception_handler(SerpException, serp_exception_handler)


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    setup_logging()
    uvicorn.run(app, host=settings.SERVER_HOST, port=settings.SERVER_PORT, log_config=None)


if __name__ == "__main__":
    run()
