from fastapi import APIRouter

from .health import router as health_router
from .search import router as search_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(search_router)
