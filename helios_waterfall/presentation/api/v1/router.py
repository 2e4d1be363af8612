from fastapi import APIRouter

from .analysis import analysis_router
from .health import health_router

router = APIRouter()

router.include_router(health_router, tags=["Health"])
router.include_router(analysis_router, tags=["Analysis"])
