from fastapi import APIRouter, Depends
from api.deps import require_token
from api.endpoints.ats import router as ats_router
from api.endpoints.chat import router as chat_router
from api.endpoints.generator import router as generator_router
from api.endpoints.jobs import router as jobs_router
from api.endpoints.health import router as health_router

protected = [Depends(require_token)]

api_router = APIRouter()
api_router.include_router(jobs_router, tags=["jobs"], dependencies=protected)
api_router.include_router(generator_router, tags=["generator"], dependencies=protected)
api_router.include_router(ats_router, tags=["ats"], dependencies=protected)
api_router.include_router(chat_router, tags=["chat"], dependencies=protected)
api_router.include_router(health_router, tags=["health"])
