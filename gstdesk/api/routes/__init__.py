from fastapi import APIRouter

from gstdesk.api.routes.health import router as health_router

api_router = APIRouter()

# Public / health
api_router.include_router(health_router, tags=["health"])
