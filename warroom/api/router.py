"""Master API router — includes all sub-routers."""

from fastapi import APIRouter

from .routes.alerts import router as alerts_router
from .routes.analytics import router as analytics_router
from .routes.incidents import router as incidents_router
from .websockets.events import router as ws_router

api_router = APIRouter(prefix="/api")

api_router.include_router(incidents_router)
api_router.include_router(analytics_router)
api_router.include_router(alerts_router)

# WebSocket router is mounted at root level (no prefix)
websocket_router = ws_router
