"""WarRoom — incident tracking service.

FastAPI entry point with lifespan management, CORS and the live incident feed.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.envelope import ok
from .api.router import api_router, websocket_router
from .database import close_engine, create_tables
from .dependencies import get_app_config, get_broadcast_hub, get_incident_store, reset_singletons
from .middleware.error_handler import register_error_handlers
from .middleware.request_logging import RequestLoggingMiddleware
from .utils.logging import get_logger, setup_logging

logger = get_logger("warroom.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_app_config()
    await create_tables(config)
    hub = get_broadcast_hub()
    get_incident_store().set_hub(hub)
    app.state.started_at = datetime.now(timezone.utc)
    logger.info("warroom_started", database_url=config.database_url, port=config.port)

    yield

    await hub.close_all()
    await close_engine()
    reset_singletons()
    logger.info("warroom_stopped")


def create_app() -> FastAPI:
    """Build the application from the current environment."""
    config = get_app_config()
    setup_logging(
        debug=config.debug,
        log_dir=config.log_dir,
        log_max_bytes=config.log_max_bytes,
        log_backup_count=config.log_backup_count,
    )

    app = FastAPI(title=config.app_name, version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    @app.get("/api/health")
    async def health():
        hub = get_broadcast_hub()
        return ok({
            "status": "ok",
            "message": f"{config.app_name} server is running",
            "subscribers": hub.subscriber_count,
        })

    app.include_router(api_router)
    app.include_router(websocket_router)
    return app


app = create_app()


def run() -> None:
    """Console entry point."""
    config = get_app_config()
    uvicorn.run("warroom.main:app", host=config.host, port=config.port, reload=config.debug)


if __name__ == "__main__":
    run()
