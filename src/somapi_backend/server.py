import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from somapi_backend import __version__
from somapi_backend.api.webservice import webservice_router
from somapi_backend.database import SessionLocal
from somapi_backend.exceptions import register_exception_handlers
from somapi_backend.external.registry import sync_service_definitions
from somapi_backend.settings import settings

logger = logging.getLogger(__name__)


def startup_logic():
    db = SessionLocal()
    try:
        sync_service_definitions(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DEBUG_MODE == "production":
        startup_logic()
    yield


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="SOM API",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    # Register custom exception handlers for structured error responses
    register_exception_handlers(app)

    app.include_router(webservice_router)

    @app.get("/", include_in_schema=False)
    def root():
        return {"name": "SOM API", "version": __version__}

    return app


app = create_app()
