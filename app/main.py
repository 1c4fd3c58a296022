from __future__ import annotations
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api import router
from app.web import router as web_router
from logging_config import configure_logging
from services.ooohh import build_default_service
from services.slack import build_default_slack_service
from storage.kv_store import build_default_store


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    service = build_default_service()
    try:
        yield
    finally:
        service.store.close()
        build_default_slack_service.cache_clear()
        build_default_service.cache_clear()
        build_default_store.cache_clear()


async def _validation_error_handler(_request: Request, _exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid JSON"},
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="ooohh",
        description="Dials that say how you feel, and boards that gather them.",
        version="0.1.0",
        lifespan=lifespan,
    )
    static_dir = Path(__file__).resolve().parent.parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
