from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import SERVER_ERROR_MESSAGE, router
from datastore.readings import build_default_store
from logging_config import configure_logging
from services.estimator import build_default_estimator
from settings import get_settings

logger = logging.getLogger(__name__)

MISSING_PARAMETERS_MESSAGE = "All parameters are required"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    estimator = build_default_estimator()
    try:
        yield
    finally:
        await estimator.close()
        build_default_estimator.cache_clear()
        build_default_store.cache_clear()


def _is_absent(error: dict) -> bool:
    return error.get("type") == "missing" or ("input" in error and error["input"] is None)


def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    missing = [_field_name(error["loc"]) for error in errors if _is_absent(error)]
    if missing:
        message = f"{MISSING_PARAMETERS_MESSAGE}: {', '.join(missing)}"
    else:
        invalid = ", ".join(
            f"{_field_name(error['loc'])} ({error.get('msg', 'invalid')})" for error in errors
        )
        message = f"Invalid parameters: {invalid}"
    logger.warning(
        "Rejected %s %s: %s",
        request.method,
        request.url.path,
        message,
        extra={"status": status.HTTP_400_BAD_REQUEST},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        extra={"error_type": type(exc).__name__},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": SERVER_ERROR_MESSAGE},
    )


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(
        title="Heat Recovery Estimator",
        description="Energy recovery cost estimates from the latest device telemetry.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(router)
    return app


def run() -> None:
    settings = get_settings()
    logger.info("Starting server on port %s", settings.port)
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port, log_config=None)


app = create_app()
