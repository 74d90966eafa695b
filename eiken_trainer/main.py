"""FastAPI application factory."""
from __future__ import annotations

from typing import List

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from eiken_trainer.api.v1 import api_router
from eiken_trainer.config import settings
from eiken_trainer.logging_config import setup_logging
from eiken_trainer.utils.exceptions import (
    NotFoundError,
    ProgressError,
    TrainerException,
    ValidationError,
    handle_database_error,
    handle_not_found_error,
    handle_progress_error,
    handle_validation_error,
)


tags_metadata: List[dict[str, str]] = [
    {"name": "levels", "description": "Browse graded word lists and their statistics."},
    {"name": "practice", "description": "Build practice batches and record answers."},
    {"name": "admin", "description": "Maintain the word catalogue."},
]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""

    setup_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Typing practice for Eiken vocabulary with spaced repetition.",
        version="0.1.0",
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=jsonable_encoder({"detail": exc.errors(), "message": "Validation failed"}),
        )

    @app.exception_handler(TrainerException)
    async def trainer_exception_handler(request: Request, exc: TrainerException) -> JSONResponse:
        if isinstance(exc, NotFoundError):
            http_exc = handle_not_found_error(exc)
        elif isinstance(exc, ProgressError):
            http_exc = handle_progress_error(exc)
        elif isinstance(exc, ValidationError):
            http_exc = handle_validation_error(exc)
        else:
            http_exc = handle_database_error(exc)
        return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.opt(exception=exc).debug("Database error while serving {}", request.url.path)
        http_exc = handle_database_error(exc)
        return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
