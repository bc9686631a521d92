"""FastAPI application factory."""
from __future__ import annotations

from typing import List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flashdeck.api.v1 import api_router
from flashdeck.config import settings
from flashdeck.utils.exceptions import FlashdeckError, UnauthorizedError, error_payload, log_error


tags_metadata: List[dict[str, str]] = [
    {"name": "srs", "description": "Build the daily study queue, review and introduce cards."},
    {"name": "progress", "description": "Read daily counters and set goal overrides."},
    {"name": "flashcards", "description": "Manage cards and batch-save accepted proposals."},
]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Spaced-repetition flashcard scheduling service.",
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
            content={
                "error": "Validation failed",
                "code": "validation_failed",
                "details": {"errors": exc.errors()},
            },
        )

    @app.exception_handler(FlashdeckError)
    async def flashdeck_exception_handler(request: Request, exc: FlashdeckError) -> JSONResponse:
        log_error(exc)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc), headers=headers)

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
