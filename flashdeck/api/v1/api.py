"""API router for version 1."""
from fastapi import APIRouter

from flashdeck.api.v1.endpoints import flashcards, progress, srs


api_router = APIRouter()
api_router.include_router(srs.router)
api_router.include_router(progress.router)
api_router.include_router(flashcards.router)
