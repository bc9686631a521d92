"""API endpoint modules for v1."""

from flashdeck.api.v1.endpoints import flashcards, progress, srs

__all__ = ["flashcards", "progress", "srs"]
