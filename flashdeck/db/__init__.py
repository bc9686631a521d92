"""Persistence layer: models, engine and session helpers."""
