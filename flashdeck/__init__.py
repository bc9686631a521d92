"""Spaced-repetition flashcard scheduling service."""
