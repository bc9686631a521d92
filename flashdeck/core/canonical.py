"""Text canonicalization used to detect duplicate card content."""
from __future__ import annotations

import hashlib
import re
import unicodedata
from typing import Callable

Canonicalizer = Callable[[str], str]

_WHITESPACE = re.compile(r"\s+")


def canonicalize(text: str) -> str:
    """Normalize unicode form and whitespace; case is left to the caller."""

    if not text:
        return ""
    text = unicodedata.normalize("NFKC", text)
    return _WHITESPACE.sub(" ", text.strip())


def content_key(front_canonical: str, back_canonical: str) -> str:
    """Case-insensitive duplicate key for a front/back pair."""

    return f"{front_canonical.lower()}|{back_canonical.lower()}"


def content_hash(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()
