"""Domain core: clock, canonicalization and scheduling policy."""
