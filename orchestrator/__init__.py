"""Model fallback orchestration for inference calls."""

from .fallback import (
    FallbackAttempt,
    FallbackOrchestrator,
    FallbackState,
    FallbackTrace,
)

__all__ = [
    "FallbackAttempt",
    "FallbackOrchestrator",
    "FallbackState",
    "FallbackTrace",
]
