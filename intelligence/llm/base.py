"""
Base inference client
Typed outcomes + abstract client for single multimodal calls
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from core import InferencePrompt, MediaSample, ModelVariant


@dataclass(frozen=True)
class InferenceSuccess:
    """Raw text produced by one model variant"""
    raw_text: str
    model: str


@dataclass(frozen=True)
class RetryableFailure:
    """Transient provider condition: rate limit, 5xx, timeout, transport error"""
    reason: str
    model: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class FatalFailure:
    """Request-shape or auth problem that another variant cannot fix"""
    reason: str
    model: Optional[str] = None
    status_code: Optional[int] = None
    exhausted: bool = False


InferenceOutcome = Union[InferenceSuccess, RetryableFailure, FatalFailure]


def classify_status(status_code: int) -> str:
    """Map an HTTP status to ``ok`` / ``retryable`` / ``fatal``."""
    if 200 <= status_code < 300:
        return "ok"
    if status_code == 429 or status_code >= 500:
        return "retryable"
    return "fatal"


class BaseInferenceClient(ABC):
    """
    Inference client base class

    Implementations issue exactly one request per call and never raise for
    provider conditions; every failure comes back as a typed outcome.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    @property
    @abstractmethod
    def provider(self) -> str:
        """Provider name"""
        pass

    @abstractmethod
    async def agenerate(
        self,
        variant: ModelVariant,
        sample: MediaSample,
        prompt: InferencePrompt,
    ) -> InferenceOutcome:
        """
        Send one media sample + prompt to one model variant

        Args:
            variant: model to call
            sample: decoded media sent inline
            prompt: prompt text and generation config

        Returns:
            InferenceSuccess, RetryableFailure or FatalFailure
        """
        pass

    async def aclose(self) -> None:
        """Release pooled connections (no-op by default)."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider}, timeout={self.timeout})"
