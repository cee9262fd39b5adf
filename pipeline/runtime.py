"""Composes ingress, validation, extraction, decision and persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List, Optional, Sequence, Union

from core import AnalysisRequest, AnalysisResponse, ClassificationVerdict, ModelVariant
from intelligence.llm import BaseInferenceClient
from orchestrator import FallbackOrchestrator
from storage import BaseResultSink
from utils.exceptions import IdentityError, InferenceError

from .decision import DEFAULT_MIN_POSITIVE_CONFIDENCE, DecisionPolicy
from .extraction import ExtractionStage
from .ingress import MediaIngress
from .persistence import PersistenceGate
from .profiles import AnalyzerProfile
from .validation import ValidationStage


logger = logging.getLogger(__name__)

PIPELINE_UNAVAILABLE_MESSAGE = "analysis pipeline unavailable"


@dataclass(frozen=True)
class AnalysisRejected:
    """Ingress or validation refused the sample; a normal outcome."""

    reason: str

    def to_response(self) -> AnalysisResponse:
        return AnalysisResponse(accepted=False, rejection_reason=self.reason)


@dataclass(frozen=True)
class AnalysisVerdict:
    """A verdict (possibly negative or downgraded) for an admitted sample."""

    verdict: ClassificationVerdict
    record_id: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_response(self) -> AnalysisResponse:
        return AnalysisResponse(
            accepted=True,
            verdict=self.verdict,
            record_id=self.record_id,
            warnings=list(self.warnings),
        )


@dataclass(frozen=True)
class AnalysisFailed:
    """The provider could not produce an answer."""

    cause: str

    def to_response(self) -> AnalysisResponse:
        return AnalysisResponse(accepted=False, rejection_reason=PIPELINE_UNAVAILABLE_MESSAGE)


AnalysisResult = Union[AnalysisRejected, AnalysisVerdict, AnalysisFailed]


class AnalysisPipeline:
    """One analyzer instance; safe to share across concurrent requests."""

    def __init__(
        self,
        profile: AnalyzerProfile,
        orchestrator: FallbackOrchestrator,
        sink: BaseResultSink,
        *,
        min_duration_seconds: float = 3.0,
        max_media_bytes: int = 15 * 1024 * 1024,
        min_positive_confidence: int = DEFAULT_MIN_POSITIVE_CONFIDENCE,
        language: str = "English",
    ) -> None:
        self.profile = profile
        self.ingress = MediaIngress(
            profile,
            min_duration_seconds=min_duration_seconds,
            max_media_bytes=max_media_bytes,
        )
        self.validation = ValidationStage(profile, orchestrator)
        self.extraction = ExtractionStage(profile, orchestrator, language=language)
        self.policy = DecisionPolicy(profile, min_positive_confidence=min_positive_confidence)
        self.gate = PersistenceGate(profile, sink)

    async def analyze(self, request: AnalysisRequest, caller_id: str) -> AnalysisResult:
        caller_id = str(caller_id or "").strip()
        if not caller_id:
            raise IdentityError("caller identity is required")

        admitted = self.ingress.admit(request)
        if not admitted.admitted:
            return AnalysisRejected(reason=admitted.rejection or "")
        sample = admitted.sample

        try:
            admissibility = await self.validation.validate(sample)
            if not admissibility.is_admissible:
                return AnalysisRejected(reason=admissibility.rejection_message or self.profile.unverified_message)

            raw_verdict = await self.extraction.extract(sample)
        except InferenceError as exc:
            logger.error(f"[pipeline:{self.profile.name}] {exc}")
            return AnalysisFailed(cause=str(exc))

        verdict = self.policy.decide(raw_verdict)
        warnings: List[str] = []
        record_id = None
        if self.policy.should_persist(verdict):
            outcome = await self.gate.maybe_persist(caller_id, verdict, sample)
            record_id = outcome.record_id
            if outcome.warning:
                warnings.append(outcome.warning)

        return AnalysisVerdict(verdict=verdict, record_id=record_id, warnings=warnings)


def build_pipeline(
    profile: AnalyzerProfile,
    *,
    client: BaseInferenceClient,
    variants: Sequence[ModelVariant],
    sink: BaseResultSink,
    settings=None,
) -> AnalysisPipeline:
    """Wire one analyzer from explicit collaborators plus analyzer settings."""
    if settings is None:
        from config import get_analyzer_settings

        settings = get_analyzer_settings()
    return AnalysisPipeline(
        profile,
        FallbackOrchestrator(client, variants),
        sink,
        min_duration_seconds=settings.min_audio_duration_seconds,
        max_media_bytes=settings.max_media_bytes,
        min_positive_confidence=settings.min_positive_confidence,
        language=settings.response_language,
    )
