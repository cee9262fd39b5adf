"""Extraction stage: structured classification of an admitted sample."""

from __future__ import annotations

import logging

from core import ClassificationVerdict, MediaSample
from intelligence.llm import FatalFailure, InferenceSuccess
from orchestrator import FallbackOrchestrator
from utils.exceptions import InferenceError

from .parsing import VerdictParser
from .profiles import AnalyzerProfile
from .prompts import build_extraction_prompt


logger = logging.getLogger(__name__)


class ExtractionStage:
    """One fallback call with the domain prompt, parsed without ever raising on shape."""

    def __init__(
        self,
        profile: AnalyzerProfile,
        orchestrator: FallbackOrchestrator,
        *,
        language: str = "English",
    ) -> None:
        self.profile = profile
        self.orchestrator = orchestrator
        self.language = language
        self.parser = VerdictParser(profile)

    async def extract(self, sample: MediaSample) -> ClassificationVerdict:
        prompt = build_extraction_prompt(
            self.profile.extraction_template,
            language=self.language,
            context=sample.context,
            temperature=self.profile.extraction_temperature,
            top_k=self.profile.extraction_top_k,
            top_p=self.profile.extraction_top_p,
        )
        outcome = await self.orchestrator.invoke(prompt, sample)
        if isinstance(outcome, FatalFailure) or not isinstance(outcome, InferenceSuccess):
            raise InferenceError(
                f"extraction inference failed: {outcome.reason}",
                provider=self.orchestrator.client.provider,
                stage="extraction",
                exhausted=bool(getattr(outcome, "exhausted", False)),
            )

        result = self.parser.parse(outcome.raw_text)
        verdict = result.verdict
        logger.info(
            f"[extraction:{self.profile.name}] category={verdict.category} confidence={verdict.confidence} "
            f"positive={verdict.is_positive_detection} recovered={result.recovered} model={outcome.model}"
        )
        return verdict
