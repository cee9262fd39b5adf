"""Validation stage: is this media a real instance of what we analyze?"""

from __future__ import annotations

import logging

from core import AdmissibilityVerdict, MediaSample
from intelligence.llm import FatalFailure, InferenceSuccess
from orchestrator import FallbackOrchestrator
from utils.exceptions import InferenceError

from .parsing import parse_admissibility
from .profiles import AnalyzerProfile
from .prompts import build_validation_prompt


logger = logging.getLogger(__name__)


class ValidationStage:
    """One fallback call with the subject-classification prompt."""

    def __init__(self, profile: AnalyzerProfile, orchestrator: FallbackOrchestrator) -> None:
        self.profile = profile
        self.orchestrator = orchestrator
        self.prompt = build_validation_prompt(profile.validation_template)

    async def validate(self, sample: MediaSample) -> AdmissibilityVerdict:
        outcome = await self.orchestrator.invoke(self.prompt, sample)
        if isinstance(outcome, FatalFailure) or not isinstance(outcome, InferenceSuccess):
            raise InferenceError(
                f"validation inference failed: {outcome.reason}",
                provider=self.orchestrator.client.provider,
                stage="validation",
                exhausted=bool(getattr(outcome, "exhausted", False)),
            )

        verdict = parse_admissibility(outcome.raw_text, self.profile)
        logger.info(
            f"[validation:{self.profile.name}] admissible={verdict.is_admissible} "
            f"subject={verdict.subject_category} confidence={verdict.confidence} model={outcome.model}"
        )
        return verdict
