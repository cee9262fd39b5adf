"""Decision policy applied to every parsed verdict."""

from __future__ import annotations

import logging

from core import ClassificationVerdict

from .profiles import AnalyzerProfile


logger = logging.getLogger(__name__)

DEFAULT_MIN_POSITIVE_CONFIDENCE = 50


class DecisionPolicy:
    """
    ``confidence < min_positive_confidence`` on a positive category becomes
    the primary sentinel with the profile's fixed retry message.
    """

    def __init__(self, profile: AnalyzerProfile, *, min_positive_confidence: int = DEFAULT_MIN_POSITIVE_CONFIDENCE) -> None:
        self.profile = profile
        self.min_positive_confidence = int(max(0, min(100, min_positive_confidence)))

    def decide(self, verdict: ClassificationVerdict) -> ClassificationVerdict:
        positive = self.profile.is_positive(verdict.category)
        if positive != verdict.is_positive_detection:
            verdict = verdict.model_copy(update={"is_positive_detection": positive})

        if not verdict.is_positive_detection or verdict.confidence >= self.min_positive_confidence:
            return verdict

        logger.info(
            f"[decision:{self.profile.name}] downgrading {verdict.category} "
            f"(confidence {verdict.confidence} < {self.min_positive_confidence})"
        )
        details = self.profile.parse_details({}) if verdict.details else {}
        return verdict.model_copy(
            update={
                "category": self.profile.primary_sentinel,
                "is_positive_detection": False,
                "explanation": self.profile.ambiguous_explanation,
                "recommendations": list(self.profile.ambiguous_recommendations),
                "concern_level": self.profile.lowest_concern,
                "details": details,
            }
        )

    @staticmethod
    def should_persist(verdict: ClassificationVerdict) -> bool:
        return bool(verdict.is_positive_detection)
