"""Core contracts and shared types for the analysis pipeline."""

from .contracts import (
    AdmissibilityLabel,
    AdmissibilityVerdict,
    AnalysisRequest,
    AnalysisResponse,
    ClassificationVerdict,
    InferencePrompt,
    MediaKind,
    MediaSample,
    ModelVariant,
    PersistedVerdictRecord,
    PromptKind,
)

__all__ = [
    "AdmissibilityLabel",
    "AdmissibilityVerdict",
    "AnalysisRequest",
    "AnalysisResponse",
    "ClassificationVerdict",
    "InferencePrompt",
    "MediaKind",
    "MediaSample",
    "ModelVariant",
    "PersistedVerdictRecord",
    "PromptKind",
]
