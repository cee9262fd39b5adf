"""Classification pipeline: ingress → validation → extraction → decision → persistence."""

from .decision import DecisionPolicy
from .extraction import ExtractionStage
from .ingress import IngressDecision, MediaIngress
from .parsing import VerdictParser, extract_json_object, parse_admissibility
from .persistence import PersistenceGate, PersistOutcome
from .profiles import CRY_PROFILE, DIAPER_PROFILE, PROFILES, AnalyzerProfile, get_profile
from .runtime import (
    PIPELINE_UNAVAILABLE_MESSAGE,
    AnalysisFailed,
    AnalysisPipeline,
    AnalysisRejected,
    AnalysisResult,
    AnalysisVerdict,
    build_pipeline,
)
from .validation import ValidationStage

__all__ = [
    "DecisionPolicy",
    "ExtractionStage",
    "IngressDecision",
    "MediaIngress",
    "VerdictParser",
    "extract_json_object",
    "parse_admissibility",
    "PersistenceGate",
    "PersistOutcome",
    "CRY_PROFILE",
    "DIAPER_PROFILE",
    "PROFILES",
    "AnalyzerProfile",
    "get_profile",
    "PIPELINE_UNAVAILABLE_MESSAGE",
    "AnalysisFailed",
    "AnalysisPipeline",
    "AnalysisRejected",
    "AnalysisResult",
    "AnalysisVerdict",
    "build_pipeline",
    "ValidationStage",
]
