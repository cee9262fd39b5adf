"""Analyzer profiles: the per-domain data the shared pipeline runs on."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple

from core import AdmissibilityLabel, ClassificationVerdict, MediaKind, PersistedVerdictRecord

from .prompts import (
    CRY_EXTRACTION_PROMPT,
    CRY_VALIDATION_PROMPT,
    DIAPER_EXTRACTION_PROMPT,
    DIAPER_VALIDATION_PROMPT,
)


DetailsParser = Callable[[Mapping[str, Any]], Dict[str, Any]]
RowBuilder = Callable[[PersistedVerdictRecord], Dict[str, Any]]


@dataclass(frozen=True)
class AnalyzerProfile:
    """Read-only description of one analyzer instance."""

    name: str
    media_kind: MediaKind
    default_mime_type: str
    categories: Tuple[str, ...]
    sentinel_categories: Tuple[str, ...]
    concern_levels: Tuple[str, ...]
    validation_template: str
    extraction_template: str
    rejection_messages: Mapping[AdmissibilityLabel, str]
    unverified_message: str
    default_explanation: str
    default_recommendations: Tuple[str, ...]
    ambiguous_explanation: str
    ambiguous_recommendations: Tuple[str, ...]
    table: str
    row_builder: RowBuilder
    category_keys: Tuple[str, ...] = ("category",)
    category_aliases: Mapping[str, str] = field(default_factory=dict)
    concern_keys: Tuple[str, ...] = ("concern_level", "concernLevel", "urgency")
    details_parser: Optional[DetailsParser] = None
    urgent_categories: FrozenSet[str] = field(default_factory=frozenset)
    normal_categories: FrozenSet[str] = field(default_factory=frozenset)
    too_short_message: str = "Recording too short."
    extraction_temperature: float = 0.2
    extraction_top_k: int = 20
    extraction_top_p: float = 0.8

    @property
    def primary_sentinel(self) -> str:
        return self.sentinel_categories[0]

    @property
    def lowest_concern(self) -> str:
        return self.concern_levels[0]

    @property
    def highest_concern(self) -> str:
        return self.concern_levels[-1]

    @property
    def requires_duration(self) -> bool:
        return self.media_kind == MediaKind.AUDIO

    def canonical_category(self, category: str) -> str:
        return self.category_aliases.get(category, category)

    def known_category(self, category: str) -> bool:
        return category in self.categories or category in self.sentinel_categories

    def is_positive(self, category: str) -> bool:
        return category not in self.sentinel_categories

    def rejection_message(self, label: AdmissibilityLabel) -> str:
        return self.rejection_messages.get(label, self.unverified_message)

    def default_verdict(self) -> ClassificationVerdict:
        """Conservative verdict used when model output cannot be parsed."""
        return ClassificationVerdict(
            category=self.primary_sentinel,
            confidence=50,
            explanation=self.default_explanation,
            recommendations=list(self.default_recommendations),
            concern_level=self.lowest_concern,
            is_positive_detection=False,
            details=self.parse_details({}),
        )

    def parse_details(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        if self.details_parser is None:
            return {}
        return self.details_parser(data)

    def build_row(self, record: PersistedVerdictRecord) -> Dict[str, Any]:
        return self.row_builder(record)

    def with_table(self, table: Optional[str]) -> "AnalyzerProfile":
        text = str(table or "").strip()
        return replace(self, table=text) if text else self


def _analysis_payload(verdict: ClassificationVerdict) -> Dict[str, Any]:
    return verdict.model_dump(mode="json")


def cry_row(record: PersistedVerdictRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "user_id": record.caller_id,
        "created_at": record.created_at.isoformat(),
        "audio_duration_seconds": record.duration_seconds,
        "analysis_result": _analysis_payload(record.verdict),
        "cry_type": record.verdict.category,
        "confidence_score": record.verdict.confidence,
    }


def diaper_row(record: PersistedVerdictRecord) -> Dict[str, Any]:
    details = record.verdict.details or {}
    return {
        "id": record.id,
        "user_id": record.caller_id,
        "created_at": record.created_at.isoformat(),
        "analysis_result": _analysis_payload(record.verdict),
        "color_detected": record.verdict.category,
        "is_normal": bool(details.get("is_normal", False)),
        "concern_level": record.verdict.concern_level,
    }


DIAPER_NORMAL_COLORS = frozenset({"brown", "yellow", "green"})
_CONSISTENCIES = ("normal", "watery", "hard", "foamy")
_DOCTOR_URGENCIES = ("none", "soon", "today", "immediate")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes"}


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def parse_diaper_details(data: Mapping[str, Any]) -> Dict[str, Any]:
    consistency = str(_pick(data, "consistency") or "normal").strip().lower()
    urgency = str(_pick(data, "doctor_urgency", "doctorUrgency") or "none").strip().lower()
    return {
        "consistency": consistency if consistency in _CONSISTENCIES else "normal",
        "should_see_doctor": _as_bool(_pick(data, "should_see_doctor", "shouldSeeDoctor")),
        "doctor_urgency": urgency if urgency in _DOCTOR_URGENCIES else "none",
        "is_normal": _as_bool(_pick(data, "is_normal", "isNormal")),
    }


CRY_PROFILE = AnalyzerProfile(
    name="cry",
    media_kind=MediaKind.AUDIO,
    default_mime_type="audio/webm",
    categories=("hungry", "tired", "pain", "discomfort", "colic", "attention", "overstimulated", "sick"),
    sentinel_categories=("no_cry_detected", "false_positive"),
    concern_levels=("low", "medium", "high"),
    validation_template=CRY_VALIDATION_PROMPT,
    extraction_template=CRY_EXTRACTION_PROMPT,
    rejection_messages={
        AdmissibilityLabel.WRONG_SUBJECT: "This recording does not sound like a baby crying. Please record your baby's cry.",
        AdmissibilityLabel.SYNTHETIC_MEDIA: "This cry seems to come from a TV, phone or another recording. Please record your baby directly.",
        AdmissibilityLabel.EMPTY_AMBIENT: "No crying was heard, only silence or background noise. Move closer to your baby and try again.",
        AdmissibilityLabel.UNRECOGNIZED: "The recording could not be recognized. Please try again in a quieter place.",
    },
    unverified_message="We could not verify that this recording contains a baby's cry. Please try again.",
    too_short_message="Recording too short: please record at least {seconds:g} seconds of crying.",
    default_explanation="The cry was analyzed, but the exact reason could not be determined.",
    default_recommendations=("Check on your baby", "Try feeding", "Check the diaper"),
    ambiguous_explanation="The result was ambiguous. Please retry with a closer, clearer recording of the cry.",
    ambiguous_recommendations=("Hold the phone closer to your baby", "Record in a quieter room for at least 5 seconds"),
    table="cry_analyses",
    row_builder=cry_row,
    category_keys=("category", "cryType", "cry_type"),
    concern_keys=("concern_level", "urgency", "concernLevel"),
)


DIAPER_PROFILE = AnalyzerProfile(
    name="diaper",
    media_kind=MediaKind.IMAGE,
    default_mime_type="image/jpeg",
    categories=("brown", "yellow", "green", "black", "red", "pale", "watery"),
    sentinel_categories=("no_stool_detected", "unclear_image"),
    concern_levels=("normal", "attention", "warning", "urgent"),
    validation_template=DIAPER_VALIDATION_PROMPT,
    extraction_template=DIAPER_EXTRACTION_PROMPT,
    rejection_messages={
        AdmissibilityLabel.WRONG_SUBJECT: "This image is not a baby diaper. Please choose a photo of a used diaper.",
        AdmissibilityLabel.SYNTHETIC_MEDIA: "This looks like a screenshot or a photo of a screen. Please take a photo of the diaper itself.",
        AdmissibilityLabel.EMPTY_AMBIENT: "The photo is blank or too dark. Please take a clear photo in good light.",
        AdmissibilityLabel.UNRECOGNIZED: "The image could not be recognized. Please take another photo.",
    },
    unverified_message="We could not verify that this photo shows a baby diaper. Please try another photo.",
    default_explanation="The photo was analyzed. Please try taking a clearer photo.",
    default_recommendations=(
        "Keep monitoring your baby's general condition",
        "Contact a doctor if anything worries you",
    ),
    ambiguous_explanation="The result was ambiguous. Please retry with a closer, clearer photo in good light.",
    ambiguous_recommendations=("Photograph the diaper from directly above", "Use daylight and avoid flash glare"),
    table="poop_analyses",
    row_builder=diaper_row,
    category_keys=("category", "colorDetected", "color_detected", "color"),
    category_aliases={
        "white": "pale",
        "clay": "pale",
        "grey": "pale",
        "gray": "pale",
        "mustard": "yellow",
        "bloody": "red",
        "blood": "red",
        "foamy": "watery",
        "green_yellow": "green",
        "yellow_green": "green",
    },
    concern_keys=("concern_level", "concernLevel", "urgency"),
    details_parser=parse_diaper_details,
    urgent_categories=frozenset({"black", "red", "pale"}),
    normal_categories=DIAPER_NORMAL_COLORS,
    extraction_temperature=0.1,
    extraction_top_k=10,
    extraction_top_p=0.7,
)


PROFILES: Dict[str, AnalyzerProfile] = {
    CRY_PROFILE.name: CRY_PROFILE,
    DIAPER_PROFILE.name: DIAPER_PROFILE,
}


def get_profile(name: str) -> AnalyzerProfile:
    key = str(name or "").strip().lower()
    if key not in PROFILES:
        raise KeyError(f"unknown analyzer: {name}")
    return PROFILES[key]
