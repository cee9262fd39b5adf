"""Canonical data contracts for the media analysis pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MediaKind(str, Enum):
    """Media family an analyzer accepts."""

    AUDIO = "audio"
    IMAGE = "image"


class PromptKind(str, Enum):
    """Which stage a prompt (and its model variants) belongs to."""

    VALIDATION = "validation"
    EXTRACTION = "extraction"


class AdmissibilityLabel(str, Enum):
    """Closed label set for the validation stage."""

    SUBJECT = "subject"
    WRONG_SUBJECT = "wrong_subject"
    SYNTHETIC_MEDIA = "synthetic_media"
    EMPTY_AMBIENT = "empty_ambient"
    UNRECOGNIZED = "unrecognized"


class MediaSample(BaseModel):
    """Decoded media owned by a single request."""

    model_config = ConfigDict(frozen=True)

    payload: bytes
    mime_type: str
    duration_seconds: Optional[float] = None
    context: Dict[str, Any] = Field(default_factory=dict)

    @property
    def size_bytes(self) -> int:
        return len(self.payload)


class ModelVariant(BaseModel):
    """One named model the fallback chain may call."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    prompt_kind: PromptKind

    @field_validator("identifier", mode="before")
    @classmethod
    def _non_empty_identifier(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("model identifier is required")
        return text


class InferencePrompt(BaseModel):
    """Prompt text plus the generation config it is sent with."""

    model_config = ConfigDict(frozen=True)

    kind: PromptKind
    text: str
    temperature: float = 0.2
    top_k: int = 20
    top_p: float = 0.8
    max_output_tokens: int = 1024

    def generation_config(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topK": self.top_k,
            "topP": self.top_p,
            "maxOutputTokens": self.max_output_tokens,
        }


class AdmissibilityVerdict(BaseModel):
    """Outcome of the validation stage; terminal when not admissible."""

    is_admissible: bool
    subject_category: str
    confidence: int = Field(default=0, ge=0, le=100)
    rejection_message: Optional[str] = None


class ClassificationVerdict(BaseModel):
    """Structured classification returned to the caller."""

    category: str
    confidence: int = Field(ge=0, le=100)
    explanation: str = ""
    recommendations: List[str] = Field(default_factory=list)
    concern_level: str
    is_positive_detection: bool
    details: Dict[str, Any] = Field(default_factory=dict)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PersistedVerdictRecord(BaseModel):
    """Row written once for an accepted positive verdict."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    caller_id: str
    analyzer: str
    created_at: datetime = Field(default_factory=_utcnow)
    duration_seconds: Optional[float] = None
    verdict: ClassificationVerdict


class AnalysisRequest(BaseModel):
    """Inbound request body for one analysis."""

    media_base64: str = ""
    duration_seconds: Optional[float] = None
    mime_type: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("mime_type", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        text = str(value or "").strip().lower()
        return text or None


class AnalysisResponse(BaseModel):
    """What the caller sees: a rejection or a (possibly negative) verdict."""

    accepted: bool
    rejection_reason: Optional[str] = None
    verdict: Optional[ClassificationVerdict] = None
    record_id: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
