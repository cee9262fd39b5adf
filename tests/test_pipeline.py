from __future__ import annotations

import asyncio
import base64

import pytest

from config.settings import AnalyzerSettings
from conftest import ScriptedInferenceClient, ok
from core import AdmissibilityLabel, AnalysisRequest, PromptKind
from intelligence.llm import FatalFailure, RetryableFailure
from orchestrator import FallbackOrchestrator
from pipeline import (
    CRY_PROFILE,
    DIAPER_PROFILE,
    PIPELINE_UNAVAILABLE_MESSAGE,
    AnalysisFailed,
    AnalysisPipeline,
    AnalysisRejected,
    AnalysisVerdict,
    build_pipeline,
)
from pipeline.persistence import PERSIST_FAILED_WARNING
from storage import BaseResultSink, InMemoryResultSink
from utils.exceptions import IdentityError, StorageError


SUBJECT = {"label": "subject", "subject": "infant crying", "confidence": 93}


class FailingSink(BaseResultSink):
    def __init__(self) -> None:
        self.attempts = 0

    @property
    def name(self) -> str:
        return "failing"

    def insert(self, table, row):
        self.attempts += 1
        raise StorageError("insert refused", {"table": table})


def _pipeline(client, variants, sink=None, profile=CRY_PROFILE, **kwargs) -> AnalysisPipeline:
    return AnalysisPipeline(profile, FallbackOrchestrator(client, variants), sink or InMemoryResultSink(), **kwargs)


@pytest.mark.asyncio
async def test_short_clip_rejected_before_any_inference(variants) -> None:
    client = ScriptedInferenceClient()
    sink = InMemoryResultSink()
    request = AnalysisRequest(media_base64=base64.b64encode(b"abc").decode("ascii"), duration_seconds=1.5)

    result = await _pipeline(client, variants, sink).analyze(request, "user-1")

    assert isinstance(result, AnalysisRejected)
    assert "too short" in result.reason.lower()
    assert client.calls == []
    assert sink.count() == 0


@pytest.mark.asyncio
async def test_synthetic_media_rejected_without_extraction(variants, audio_request) -> None:
    client = ScriptedInferenceClient(validation=[ok({"label": "synthetic_media", "confidence": 90})])
    sink = InMemoryResultSink()

    result = await _pipeline(client, variants, sink).analyze(audio_request, "user-1")

    assert isinstance(result, AnalysisRejected)
    assert result.reason == CRY_PROFILE.rejection_messages[AdmissibilityLabel.SYNTHETIC_MEDIA]
    assert client.calls_for(PromptKind.EXTRACTION) == []
    assert sink.count() == 0
    assert result.to_response().accepted is False


@pytest.mark.asyncio
async def test_confident_cry_is_returned_and_persisted_once(variants, audio_request) -> None:
    client = ScriptedInferenceClient(
        validation=[ok(SUBJECT)],
        extraction=[
            ok(
                {
                    "cryType": "hungry",
                    "confidence": 82,
                    "explanation": "Rhythmic, rising cry.",
                    "recommendations": ["Offer a feed"],
                    "urgency": "medium",
                }
            )
        ],
    )
    sink = InMemoryResultSink()

    result = await _pipeline(client, variants, sink).analyze(audio_request, "user-1")

    assert isinstance(result, AnalysisVerdict)
    assert result.verdict.category == "hungry"
    assert result.verdict.confidence == 82
    assert result.verdict.is_positive_detection is True
    assert result.warnings == []

    rows = sink.rows("cry_analyses")
    assert len(rows) == 1
    row = rows[0]
    assert row["id"] == result.record_id
    assert row["user_id"] == "user-1"
    assert row["cry_type"] == "hungry"
    assert row["confidence_score"] == 82
    assert row["audio_duration_seconds"] == 6.0
    assert row["analysis_result"]["category"] == "hungry"


@pytest.mark.asyncio
async def test_low_confidence_detection_is_downgraded_and_not_persisted(variants, audio_request) -> None:
    client = ScriptedInferenceClient(
        validation=[ok(SUBJECT)],
        extraction=[ok({"category": "pain", "confidence": 35, "urgency": "high"})],
    )
    sink = InMemoryResultSink()

    result = await _pipeline(client, variants, sink).analyze(audio_request, "user-1")

    assert isinstance(result, AnalysisVerdict)
    assert result.verdict.category == "no_cry_detected"
    assert result.verdict.is_positive_detection is False
    assert result.verdict.explanation == CRY_PROFILE.ambiguous_explanation
    assert result.record_id is None
    assert sink.count() == 0


@pytest.mark.asyncio
async def test_malformed_extraction_output_yields_default_verdict(variants, audio_request) -> None:
    client = ScriptedInferenceClient(
        validation=[ok(SUBJECT)],
        extraction=[ok("I believe the baby is probably hungry but I am not sure.")],
    )
    sink = InMemoryResultSink()

    result = await _pipeline(client, variants, sink).analyze(audio_request, "user-1")

    assert isinstance(result, AnalysisVerdict)
    assert result.verdict == CRY_PROFILE.default_verdict()
    assert sink.count() == 0


@pytest.mark.asyncio
async def test_fatal_validation_failure_is_pipeline_failure(variants, audio_request) -> None:
    client = ScriptedInferenceClient(validation=[FatalFailure(reason="http 401", model="val-a", status_code=401)])
    sink = InMemoryResultSink()

    result = await _pipeline(client, variants, sink).analyze(audio_request, "user-1")

    assert isinstance(result, AnalysisFailed)
    assert client.calls == [(PromptKind.VALIDATION, "val-a")]
    response = result.to_response()
    assert response.accepted is False
    assert response.rejection_reason == PIPELINE_UNAVAILABLE_MESSAGE
    assert sink.count() == 0


@pytest.mark.asyncio
async def test_exhausted_extraction_is_pipeline_failure(variants, audio_request) -> None:
    client = ScriptedInferenceClient(
        validation=[RetryableFailure(reason="rate limited", model="val-a", status_code=429), ok(SUBJECT, model="val-b")],
        extraction=[RetryableFailure(reason="http 503", model=name, status_code=503) for name in ("ext-a", "ext-b", "ext-c")],
    )
    sink = InMemoryResultSink()

    result = await _pipeline(client, variants, sink).analyze(audio_request, "user-1")

    assert isinstance(result, AnalysisFailed)
    assert "exhausted" in result.cause
    assert client.calls_for(PromptKind.VALIDATION) == ["val-a", "val-b"]
    assert client.calls_for(PromptKind.EXTRACTION) == ["ext-a", "ext-b", "ext-c"]
    assert sink.count() == 0


@pytest.mark.asyncio
async def test_sink_failure_keeps_verdict_and_adds_warning(variants, audio_request) -> None:
    client = ScriptedInferenceClient(
        validation=[ok(SUBJECT)],
        extraction=[ok({"category": "tired", "confidence": 77, "urgency": "low"})],
    )
    sink = FailingSink()

    result = await _pipeline(client, variants, sink).analyze(audio_request, "user-1")

    assert isinstance(result, AnalysisVerdict)
    assert result.verdict.category == "tired"
    assert result.record_id is None
    assert result.warnings == [PERSIST_FAILED_WARNING]
    assert sink.attempts == 1


@pytest.mark.asyncio
async def test_missing_caller_is_identity_error(variants, audio_request) -> None:
    client = ScriptedInferenceClient()
    with pytest.raises(IdentityError):
        await _pipeline(client, variants).analyze(audio_request, "  ")
    assert client.calls == []


@pytest.mark.asyncio
async def test_diaper_verdict_persists_diaper_row_and_uses_context(variants, image_request) -> None:
    request = image_request.model_copy(update={"context": {"baby_age_months": 3, "feeding_type": "breast"}})
    client = ScriptedInferenceClient(
        validation=[ok({"label": "subject", "subject": "used diaper", "confidence": 90})],
        extraction=[
            ok(
                {
                    "colorDetected": "yellow",
                    "confidence": 88,
                    "consistency": "normal",
                    "concernLevel": "normal",
                    "isNormal": True,
                    "explanation": "Mustard yellow is typical for breastfed babies.",
                }
            )
        ],
    )
    sink = InMemoryResultSink()

    result = await _pipeline(client, variants, sink, profile=DIAPER_PROFILE).analyze(request, "user-2")

    assert isinstance(result, AnalysisVerdict)
    assert result.verdict.details["is_normal"] is True
    rows = sink.rows("poop_analyses")
    assert len(rows) == 1
    assert rows[0]["color_detected"] == "yellow"
    assert rows[0]["is_normal"] is True
    assert rows[0]["concern_level"] == "normal"
    assert "baby age months: 3" in client.prompts[-1]
    assert "feeding type: breast" in client.prompts[-1]


@pytest.mark.asyncio
async def test_build_pipeline_applies_analyzer_settings(variants, audio_request) -> None:
    client = ScriptedInferenceClient(
        validation=[ok(SUBJECT)],
        extraction=[ok({"category": "colic", "confidence": 65, "urgency": "medium"})],
    )
    sink = InMemoryResultSink()
    settings = AnalyzerSettings(min_positive_confidence=70, min_audio_duration_seconds=5.0)

    pipeline = build_pipeline(CRY_PROFILE, client=client, variants=variants, sink=sink, settings=settings)
    result = await pipeline.analyze(audio_request, "user-1")

    assert pipeline.ingress.min_duration_seconds == 5.0
    assert result.verdict.category == "no_cry_detected"
    assert sink.count() == 0


@pytest.mark.asyncio
async def test_concurrent_requests_do_not_share_state(variants, audio_request) -> None:
    payloads = [
        {"category": "hungry", "confidence": 90, "urgency": "medium"},
        {"category": "tired", "confidence": 80, "urgency": "low"},
    ]
    client = ScriptedInferenceClient(
        validation=[ok(SUBJECT), ok(SUBJECT)],
        extraction=[ok(payload) for payload in payloads],
    )
    sink = InMemoryResultSink()
    pipeline = _pipeline(client, variants, sink)

    results = await asyncio.gather(
        pipeline.analyze(audio_request, "user-a"),
        pipeline.analyze(audio_request, "user-b"),
    )

    assert sorted(result.verdict.category for result in results) == ["hungry", "tired"]
    assert sorted(row["user_id"] for row in sink.rows("cry_analyses")) == ["user-a", "user-b"]


@pytest.mark.asyncio
async def test_nan_duration_never_reaches_inference(variants) -> None:
    client = ScriptedInferenceClient()
    request = AnalysisRequest(media_base64=base64.b64encode(b"audio").decode("ascii"), duration_seconds=float("nan"))

    result = await _pipeline(client, variants).analyze(request, "user-1")

    assert isinstance(result, AnalysisRejected)
    assert client.calls == []
