"""Shared fakes for pipeline tests."""

from __future__ import annotations

import base64
import json
from typing import Dict, List, Tuple

import pytest

from core import AnalysisRequest, PromptKind
from intelligence.llm import BaseInferenceClient, InferenceSuccess, build_model_variants


class ScriptedInferenceClient(BaseInferenceClient):
    """Returns queued outcomes per prompt kind and records every call in order."""

    def __init__(self, validation=None, extraction=None) -> None:
        super().__init__(timeout=1.0)
        self._scripts: Dict[PromptKind, List] = {
            PromptKind.VALIDATION: list(validation or []),
            PromptKind.EXTRACTION: list(extraction or []),
        }
        self.calls: List[Tuple[PromptKind, str]] = []
        self.prompts: List[str] = []

    @property
    def provider(self) -> str:
        return "scripted"

    async def agenerate(self, variant, sample, prompt):
        self.calls.append((prompt.kind, variant.identifier))
        self.prompts.append(prompt.text)
        queue = self._scripts[prompt.kind]
        if not queue:
            raise AssertionError(f"unexpected {prompt.kind.value} call to {variant.identifier}")
        return queue.pop(0)

    def calls_for(self, kind: PromptKind) -> List[str]:
        return [model for call_kind, model in self.calls if call_kind == kind]


def ok(payload, model: str = "m") -> InferenceSuccess:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return InferenceSuccess(raw_text=text, model=model)


@pytest.fixture
def variants():
    return build_model_variants(
        validation_models=["val-a", "val-b", "val-c"],
        extraction_models=["ext-a", "ext-b", "ext-c"],
    )


@pytest.fixture
def audio_request() -> AnalysisRequest:
    return AnalysisRequest(
        media_base64=base64.b64encode(b"\x1a\x45\xdf\xa3fake-webm-audio").decode("ascii"),
        duration_seconds=6.0,
    )


@pytest.fixture
def image_request() -> AnalysisRequest:
    return AnalysisRequest(
        media_base64=base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg").decode("ascii"),
    )
