"""
Google Gemini inference client
Calls the generateContent REST endpoint with inline media
"""
from typing import Any, Dict, Optional
import base64
import logging

import httpx

from core import InferencePrompt, MediaSample, ModelVariant

from .base import (
    BaseInferenceClient,
    FatalFailure,
    InferenceOutcome,
    InferenceSuccess,
    RetryableFailure,
    classify_status,
)


logger = logging.getLogger(__name__)


class GeminiInferenceClient(BaseInferenceClient):
    """
    Gemini REST client

    Supported models include:
    - gemini-2.0-flash
    - gemini-2.5-flash
    - gemini-2.5-pro
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: str = "https://generativelanguage.googleapis.com",
        api_version: str = "v1beta",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout)
        self.api_key = str(api_key or "").strip()
        self.base_url = str(base_url or "").strip().rstrip("/")
        self.api_version = str(api_version or "v1beta").strip().strip("/")
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def provider(self) -> str:
        return "gemini"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    def _endpoint(self, model: str) -> str:
        return f"{self.base_url}/{self.api_version}/models/{model}:generateContent"

    @staticmethod
    def _build_body(sample: MediaSample, prompt: InferencePrompt) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {
                            "inlineData": {
                                "mimeType": sample.mime_type,
                                "data": base64.b64encode(sample.payload).decode("ascii"),
                            }
                        },
                        {"text": prompt.text},
                    ]
                }
            ],
            "generationConfig": prompt.generation_config(),
        }

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        candidates = payload.get("candidates") or []
        if not candidates:
            return ""
        parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
        return "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict))

    async def agenerate(
        self,
        variant: ModelVariant,
        sample: MediaSample,
        prompt: InferencePrompt,
    ) -> InferenceOutcome:
        model = variant.identifier
        if not self.api_key:
            return FatalFailure(reason="gemini api key missing", model=model)

        try:
            response = await self._get_client().post(
                self._endpoint(model),
                params={"key": self.api_key},
                json=self._build_body(sample, prompt),
                timeout=self.timeout,
            )
        except httpx.TimeoutException:
            return RetryableFailure(reason=f"{model} timeout", model=model)
        except httpx.RequestError as exc:
            return RetryableFailure(reason=f"{model} request failed: {exc}", model=model)

        status = classify_status(response.status_code)
        if status == "retryable":
            reason = "rate limited" if response.status_code == 429 else f"http {response.status_code}"
            return RetryableFailure(reason=f"{model} {reason}", model=model, status_code=response.status_code)
        if status == "fatal":
            logger.error(f"[gemini] {model} http {response.status_code}: {response.text[:200]}")
            return FatalFailure(
                reason=f"{model} http {response.status_code}",
                model=model,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError:
            return RetryableFailure(reason=f"{model} returned undecodable body", model=model, status_code=response.status_code)

        if not isinstance(payload, dict):
            payload = {}
        return InferenceSuccess(raw_text=self._extract_text(payload), model=model)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
