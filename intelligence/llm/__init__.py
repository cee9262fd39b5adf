"""
LLM Module
Multimodal inference client abstraction
"""
from .base import (
    BaseInferenceClient,
    FatalFailure,
    InferenceOutcome,
    InferenceSuccess,
    RetryableFailure,
    classify_status,
)
from .gemini_llm import GeminiInferenceClient
from .factory import build_model_variants, get_inference_client

__all__ = [
    "BaseInferenceClient",
    "FatalFailure",
    "InferenceOutcome",
    "InferenceSuccess",
    "RetryableFailure",
    "classify_status",
    "GeminiInferenceClient",
    "build_model_variants",
    "get_inference_client",
]
