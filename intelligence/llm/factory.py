"""
Inference client factory
Builds the configured provider client and its model variant lists
"""
from typing import List, Optional
import logging

from core import ModelVariant, PromptKind

from .base import BaseInferenceClient
from .gemini_llm import GeminiInferenceClient


logger = logging.getLogger(__name__)


def get_inference_client(provider: str = "gemini", **kwargs) -> BaseInferenceClient:
    """
    Build an inference client from settings

    Example:
        client = get_inference_client()
        client = get_inference_client(timeout=10.0)
    """
    from config import get_gemini_settings

    settings = get_gemini_settings()

    if provider == "gemini":
        return GeminiInferenceClient(
            api_key=kwargs.pop("api_key", None) or settings.api_key,
            base_url=kwargs.pop("base_url", None) or settings.base_url,
            api_version=kwargs.pop("api_version", None) or settings.api_version,
            timeout=kwargs.pop("timeout", None) or settings.timeout,
            **kwargs,
        )
    raise ValueError(f"Unsupported inference provider: {provider}")


def build_model_variants(
    validation_models: Optional[List[str]] = None,
    extraction_models: Optional[List[str]] = None,
) -> List[ModelVariant]:
    """Ordered variant list for both prompt kinds (settings when not given)."""
    if validation_models is None or extraction_models is None:
        from config import get_gemini_settings

        settings = get_gemini_settings()
        validation_models = settings.validation_models if validation_models is None else validation_models
        extraction_models = settings.extraction_models if extraction_models is None else extraction_models

    variants = [ModelVariant(identifier=name, prompt_kind=PromptKind.VALIDATION) for name in validation_models]
    variants.extend(ModelVariant(identifier=name, prompt_kind=PromptKind.EXTRACTION) for name in extraction_models)
    logger.debug(f"Configured {len(variants)} model variants")
    return variants
