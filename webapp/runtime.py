"""Shared runtime singletons for web/CLI entrypoints."""

from __future__ import annotations

from functools import lru_cache
from typing import Dict

from config import get_settings
from intelligence.llm import BaseInferenceClient, build_model_variants, get_inference_client
from pipeline import PROFILES, AnalysisPipeline, build_pipeline, get_profile
from storage import BaseResultSink, get_default_sink

from .auth import SupabaseIdentityResolver


@lru_cache()
def get_inference_client_singleton() -> BaseInferenceClient:
    return get_inference_client()


@lru_cache()
def get_sink() -> BaseResultSink:
    return get_default_sink()


def _tables() -> Dict[str, str]:
    supabase = get_settings().supabase
    return {"cry": supabase.cry_table, "diaper": supabase.diaper_table}


@lru_cache(maxsize=None)
def get_pipeline(analyzer: str) -> AnalysisPipeline:
    """Pipeline for ``analyzer``; raises KeyError for unknown names."""
    profile = get_profile(analyzer)
    profile = profile.with_table(_tables().get(profile.name))
    return build_pipeline(
        profile,
        client=get_inference_client_singleton(),
        variants=build_model_variants(),
        sink=get_sink(),
        settings=get_settings().analyzer,
    )


@lru_cache()
def get_identity_resolver() -> SupabaseIdentityResolver:
    supabase = get_settings().supabase
    return SupabaseIdentityResolver(url=supabase.url, key=supabase.anon_key)


def known_analyzers() -> list:
    return sorted(PROFILES)


async def close_runtime() -> None:
    """Release the shared inference client; pipelines built on it are dropped too."""
    if not get_inference_client_singleton.cache_info().currsize:
        return
    await get_inference_client_singleton().aclose()
    get_inference_client_singleton.cache_clear()
    get_pipeline.cache_clear()
