from __future__ import annotations

from config.settings import (
    DEFAULT_MODEL_ORDER,
    AnalyzerSettings,
    GeminiSettings,
    Settings,
    SupabaseSettings,
)
from intelligence.llm import build_model_variants, get_inference_client
from core import PromptKind


def test_defaults_match_service_policy(monkeypatch) -> None:
    for name in ("ANALYZER_MIN_AUDIO_DURATION_SECONDS", "ANALYZER_MIN_POSITIVE_CONFIDENCE", "GEMINI_EXTRACTION_MODELS"):
        monkeypatch.delenv(name, raising=False)

    analyzer = AnalyzerSettings()
    gemini = GeminiSettings()

    assert analyzer.min_audio_duration_seconds == 3.0
    assert analyzer.min_positive_confidence == 50
    assert gemini.extraction_models == DEFAULT_MODEL_ORDER
    assert DEFAULT_MODEL_ORDER[0] == "gemini-2.0-flash"


def test_env_overrides_with_prefixes(monkeypatch) -> None:
    monkeypatch.setenv("ANALYZER_MIN_POSITIVE_CONFIDENCE", "65")
    monkeypatch.setenv("GEMINI_VALIDATION_MODELS", '["gemini-2.5-flash", "gemini-2.0-flash"]')
    monkeypatch.setenv("SUPABASE_CRY_TABLE", "cry_results")

    assert AnalyzerSettings().min_positive_confidence == 65
    assert GeminiSettings().validation_models == ["gemini-2.5-flash", "gemini-2.0-flash"]
    assert SupabaseSettings().cry_table == "cry_results"


def test_load_from_env_file_reads_dotenv(tmp_path, monkeypatch) -> None:
    for name in ("GEMINI_API_KEY", "ANALYZER_RESPONSE_LANGUAGE"):
        # registers the variable so teardown removes what load_dotenv sets
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    env_file = tmp_path / ".env"
    env_file.write_text("GEMINI_API_KEY=from-file\nANALYZER_RESPONSE_LANGUAGE=Spanish\n", encoding="utf-8")

    settings = Settings.load_from_env_file(env_file)

    assert settings.gemini.api_key == "from-file"
    assert settings.analyzer.response_language == "Spanish"


def test_build_model_variants_keeps_order() -> None:
    variants = build_model_variants(validation_models=["a", "b"], extraction_models=["c"])

    assert [(v.prompt_kind, v.identifier) for v in variants] == [
        (PromptKind.VALIDATION, "a"),
        (PromptKind.VALIDATION, "b"),
        (PromptKind.EXTRACTION, "c"),
    ]


def test_get_inference_client_uses_explicit_values() -> None:
    client = get_inference_client(api_key="k", base_url="https://gemini.example/", timeout=5.0)
    assert client.provider == "gemini"
    assert client.timeout == 5.0
