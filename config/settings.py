"""
Settings Configuration
Pydantic-backed configuration for the analysis service
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


DEFAULT_MODEL_ORDER = ["gemini-2.0-flash", "gemini-2.5-pro", "gemini-2.5-flash"]


class GeminiSettings(BaseSettings):
    """Gemini inference provider"""
    api_key: Optional[str] = Field(default=None, description="Google Gemini API Key")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="REST endpoint root",
    )
    api_version: str = Field(default="v1beta", description="API version path segment")
    timeout: float = Field(default=30.0, description="Per-call timeout (seconds)")
    validation_models: List[str] = Field(
        default_factory=lambda: list(DEFAULT_MODEL_ORDER),
        description="Ordered model variants for admissibility checks",
    )
    extraction_models: List[str] = Field(
        default_factory=lambda: list(DEFAULT_MODEL_ORDER),
        description="Ordered model variants for classification",
    )

    class Config:
        env_prefix = "GEMINI_"


class AnalyzerSettings(BaseSettings):
    """Pipeline policy knobs shared by every analyzer"""
    min_audio_duration_seconds: float = Field(default=3.0, description="Shortest accepted cry clip")
    min_positive_confidence: int = Field(default=50, description="Positive detections below this are downgraded")
    max_media_bytes: int = Field(default=15 * 1024 * 1024, description="Largest decoded payload accepted")
    response_language: str = Field(default="English", description="Language of explanations")

    class Config:
        env_prefix = "ANALYZER_"


class SupabaseSettings(BaseSettings):
    """Supabase auth + result tables"""
    url: Optional[str] = Field(default=None, description="Project URL")
    anon_key: Optional[str] = Field(default=None, description="Anon key (identity lookups)")
    service_key: Optional[str] = Field(default=None, description="Service role key (verdict inserts)")
    cry_table: str = Field(default="cry_analyses", description="Cry verdict table")
    diaper_table: str = Field(default="poop_analyses", description="Diaper verdict table")

    class Config:
        env_prefix = "SUPABASE_"


class GeneralSettings(BaseSettings):
    """General settings"""
    log_level: str = Field(default="INFO", description="Root log level")
    log_file: Optional[str] = Field(default=None, description="Optional log file name under logs/")


class Settings(BaseSettings):
    """Top-level settings aggregating every group"""

    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    analyzer: AnalyzerSettings = Field(default_factory=AnalyzerSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    general: GeneralSettings = Field(default_factory=GeneralSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings, reading the given .env file first when it exists"""
        if env_path is None:
            env_path = Path(__file__).parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            gemini=GeminiSettings(),
            analyzer=AnalyzerSettings(),
            supabase=SupabaseSettings(),
            general=GeneralSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings singleton"""
    return Settings.load_from_env_file()


def get_gemini_settings() -> GeminiSettings:
    return get_settings().gemini


def get_analyzer_settings() -> AnalyzerSettings:
    return get_settings().analyzer


def get_supabase_settings() -> SupabaseSettings:
    return get_settings().supabase
