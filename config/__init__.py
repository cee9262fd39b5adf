"""
Configuration Management Module
"""
from .settings import (
    Settings,
    get_settings,
    get_gemini_settings,
    get_analyzer_settings,
    get_supabase_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_gemini_settings",
    "get_analyzer_settings",
    "get_supabase_settings",
]
