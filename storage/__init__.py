"""
Storage Module
Result sinks for accepted verdicts
"""
from .result_sink import (
    BaseResultSink,
    InMemoryResultSink,
    SupabaseResultSink,
    get_default_sink,
)

__all__ = [
    "BaseResultSink",
    "InMemoryResultSink",
    "SupabaseResultSink",
    "get_default_sink",
]
