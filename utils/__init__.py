"""
Utils Module
"""
from .logger import configure_service_logging, setup_logger
from .exceptions import (
    BabyScanError,
    ConfigurationError,
    IdentityError,
    InferenceError,
    MediaError,
    StorageError,
)

__all__ = [
    "configure_service_logging",
    "setup_logger",
    "BabyScanError",
    "ConfigurationError",
    "IdentityError",
    "InferenceError",
    "MediaError",
    "StorageError",
]
