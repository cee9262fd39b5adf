"""
Custom Exceptions
"""


class BabyScanError(Exception):
    """Base error for the analysis service"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(BabyScanError):
    """Missing or inconsistent configuration"""
    pass


class MediaError(BabyScanError):
    """Media payload could not be decoded"""
    pass


class InferenceError(BabyScanError):
    """Inference provider failed in a way fallback could not absorb"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class StorageError(BabyScanError):
    """Result sink write failed"""
    pass


class IdentityError(BabyScanError):
    """Caller identity missing or not verifiable"""
    pass
