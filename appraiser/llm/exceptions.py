"""Exceptions for LLM provider operations."""

from typing import Optional


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider_id: Optional[str] = None):
        super().__init__(message)
        self.provider_id = provider_id


class ProviderUnavailableError(ProviderError):
    """Provider is unconfigured, unreachable, or timed out."""

    pass


class MalformedResponseError(ProviderError):
    """Provider answered but the answer failed shape or range validation."""

    def __init__(
        self,
        message: str,
        provider_id: Optional[str] = None,
        raw_text: Optional[str] = None,
    ):
        super().__init__(message, provider_id=provider_id)
        self.raw_text = raw_text[:500] if raw_text else raw_text
