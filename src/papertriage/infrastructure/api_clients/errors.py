"""
Provider failure taxonomy.

A 404 from an upstream API is not an error: clients return ``None``.
"""

from __future__ import annotations

from typing import Optional


class ProviderError(Exception):
    """Transport or protocol failure talking to an external provider."""

    def __init__(self, message: str, *, status: Optional[int] = None, provider: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.provider = provider


class RateLimitedError(ProviderError):
    """Provider answered 429. The only failure kind that is retried on a later run."""

    def __init__(self, message: str = "rate limit", *, provider: Optional[str] = None):
        super().__init__(message, status=429, provider=provider)


def is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, RateLimitedError)
