"""
typed errors raised by retrieval collaborators.
the graph core itself never raises these.
"""

from typing import Optional


class CitenetError(Exception):
    """base class for citenet errors."""


class ProviderError(CitenetError):
    """a paper provider request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 provider: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider


class RateLimitError(ProviderError):
    """provider kept answering 429 after all retries."""


class ServerError(ProviderError):
    """provider kept answering 5xx after all retries."""


class NetworkError(ProviderError):
    """transport failure (connect, timeout) after all retries."""


class MissingCredentialsError(ProviderError):
    """provider requires an api key that is not configured."""
