from __future__ import annotations

from typing import Optional


class SearchError(Exception):
    """Base class for everything the search path raises."""


class ConfigError(SearchError):
    pass


class ValidationError(SearchError):
    pass


class QuotaExceeded(SearchError):
    def __init__(self, provider: str, used: int, limit: int) -> None:
        super().__init__(f"{provider} at limit ({used}/{limit})")
        self.provider = provider
        self.used = used
        self.limit = limit


class MissingCredential(SearchError):
    def __init__(self, provider: str, env_var: str) -> None:
        super().__init__(f"No API key for provider {provider} (env: {env_var})")
        self.provider = provider
        self.env_var = env_var


class ProviderError(SearchError):
    """A provider was attempted and did not produce a result."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderAPIError(ProviderError):
    def __init__(self, provider: str, status_code: int, label: Optional[str] = None) -> None:
        super().__init__(provider, f"{label or provider} API error: {status_code}")
        self.status_code = status_code


class ProviderTransportError(ProviderError):
    pass


class MissingEndpoint(ProviderError):
    def __init__(self, provider: str) -> None:
        super().__init__(provider, f"Custom provider {provider} requires base_url")


class AllProvidersExhausted(SearchError):
    def __init__(self, last_error: Optional[Exception] = None) -> None:
        super().__init__("All providers failed or at limit")
        self.last_error = last_error
