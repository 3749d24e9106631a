from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from searchrelay.providers.base import Provider, ResultItem, SearchResult

if TYPE_CHECKING:
    from searchrelay.config import ProviderSpec

DEFAULT_PROVIDER = "custom"

_REGISTRY: Dict[str, Type[Provider]] = {}


def register(provider_cls: Type[Provider]) -> Type[Provider]:
    name = getattr(provider_cls, "name", None)
    if not name:
        raise ValueError("Provider must define a non-empty name")
    _REGISTRY[name] = provider_cls
    return provider_cls


def get_provider(name: str) -> Type[Provider]:
    """Adapter class for a family tag; unrecognized tags use the generic adapter."""
    return _REGISTRY.get(name) or _REGISTRY[DEFAULT_PROVIDER]


def create_provider(spec: "ProviderSpec", timeout: float = 20) -> Provider:
    provider_cls = get_provider(spec.type)
    return provider_cls(spec.id, timeout=timeout, endpoint=spec.base_url, params=spec.params)


def list_providers() -> list[str]:
    return sorted(_REGISTRY.keys())


__all__ = [
    "Provider",
    "ResultItem",
    "SearchResult",
    "register",
    "get_provider",
    "create_provider",
    "list_providers",
]

# Provider registrations
from searchrelay.providers.brave import BraveProvider  # noqa: F401,E402
from searchrelay.providers.custom import CustomProvider  # noqa: F401,E402
from searchrelay.providers.exa import ExaProvider  # noqa: F401,E402
from searchrelay.providers.tavily import TavilyProvider  # noqa: F401,E402
