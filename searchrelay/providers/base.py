from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional

import httpx

from searchrelay.errors import ProviderAPIError, ProviderTransportError


@dataclass(frozen=True)
class ResultItem:
    title: str
    url: str
    description: str


@dataclass
class SearchResult:
    provider: str
    query: str
    results: list[ResultItem] = field(default_factory=list)
    raw: Optional[Any] = None

    def to_dict(self) -> dict:
        if self.raw is None:
            body: dict = {"results": [asdict(item) for item in self.results]}
        elif isinstance(self.raw, dict):
            body = dict(self.raw)
        else:
            body = {"results": self.raw}
        return {**body, "provider": self.provider, "query": self.query}


class Provider(ABC):
    name: str
    label: str

    def __init__(
        self,
        provider_id: str,
        timeout: float = 20,
        endpoint: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        self.provider_id = provider_id
        self.timeout = timeout
        self.endpoint = endpoint
        self.params = dict(params or {})

    @abstractmethod
    async def search(
        self,
        credential: str,
        query: str,
        count: int,
        options: Mapping[str, Any] | None = None,
    ) -> SearchResult:
        """Run one search and return a normalized result; raise ProviderError on failure."""
        raise NotImplementedError

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderAPIError(self.provider_id, exc.response.status_code, self.label) from exc
        except httpx.TimeoutException as exc:
            raise ProviderTransportError(self.provider_id, f"{self.label} timeout: {exc}") from exc
        except httpx.RequestError as exc:
            raise ProviderTransportError(self.provider_id, f"{self.label} request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderTransportError(self.provider_id, f"{self.label} returned invalid JSON") from exc


def text_field(item: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = item.get(key)
        if value:
            return " ".join(str(value).split())
    return ""
