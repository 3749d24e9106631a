from __future__ import annotations

from typing import Any, Mapping

from searchrelay.errors import MissingEndpoint
from searchrelay.providers import register
from searchrelay.providers.base import Provider, SearchResult


@register
class CustomProvider(Provider):
    """Generic HTTP-JSON backend.

    POSTs ``{query, max_results, api_key, **params}`` to the configured
    ``base_url`` and hands back the parsed body untouched, since the response
    shape of an arbitrary backend is unknown.
    """

    name = "custom"
    label = "Custom provider"

    async def search(
        self,
        credential: str,
        query: str,
        count: int,
        options: Mapping[str, Any] | None = None,
    ) -> SearchResult:
        if not self.endpoint:
            raise MissingEndpoint(self.provider_id)

        payload = {"query": query, "max_results": count, "api_key": credential, **self.params}
        data = await self._request_json("POST", self.endpoint, json=payload)
        return SearchResult(provider=self.provider_id, query=query, raw=data)
