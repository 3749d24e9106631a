from __future__ import annotations

from typing import Any, Mapping

from searchrelay.providers import register
from searchrelay.providers.base import Provider, ResultItem, SearchResult, text_field

TAVILY_ENDPOINT = "https://api.tavily.com/search"


@register
class TavilyProvider(Provider):
    name = "tavily"
    label = "Tavily"

    async def search(
        self,
        credential: str,
        query: str,
        count: int,
        options: Mapping[str, Any] | None = None,
    ) -> SearchResult:
        payload = {"query": query, "max_results": count, "api_key": credential}
        if self.params.get("search_depth"):
            payload["search_depth"] = self.params["search_depth"]

        data = await self._request_json("POST", self.endpoint or TAVILY_ENDPOINT, json=payload)

        results = data.get("results", []) if isinstance(data, dict) else []
        items = [
            ResultItem(
                title=text_field(r, "title"),
                url=str(r.get("url") or ""),
                description=text_field(r, "content"),
            )
            for r in results
            if isinstance(r, dict)
        ]
        return SearchResult(provider=self.provider_id, query=query, results=items)
