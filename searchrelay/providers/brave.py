from __future__ import annotations

from typing import Any, Mapping

from searchrelay.providers import register
from searchrelay.providers.base import Provider, ResultItem, SearchResult, text_field

BRAVE_ENDPOINT = "https://api.search.brave.com/res/v1/web/search"

FRESHNESS = {"day": "pd", "week": "pw", "month": "pm"}


def _extract_results(data: dict) -> list[dict]:
    if isinstance(data.get("web"), dict):
        results = data["web"].get("results", [])
        if isinstance(results, list):
            return [r for r in results if isinstance(r, dict)]
    return []


@register
class BraveProvider(Provider):
    name = "brave"
    label = "Brave"

    async def search(
        self,
        credential: str,
        query: str,
        count: int,
        options: Mapping[str, Any] | None = None,
    ) -> SearchResult:
        params: dict[str, Any] = {"q": query, "count": count}
        freshness = (options or {}).get("freshness")
        if freshness:
            params["freshness"] = FRESHNESS.get(str(freshness), str(freshness))
        headers = {"Accept": "application/json", "X-Subscription-Token": credential}

        data = await self._request_json("GET", self.endpoint or BRAVE_ENDPOINT, params=params, headers=headers)

        items = [
            ResultItem(
                title=text_field(r, "title"),
                url=str(r.get("url") or ""),
                description=text_field(r, "description"),
            )
            for r in _extract_results(data if isinstance(data, dict) else {})
        ]
        return SearchResult(provider=self.provider_id, query=query, results=items)
