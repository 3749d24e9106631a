from __future__ import annotations

from typing import Any, Mapping

from searchrelay.providers import register
from searchrelay.providers.base import Provider, ResultItem, SearchResult, text_field

EXA_ENDPOINT = "https://api.exa.ai/search"


def _description(result: dict) -> str:
    highlights = result.get("highlights")
    if isinstance(highlights, list) and highlights:
        return " ".join(" ".join(str(h).split()) for h in highlights if h)
    return text_field(result, "summary", "text")


@register
class ExaProvider(Provider):
    name = "exa"
    label = "Exa"

    async def search(
        self,
        credential: str,
        query: str,
        count: int,
        options: Mapping[str, Any] | None = None,
    ) -> SearchResult:
        headers = {"x-api-key": credential}
        payload = {"query": query, "numResults": count, "contents": {"highlights": True}}

        data = await self._request_json("POST", self.endpoint or EXA_ENDPOINT, headers=headers, json=payload)

        results = data.get("results", []) if isinstance(data, dict) else []
        items = [
            ResultItem(
                title=text_field(r, "title"),
                url=str(r.get("url") or ""),
                description=_description(r),
            )
            for r in results
            if isinstance(r, dict)
        ]
        return SearchResult(provider=self.provider_id, query=query, results=items)
