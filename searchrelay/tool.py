from __future__ import annotations

from typing import Any, Mapping, Optional

from loguru import logger

from searchrelay.config import Settings, load_settings
from searchrelay.errors import AllProvidersExhausted, ValidationError
from searchrelay.fallback import DEFAULT_COUNT, FallbackOrchestrator
from searchrelay.usage import UsageStore

FRESHNESS_VALUES = ("day", "week", "month")


class WebSearchTool:
    """The ``web_search`` tool as exposed to an agent host."""

    name = "web_search"
    description = "Search the web using configured search providers with automatic fallback"
    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search query"},
            "count": {"type": "number", "description": "Number of results (default 10)"},
            "freshness": {
                "type": "string",
                "enum": list(FRESHNESS_VALUES),
                "description": "Filter by freshness (Brave only)",
            },
        },
        "required": ["query"],
    }

    def __init__(self, orchestrator: FallbackOrchestrator) -> None:
        self.orchestrator = orchestrator

    def definition(self) -> dict:
        return {"name": self.name, "description": self.description, "parameters": self.parameters}

    async def execute(self, params: Mapping[str, Any]) -> dict:
        query = params.get("query")
        query = query.strip() if isinstance(query, str) else ""
        count = params.get("count")
        if isinstance(count, float) and count.is_integer():
            count = int(count)
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            count = DEFAULT_COUNT
        freshness = params.get("freshness")

        if not query:
            return {"error": "query is required"}
        if freshness is not None and freshness not in FRESHNESS_VALUES:
            return {"error": f"freshness must be one of: {', '.join(FRESHNESS_VALUES)}"}

        options = {"freshness": freshness} if freshness else {}
        try:
            result = await self.orchestrator.search(query, count=count, options=options)
        except ValidationError as exc:
            return {"error": str(exc)}
        except AllProvidersExhausted as exc:
            payload: dict = {"error": str(exc)}
            if exc.last_error is not None:
                payload["lastError"] = str(exc.last_error)
            return payload
        return result.to_dict()


def build_tool(settings: Optional[Settings] = None) -> WebSearchTool:
    settings = settings or load_settings()
    usage = UsageStore(settings.usage_path)
    usage.load()
    orchestrator = FallbackOrchestrator(
        settings.providers,
        usage,
        primary_provider_id=settings.primary_provider_id,
        timeouts=settings.timeouts,
    )
    logger.info(f"web_search loaded with {len(settings.providers)} providers")
    return WebSearchTool(orchestrator)
