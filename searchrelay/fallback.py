from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Optional, Sequence

from loguru import logger

from searchrelay.config import DEFAULT_TIMEOUTS, ProviderSpec, timeout_for
from searchrelay.credentials import resolve_credential
from searchrelay.errors import (
    AllProvidersExhausted,
    MissingCredential,
    QuotaExceeded,
    ValidationError,
)
from searchrelay.providers import Provider, SearchResult, create_provider
from searchrelay.usage import UsageStore

DEFAULT_COUNT = 10


@dataclass(frozen=True)
class SearchAttempt:
    providers: tuple[ProviderSpec, ...]
    query: str
    count: int = DEFAULT_COUNT
    options: Mapping[str, Any] = field(default_factory=dict)


def order_providers(providers: Sequence[ProviderSpec], primary_id: Optional[str]) -> list[ProviderSpec]:
    """Primary provider first, the rest in configured order."""
    primary = [p for p in providers if p.id == primary_id]
    rest = [p for p in providers if p.id != primary_id]
    return primary + rest


class FallbackOrchestrator:
    """Tries providers one at a time until one returns a result.

    A provider is charged only after its adapter returns successfully; skipped
    and failed providers keep their usage unchanged.
    """

    def __init__(
        self,
        providers: Sequence[ProviderSpec],
        usage: UsageStore,
        primary_provider_id: Optional[str] = None,
        resolve_credential: Callable[[ProviderSpec], Optional[str]] = resolve_credential,
        adapter_factory: Callable[[ProviderSpec, float], Provider] = create_provider,
        timeouts: Optional[Mapping[str, int]] = None,
    ) -> None:
        self.providers = tuple(providers)
        self.usage = usage
        self.primary_provider_id = primary_provider_id or (self.providers[0].id if self.providers else None)
        self._resolve_credential = resolve_credential
        self._adapter_factory = adapter_factory
        self._timeouts = dict(timeouts or DEFAULT_TIMEOUTS)

    def attempt_order(self) -> list[ProviderSpec]:
        return order_providers(self.providers, self.primary_provider_id)

    async def search(
        self,
        query: str,
        count: int = DEFAULT_COUNT,
        options: Optional[Mapping[str, Any]] = None,
    ) -> SearchResult:
        query = (query or "").strip()
        if not query:
            raise ValidationError("query is required")

        attempt = SearchAttempt(
            providers=tuple(self.attempt_order()),
            query=query,
            count=count,
            options=dict(options or {}),
        )

        last_error: Optional[Exception] = None
        for spec in attempt.providers:
            try:
                credential = self._prepare(spec)
            except QuotaExceeded as exc:
                logger.info(f"Provider {spec.id} at limit ({exc.used}/{exc.limit}), skipping")
                continue
            except MissingCredential as exc:
                logger.warning(str(exc))
                continue

            adapter = self._adapter_factory(spec, timeout_for(spec.type, self._timeouts))
            try:
                result = await adapter.search(credential, attempt.query, attempt.count, attempt.options)
            except Exception as exc:
                last_error = exc
                logger.warning(f"{spec.id} failed: {exc}")
                continue

            used = self.usage.increment(spec.id)
            logger.info(f"Used {spec.id}, count: {used}/{spec.monthly_limit}")
            return replace(result, provider=spec.id, query=attempt.query)

        raise AllProvidersExhausted(last_error)

    def _prepare(self, spec: ProviderSpec) -> str:
        used = self.usage.get_usage(spec.id)
        if used >= spec.monthly_limit:
            raise QuotaExceeded(spec.id, used, spec.monthly_limit)
        credential = self._resolve_credential(spec)
        if not credential:
            raise MissingCredential(spec.id, spec.api_key_env)
        return credential