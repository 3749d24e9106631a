from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from searchrelay.errors import ConfigError

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for 3.10
    import tomli as tomllib


DEFAULT_TIMEOUTS: Dict[str, int] = {
    "default": 30,
    "brave": 20,
    "tavily": 20,
    "exa": 30,
    "custom": 30,
}

DEFAULT_CONFIG_PATH = Path("config.toml")
DEFAULT_USAGE_PATH = Path("~/.searchrelay/usage.json")


@dataclass(frozen=True)
class ProviderSpec:
    id: str
    type: str
    api_key_env: str
    monthly_limit: int
    api_key_file: Optional[str] = None
    base_url: Optional[str] = None
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Settings:
    providers: tuple[ProviderSpec, ...]
    primary_provider_id: Optional[str]
    usage_path: Path
    timeouts: Dict[str, int]


def load_settings(config_path: Path | None = None) -> Settings:
    load_dotenv()

    env_path = os.getenv("SEARCHRELAY_CONFIG")
    path = config_path or (Path(env_path) if env_path else DEFAULT_CONFIG_PATH)
    try:
        text = path.read_text()
    except FileNotFoundError:
        return parse_settings({})
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    return parse_settings(data)


def parse_settings(data: Mapping[str, Any]) -> Settings:
    timeouts = DEFAULT_TIMEOUTS.copy()
    configured = data.get("timeouts", {})
    if not isinstance(configured, dict):
        raise ConfigError("timeouts must be a table")
    for key, value in configured.items():
        try:
            timeouts[str(key)] = int(value)
        except (TypeError, ValueError):
            continue

    entries = data.get("providers", [])
    if not isinstance(entries, list):
        raise ConfigError("providers must be an array of tables")
    providers = tuple(_parse_provider(entry, idx) for idx, entry in enumerate(entries))
    seen: set[str] = set()
    for spec in providers:
        if spec.id in seen:
            raise ConfigError(f"Duplicate provider id: {spec.id}")
        seen.add(spec.id)

    primary = data.get("primary")
    if primary is not None and not isinstance(primary, str):
        raise ConfigError("primary must be a provider id string")
    usage_file = data.get("usage_file", DEFAULT_USAGE_PATH)
    if not isinstance(usage_file, (str, Path)):
        raise ConfigError("usage_file must be a path string")
    return Settings(
        providers=providers,
        primary_provider_id=primary or (providers[0].id if providers else None),
        usage_path=Path(usage_file).expanduser(),
        timeouts=timeouts,
    )


def _parse_provider(entry: Any, idx: int) -> ProviderSpec:
    if not isinstance(entry, dict):
        raise ConfigError(f"providers[{idx}] must be a table")
    for key in ("id", "type", "api_key_env"):
        if not entry.get(key):
            raise ConfigError(f"providers[{idx}] is missing '{key}'")
    limit = entry.get("monthly_limit")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ConfigError(f"providers[{idx}] monthly_limit must be a positive integer")
    params = entry.get("params", {})
    if not isinstance(params, dict):
        raise ConfigError(f"providers[{idx}] params must be a table")
    return ProviderSpec(
        id=str(entry["id"]),
        type=str(entry["type"]),
        api_key_env=str(entry["api_key_env"]),
        monthly_limit=limit,
        api_key_file=entry.get("api_key_file"),
        base_url=entry.get("base_url"),
        params=MappingProxyType(dict(params)),
    )


def timeout_for(provider: str, timeouts: Mapping[str, int]) -> int:
    return timeouts.get(provider, timeouts.get("default", DEFAULT_TIMEOUTS["default"]))
