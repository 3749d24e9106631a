import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from searchrelay.config import Settings, load_settings
from searchrelay.credentials import resolve_credential
from searchrelay.errors import ConfigError
from searchrelay.fallback import order_providers
from searchrelay.providers import get_provider
from searchrelay.tool import build_tool
from searchrelay.usage import UsageRecord, UsageStore, current_month


app = typer.Typer(help="Web search with per-provider monthly quotas and automatic fallback")

USAGE_HEADERS = ["Provider", "Type", "Used", "Limit", "Month"]
PROVIDER_HEADERS = ["#", "Provider", "Type", "Key Env", "Key"]


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs")) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.command()
def search(
    query: str,
    count: int = typer.Option(10, help="Number of results"),
    freshness: Optional[str] = typer.Option(None, help="day, week or month (Brave only)"),
    config: Optional[Path] = typer.Option(None, help="Path to config.toml"),
) -> None:
    settings = _settings(config)
    tool = build_tool(settings)
    params: dict = {"query": query, "count": count}
    if freshness:
        params["freshness"] = freshness
    payload = asyncio.run(tool.execute(params))
    typer.echo(json.dumps(payload, indent=2))
    if "error" in payload:
        raise typer.Exit(code=1)


@app.command()
def usage(config: Optional[Path] = typer.Option(None, help="Path to config.toml")) -> None:
    settings = _settings(config)
    store = UsageStore(settings.usage_path)
    store.load()
    records = store.snapshot()
    rows = []
    for spec in order_providers(settings.providers, settings.primary_provider_id):
        record = records.get(spec.id) or UsageRecord(count=0, month=current_month())
        rows.append([spec.id, spec.type, str(record.count), str(spec.monthly_limit), record.month])
    if not rows:
        typer.echo("No providers configured.")
        raise typer.Exit()
    typer.echo(_render_table(USAGE_HEADERS, rows))


@app.command()
def providers(config: Optional[Path] = typer.Option(None, help="Path to config.toml")) -> None:
    settings = _settings(config)
    rows = []
    ordered = order_providers(settings.providers, settings.primary_provider_id)
    for idx, spec in enumerate(ordered, start=1):
        status = "set" if resolve_credential(spec) else "missing"
        rows.append([str(idx), spec.id, spec.type, spec.api_key_env, status])
    if not rows:
        typer.echo("No providers configured.")
        raise typer.Exit()
    typer.echo(_render_table(PROVIDER_HEADERS, rows))


@app.command()
def validate(config: Optional[Path] = typer.Option(None, help="Path to config.toml")) -> None:
    settings = _settings(config)
    problems = []
    for spec in settings.providers:
        if not resolve_credential(spec):
            problems.append(f"{spec.id}: {spec.api_key_env} not set")
        if get_provider(spec.type).name == "custom" and not spec.base_url:
            problems.append(f"{spec.id}: base_url required for custom provider")
    if not settings.providers:
        problems.append("no providers configured")
    if problems:
        typer.echo("Problems:")
        for entry in problems:
            typer.echo(f"  - {entry}")
        raise typer.Exit(code=1)
    typer.echo("All providers configured.")


def _settings(config: Optional[Path]) -> Settings:
    try:
        return load_settings(config)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}", err=True)
        raise typer.Exit(code=2)


def _render_table(headers: list[str], rows: list[list[str]]) -> str:
    if not rows:
        return ""
    widths = [len(h) for h in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def format_row(row: list[str]) -> str:
        return " | ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(row))

    lines = [format_row(headers), "-+-".join("-" * w for w in widths)]
    lines.extend(format_row(row) for row in rows)
    return "\n".join(lines)


if __name__ == "__main__":
    app()
