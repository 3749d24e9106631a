"""
Monthly usage accounting per provider.

The table lives in one JSON file::

    {"brave-main": {"count": 12, "month": "2025-03"}, ...}

A record whose month differs from the current month counts as zero and is
overwritten on the next increment. The whole file is rewritten on every
increment. There is no file locking, so two processes sharing one file can
lose an increment; within a process increments are serialized.

The quota check and the charge happen on either side of the provider call.
Concurrent searches that all pass the check are all charged, so a provider
can end the month over its limit.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Literal, Optional

from loguru import logger


def current_month(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{now.year:04d}-{now.month:02d}"


@dataclass
class UsageRecord:
    count: int
    month: str


@dataclass
class UsageLoad:
    """Outcome of reading the usage file. ``records`` is empty unless loaded."""

    status: Literal["loaded", "missing", "corrupt"]
    records: Dict[str, UsageRecord] = field(default_factory=dict)
    error: Optional[str] = None


def read_usage_file(path: Path) -> UsageLoad:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return UsageLoad(status="missing")
    except (OSError, ValueError) as exc:
        return UsageLoad(status="corrupt", error=str(exc))
    if not isinstance(data, dict):
        return UsageLoad(status="corrupt", error="usage file is not a JSON object")

    records: Dict[str, UsageRecord] = {}
    for provider_id, info in data.items():
        if not isinstance(info, dict):
            continue
        count = info.get("count")
        month = info.get("month")
        if isinstance(count, bool) or not isinstance(count, int) or not isinstance(month, str):
            continue
        records[str(provider_id)] = UsageRecord(count=max(count, 0), month=month)
    return UsageLoad(status="loaded", records=records)


class UsageStore:
    """Durable provider id -> (count, month) table.

    Usage:
        store = UsageStore(Path("~/.searchrelay/usage.json").expanduser())
        store.load()
        if store.get_usage("brave-main") < 2000:
            ...
            store.increment("brave-main")
    """

    def __init__(self, path: Path, clock: Callable[[], datetime] = datetime.now) -> None:
        self.path = path
        self._clock = clock
        self._records: Dict[str, UsageRecord] = {}
        self._lock = Lock()

    def load(self) -> UsageLoad:
        """Read the persisted table. Failures start from an empty table."""
        result = read_usage_file(self.path)
        with self._lock:
            self._records = dict(result.records)
        if result.status == "missing":
            logger.debug(f"No usage file at {self.path}, starting empty")
        elif result.status == "corrupt":
            logger.warning(f"Usage file {self.path} unreadable ({result.error}), starting empty")
        else:
            logger.debug(f"Loaded usage for {len(result.records)} providers from {self.path}")
        return result

    def get_usage(self, provider_id: str) -> int:
        with self._lock:
            return self._normalize(provider_id).count

    def increment(self, provider_id: str) -> int:
        with self._lock:
            record = self._normalize(provider_id)
            record.count += 1
            self._save()
            return record.count

    def snapshot(self) -> Dict[str, UsageRecord]:
        """Copy of every known record, rolled over to the current month."""
        with self._lock:
            for provider_id in list(self._records):
                self._normalize(provider_id)
            return {pid: UsageRecord(r.count, r.month) for pid, r in self._records.items()}

    def _normalize(self, provider_id: str) -> UsageRecord:
        month = current_month(self._clock())
        record = self._records.get(provider_id)
        if record is None or record.month != month:
            record = UsageRecord(count=0, month=month)
            self._records[provider_id] = record
        return record

    def _save(self) -> None:
        payload = {pid: {"count": r.count, "month": r.month} for pid, r in self._records.items()}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning(f"Failed to persist usage to {self.path}: {exc}")
