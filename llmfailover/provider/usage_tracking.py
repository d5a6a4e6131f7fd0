"""
Per-provider, per-day token and request accounting with cost estimates.

A UsageTracker owns its cache; the service creates one long-lived instance
(see routes.create_app) and passes it to whoever records or reports usage.
"""

from __future__ import annotations

import datetime
import json
import time
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from llmfailover.logging_config import logger
from llmfailover.models import (
    ModelUsage,
    ProviderUsageStats,
    UsageEntry,
    UsageStats,
    UsageSummaryRow,
)
from llmfailover.provider.catalog import get_provider_config

USAGE_FILE = "usage-history.json"

COST_MODE_AVERAGE = "average"
COST_MODE_PER_MODEL = "per_model"

DateLike = Union[datetime.date, datetime.datetime, str, None]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _date_str(date: DateLike = None) -> str:
    """
    ISO calendar day in UTC.
    """
    if date is None:
        return datetime.datetime.now(datetime.timezone.utc).date().isoformat()
    if isinstance(date, str):
        return date[:10]
    if isinstance(date, datetime.datetime):
        if date.tzinfo is not None:
            date = date.astimezone(datetime.timezone.utc)
        return date.date().isoformat()
    return date.isoformat()


def get_usage_key(provider: str, date: DateLike = None) -> str:
    return f"{provider}:{_date_str(date)}"


def _split_usage_key(key: str) -> tuple[str, str]:
    provider, _, day = key.rpartition(":")
    return provider, day


def estimate_cost(provider: str, input_tokens: int, output_tokens: int) -> float:
    """
    Estimate USD cost from the provider's catalog-wide average rate.

    The averaged rate is used because the exact model may differ per
    request; use estimate_cost_for_model() when the model is known.
    """
    config = get_provider_config(provider)
    if config is None or not config.models:
        return 0.0

    count = len(config.models)
    input_rate = sum(m.cost.input_per_million for m in config.models) / count
    output_rate = sum(m.cost.output_per_million for m in config.models) / count
    cost = (input_tokens * input_rate + output_tokens * output_rate) / 1_000_000
    return round(cost, 6)


def estimate_cost_for_model(
    provider: str, model_id: str, input_tokens: int, output_tokens: int
) -> float:
    config = get_provider_config(provider)
    model = config.find_model(model_id) if config is not None else None
    if model is None:
        return estimate_cost(provider, input_tokens, output_tokens)

    cost = (
        input_tokens * model.cost.input_per_million
        + output_tokens * model.cost.output_per_million
    ) / 1_000_000
    return round(cost, 6)


class UsageTracker:
    """
    In-memory usage cache keyed by "provider:YYYY-MM-DD".
    """

    def __init__(self, cost_mode: str = COST_MODE_AVERAGE) -> None:
        if cost_mode not in (COST_MODE_AVERAGE, COST_MODE_PER_MODEL):
            raise ValueError(f"Unknown usage cost mode: {cost_mode}")
        self.cost_mode = cost_mode
        self._cache: Dict[str, UsageEntry] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def entries(self) -> Dict[str, UsageEntry]:
        return dict(self._cache)

    def track_usage(
        self,
        provider: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        date: DateLike = None,
    ) -> UsageEntry:
        key = get_usage_key(provider, date)
        now = _now_ms()
        entry = self._cache.get(key)
        if entry is None:
            entry = UsageEntry(first_request=now)
            self._cache[key] = entry

        entry.input += input_tokens
        entry.output += output_tokens
        entry.requests += 1
        entry.last_request = now

        per_model = entry.models.setdefault(model, ModelUsage())
        per_model.input += input_tokens
        per_model.output += output_tokens
        per_model.requests += 1
        return entry

    def get_usage_for_provider(self, provider: str, date: DateLike = None) -> Optional[UsageEntry]:
        return self._cache.get(get_usage_key(provider, date))

    def _entry_cost(self, provider: str, entry: UsageEntry) -> float:
        if self.cost_mode == COST_MODE_PER_MODEL and entry.models:
            total = sum(
                estimate_cost_for_model(provider, model_id, usage.input, usage.output)
                for model_id, usage in entry.models.items()
            )
            return round(total, 6)
        return estimate_cost(provider, entry.input, entry.output)

    def get_usage_summary(self, date: DateLike = None) -> List[UsageSummaryRow]:
        """
        One row per provider active on the given day, busiest first.
        """
        day = _date_str(date)
        rows: List[UsageSummaryRow] = []
        for key, entry in self._cache.items():
            provider, entry_day = _split_usage_key(key)
            if entry_day != day:
                continue
            rows.append(
                UsageSummaryRow(
                    provider=provider,
                    date=day,
                    input_tokens=entry.input,
                    output_tokens=entry.output,
                    total_tokens=entry.input + entry.output,
                    requests=entry.requests,
                    models={k: v.model_copy() for k, v in entry.models.items()},
                    estimated_cost=self._entry_cost(provider, entry),
                    first_request=entry.first_request,
                    last_request=entry.last_request,
                )
            )
        rows.sort(key=lambda row: row.requests, reverse=True)
        return rows

    def get_usage_stats(self) -> UsageStats:
        """
        Totals across every tracked day.
        """
        stats = UsageStats()
        for key, entry in self._cache.items():
            provider, _ = _split_usage_key(key)
            bucket = stats.by_provider.get(provider)
            if bucket is None:
                bucket = ProviderUsageStats()
                stats.by_provider[provider] = bucket
                stats.total_providers += 1

            tokens = entry.input + entry.output
            cost = self._entry_cost(provider, entry)
            bucket.requests += entry.requests
            bucket.tokens += tokens
            bucket.cost += cost
            stats.total_requests += entry.requests
            stats.total_tokens += tokens
            stats.total_cost += cost
        return stats

    def clear(self) -> None:
        self._cache.clear()

    def save_usage_history(self, config_dir: Union[str, Path]) -> None:
        path = Path(config_dir) / USAGE_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        history = {key: entry.to_json_dict() for key, entry in self._cache.items()}
        path.write_text(json.dumps(history, indent=2), encoding="utf-8")

    def load_usage_history(self, config_dir: Union[str, Path]) -> None:
        """
        Merge the persisted history into the cache; entries on disk replace
        cached entries with the same key.
        """
        path = Path(config_dir) / USAGE_FILE
        if not path.exists():
            return
        try:
            history = json.loads(path.read_text(encoding="utf-8"))
            loaded = {key: UsageEntry.model_validate(value) for key, value in history.items()}
        except (OSError, ValueError, AttributeError, ValidationError) as exc:
            logger.error("Failed to load usage history from %s: %s", path, exc)
            return
        self._cache.update(loaded)


def format_usage_line(summary: Optional[List[UsageSummaryRow]]) -> str:
    if not summary:
        return "No usage today"

    parts = []
    for row in summary:
        cost = f", ${row.estimated_cost:.4f}" if row.estimated_cost > 0 else ""
        parts.append(f"{row.provider}: {row.requests} req{cost}")
    return f"Today: {' | '.join(parts)}"


def format_usage_detailed(summary: Optional[List[UsageSummaryRow]]) -> str:
    if not summary:
        return "No usage recorded today."

    lines = ["Usage Summary:", ""]
    total_cost = 0.0
    total_requests = 0
    total_tokens = 0

    for row in summary:
        lines.append(f"{row.provider}:")
        lines.append(f"  Requests: {row.requests}")
        lines.append(f"  Tokens: {row.input_tokens:,} in / {row.output_tokens:,} out")
        if row.estimated_cost > 0:
            lines.append(f"  Est. Cost: ${row.estimated_cost:.4f}")

        if len(row.models) > 1:
            lines.append("  By Model:")
            for model_id, usage in row.models.items():
                lines.append(
                    f"    {model_id}: {usage.requests} req, {usage.input + usage.output} tokens"
                )

        lines.append("")
        total_cost += row.estimated_cost
        total_requests += row.requests
        total_tokens += row.total_tokens

    lines.append("─" * 40)
    lines.append(
        f"Total: {total_requests} requests, {total_tokens:,} tokens, ${total_cost:.4f}"
    )
    return "\n".join(lines)


__all__ = [
    "COST_MODE_AVERAGE",
    "COST_MODE_PER_MODEL",
    "USAGE_FILE",
    "UsageTracker",
    "estimate_cost",
    "estimate_cost_for_model",
    "format_usage_detailed",
    "format_usage_line",
    "get_usage_key",
]
