from typing import Dict, Optional

from pydantic import Field

from .base import CamelModel


class ModelUsage(CamelModel):
    input: int = 0
    output: int = 0
    requests: int = 0


class UsageEntry(CamelModel):
    """
    Token/request totals for one (provider, UTC day).
    """

    input: int = 0
    output: int = 0
    requests: int = 0
    models: Dict[str, ModelUsage] = Field(default_factory=dict)
    first_request: Optional[int] = None
    last_request: Optional[int] = None


class UsageSummaryRow(CamelModel):
    provider: str
    date: str
    input_tokens: int
    output_tokens: int
    total_tokens: int
    requests: int
    models: Dict[str, ModelUsage] = Field(default_factory=dict)
    estimated_cost: float = 0.0
    first_request: Optional[int] = None
    last_request: Optional[int] = None


class ProviderUsageStats(CamelModel):
    requests: int = 0
    tokens: int = 0
    cost: float = 0.0


class UsageStats(CamelModel):
    total_providers: int = 0
    total_requests: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    by_provider: Dict[str, ProviderUsageStats] = Field(default_factory=dict)


__all__ = [
    "ModelUsage",
    "ProviderUsageStats",
    "UsageEntry",
    "UsageStats",
    "UsageSummaryRow",
]
