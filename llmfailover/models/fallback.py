from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field

from .base import CamelModel


class FailureType(str, Enum):
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    BILLING = "billing"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class SkipReason(str, Enum):
    NO_AUTH = "no_auth"
    NO_API_KEY = "no_api_key"


class ModelRef(CamelModel):
    provider: str
    model: Optional[str] = None


class FallbackAttempt(CamelModel):
    """
    One entry of the per-call attempt log: a skipped or failed candidate.
    """

    provider: str
    model: Optional[str] = None
    skipped: bool = False
    reason: Optional[SkipReason] = None
    error: Optional[str] = None
    failure_type: Optional[FailureType] = None
    timestamp: int = Field(..., description="Epoch milliseconds")


class FallbackEvent(CamelModel):
    """
    Passed to `on_fallback` right before a substitute candidate is tried.
    """

    from_: ModelRef = Field(..., alias="from")
    to: ModelRef


@dataclass
class ErrorEvent:
    """
    Passed to `on_error` after a candidate failed.
    """

    provider: str
    model: Optional[str]
    error: BaseException
    failure_type: FailureType
    will_retry: bool


@dataclass
class ResolvedCredential:
    api_key: Optional[str]
    source: str
    profile_id: Optional[str] = None


@dataclass
class FallbackResult:
    result: Any
    provider: str
    model: Optional[str]
    attempts: List[FallbackAttempt] = field(default_factory=list)
    fallback_used: bool = False


__all__ = [
    "ErrorEvent",
    "FailureType",
    "FallbackAttempt",
    "FallbackEvent",
    "FallbackResult",
    "ModelRef",
    "ResolvedCredential",
    "SkipReason",
]
