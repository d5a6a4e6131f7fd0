from .auth_profile import (
    ApiKeyProfile,
    AuthProfile,
    AuthProfileStore,
    CredentialType,
    OAuthProfile,
    ProfileStats,
    ProfileUsageStats,
    TokenProfile,
)
from .base import CamelModel
from .fallback import (
    ErrorEvent,
    FailureType,
    FallbackAttempt,
    FallbackEvent,
    FallbackResult,
    ModelRef,
    ResolvedCredential,
    SkipReason,
)
from .provider import (
    ApiFamily,
    AuthMode,
    AvailableModel,
    DefaultCredential,
    ModelCost,
    ModelDef,
    ProviderConfig,
    ProviderSummary,
)
from .usage import (
    ModelUsage,
    ProviderUsageStats,
    UsageEntry,
    UsageStats,
    UsageSummaryRow,
)

__all__ = [
    "ApiFamily",
    "ApiKeyProfile",
    "AuthMode",
    "AuthProfile",
    "AuthProfileStore",
    "AvailableModel",
    "CamelModel",
    "CredentialType",
    "DefaultCredential",
    "ErrorEvent",
    "FailureType",
    "FallbackAttempt",
    "FallbackEvent",
    "FallbackResult",
    "ModelCost",
    "ModelDef",
    "ModelRef",
    "ModelUsage",
    "OAuthProfile",
    "ProfileStats",
    "ProfileUsageStats",
    "ProviderConfig",
    "ProviderSummary",
    "ProviderUsageStats",
    "ResolvedCredential",
    "SkipReason",
    "TokenProfile",
    "UsageEntry",
    "UsageStats",
    "UsageSummaryRow",
]
