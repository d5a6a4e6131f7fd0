from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, PrivateAttr

from .base import CamelModel


class CredentialType(str, Enum):
    API_KEY = "api_key"
    TOKEN = "token"
    OAUTH = "oauth"


class _ProfileBase(CamelModel):
    # Operators may annotate profiles by hand (email, note, ...); keep it.
    model_config = ConfigDict(extra="allow")

    created_at: Optional[int] = Field(None, description="Epoch milliseconds")


class ApiKeyProfile(_ProfileBase):
    type: Literal["api_key"] = "api_key"
    key: Optional[str] = None


class TokenProfile(_ProfileBase):
    type: Literal["token"] = "token"
    token: Optional[str] = None
    expires: Optional[int] = None


class OAuthProfile(_ProfileBase):
    type: Literal["oauth"] = "oauth"
    access: Optional[str] = None
    refresh: Optional[str] = None
    expires: Optional[int] = None


AuthProfile = Annotated[
    Union[ApiKeyProfile, TokenProfile, OAuthProfile],
    Field(discriminator="type"),
]


class ProfileUsageStats(CamelModel):
    """
    Rolling health bookkeeping for one profile. All timestamps are epoch ms.
    """

    model_config = ConfigDict(extra="allow")

    last_used: Optional[int] = None
    success_count: int = 0
    error_count: int = 0
    last_failure: Optional[int] = None
    last_failure_type: Optional[str] = None
    cooldown_until: Optional[int] = None


class AuthProfileStore(CamelModel):
    """
    In-memory image of auth-profiles.json.
    """

    version: int = 1
    profiles: Dict[str, AuthProfile] = Field(default_factory=dict)
    order: Dict[str, List[str]] = Field(default_factory=dict)
    usage_stats: Dict[str, ProfileUsageStats] = Field(default_factory=dict)

    # Hand-edited entries that failed validation, written back untouched.
    _unparsed_profiles: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @property
    def unparsed_profile_ids(self) -> List[str]:
        return list(self._unparsed_profiles)

    def keep_unparsed_profile(self, profile_id: str, raw: Any) -> None:
        self._unparsed_profiles[profile_id] = raw

    def drop_unparsed_profile(self, profile_id: str) -> None:
        self._unparsed_profiles.pop(profile_id, None)

    def to_json_dict(self) -> dict:
        data = super().to_json_dict()
        for profile_id, raw in self._unparsed_profiles.items():
            data["profiles"].setdefault(profile_id, raw)
        return data


class ProfileStats(CamelModel):
    profile_id: str
    type: CredentialType
    created_at: Optional[int] = None
    last_used: Optional[int] = None
    success_count: int = 0
    error_count: int = 0
    last_failure: Optional[int] = None
    last_failure_type: Optional[str] = None
    in_cooldown: bool = False
    cooldown_remaining: int = 0


__all__ = [
    "ApiKeyProfile",
    "AuthProfile",
    "AuthProfileStore",
    "CredentialType",
    "OAuthProfile",
    "ProfileStats",
    "ProfileUsageStats",
    "TokenProfile",
]
