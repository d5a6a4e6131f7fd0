"""
Named credentials per provider with cooldown bookkeeping.

Every function operates on an explicit AuthProfileStore value; the store
is loaded from `<config_dir>/auth-profiles.json`, mutated in memory and
persisted by the caller via save_auth_profiles(). Timestamps are epoch
milliseconds so files stay compatible with existing installations.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from llmfailover.logging_config import logger
from llmfailover.models import (
    AuthProfile,
    AuthProfileStore,
    CredentialType,
    FailureType,
    ProfileStats,
    ProfileUsageStats,
)
from llmfailover.provider.catalog import get_provider_config

AUTH_PROFILES_FILE = "auth-profiles.json"

_BASE_BACKOFF_MS = 60_000
_BACKOFF_MULTIPLIER = 5
_MAX_BACKOFF_MS = 3_600_000
_DAY_MS = 86_400_000
_MAX_TIMEOUT_COOLDOWN_MS = 300_000

_PROFILE_ADAPTER: TypeAdapter = TypeAdapter(AuthProfile)


class InvalidProfileId(ValueError):
    """
    Raised when a profile id is not of the form "<provider>:<label>" or
    names a provider missing from the catalog.
    """


def _now_ms() -> int:
    return int(time.time() * 1000)


def parse_profile_id(profile_id: str) -> Tuple[str, str]:
    """
    Split "<provider>:<label>" and check the provider exists.
    """
    parts = profile_id.split(":") if isinstance(profile_id, str) else []
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidProfileId(
            f"Profile id must have the form provider:name, got {profile_id!r}"
        )
    provider, label = parts
    if get_provider_config(provider) is None:
        raise InvalidProfileId(f"Unknown provider in profile id: {provider}")
    return provider, label


def _provider_of(profile_id: str) -> str:
    return profile_id.split(":", 1)[0]


def get_auth_profiles_path(config_dir: Union[str, Path]) -> Path:
    return Path(config_dir) / AUTH_PROFILES_FILE


def load_auth_profiles(config_dir: Union[str, Path]) -> AuthProfileStore:
    """
    Load the store from disk. A missing file yields an empty store; an
    unreadable file or one that is not a JSON object is logged and also
    yields an empty store.

    Entries are validated one by one. A profile that does not validate
    (e.g. a hand-edited unknown "type") is kept aside and written back
    unchanged by save_auth_profiles(); it is never selected. Invalid usage
    stats are dropped.
    """
    path = get_auth_profiles_path(config_dir)
    if not path.exists():
        return AuthProfileStore()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Failed to load auth profiles from %s: %s", path, exc)
        return AuthProfileStore()
    if not isinstance(raw, dict):
        logger.error("Failed to load auth profiles from %s: not a JSON object", path)
        return AuthProfileStore()

    store = AuthProfileStore()
    try:
        store.version = int(raw.get("version", 1))
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid version in %s", path)

    for profile_id, data in _json_object(raw.get("profiles")).items():
        try:
            store.profiles[profile_id] = _PROFILE_ADAPTER.validate_python(data)
        except ValidationError as exc:
            logger.warning("Keeping unreadable auth profile %s as-is: %s", profile_id, exc)
            store.keep_unparsed_profile(profile_id, data)

    for provider, ids in _json_object(raw.get("order")).items():
        if isinstance(ids, list):
            store.order[provider] = [pid for pid in ids if isinstance(pid, str)]

    for profile_id, data in _json_object(raw.get("usageStats")).items():
        try:
            store.usage_stats[profile_id] = ProfileUsageStats.model_validate(data)
        except ValidationError as exc:
            logger.warning("Dropping unreadable usage stats of %s: %s", profile_id, exc)
    return store


def _json_object(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def save_auth_profiles(config_dir: Union[str, Path], store: AuthProfileStore) -> None:
    path = get_auth_profiles_path(config_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(store.to_json_dict(), indent=2), encoding="utf-8")


def add_profile(
    store: AuthProfileStore,
    profile_id: str,
    credential: Union[Mapping[str, Any], AuthProfile],
) -> AuthProfileStore:
    """
    Insert or overwrite a profile and append it to its provider's order.

    `credential` is a mapping such as {"type": "token", "token": "..."};
    "type" defaults to api_key. Payload fields are not validated here.
    """
    provider, _ = parse_profile_id(profile_id)

    if isinstance(credential, Mapping):
        data = dict(credential)
    elif hasattr(credential, "model_dump"):
        data = credential.model_dump(by_alias=True)
    else:
        raise TypeError("credential must be a mapping")

    data.setdefault("type", CredentialType.API_KEY.value)
    data["createdAt"] = _now_ms()
    data.pop("created_at", None)
    store.profiles[profile_id] = _PROFILE_ADAPTER.validate_python(data)
    store.drop_unparsed_profile(profile_id)

    order = store.order.setdefault(provider, [])
    if profile_id not in order:
        order.append(profile_id)
    return store


def remove_profile(store: AuthProfileStore, profile_id: str) -> AuthProfileStore:
    store.profiles.pop(profile_id, None)
    store.drop_unparsed_profile(profile_id)
    store.usage_stats.pop(profile_id, None)

    provider = _provider_of(profile_id)
    if provider in store.order:
        store.order[provider] = [pid for pid in store.order[provider] if pid != profile_id]
    return store


def list_profiles_for_provider(store: AuthProfileStore, provider: str) -> List[str]:
    prefix = f"{provider}:"
    return [pid for pid in store.profiles if pid.startswith(prefix)]


def resolve_api_key_for_profile(store: AuthProfileStore, profile_id: str) -> Optional[str]:
    profile = store.profiles.get(profile_id)
    if profile is None:
        return None

    if profile.type == CredentialType.API_KEY:
        return profile.key
    if profile.type == CredentialType.TOKEN:
        return profile.token
    if profile.type == CredentialType.OAUTH:
        return profile.access
    return None


def is_profile_in_cooldown(store: AuthProfileStore, profile_id: str) -> bool:
    stats = store.usage_stats.get(profile_id)
    if stats is None or not stats.cooldown_until:
        return False
    return _now_ms() < stats.cooldown_until


def get_cooldown_remaining(store: AuthProfileStore, profile_id: str) -> int:
    """
    Milliseconds left in the profile's cooldown, 0 when not cooling.
    """
    stats = store.usage_stats.get(profile_id)
    if stats is None or not stats.cooldown_until:
        return 0
    return max(stats.cooldown_until - _now_ms(), 0)


def mark_profile_used(store: AuthProfileStore, profile_id: str) -> AuthProfileStore:
    stats = store.usage_stats.setdefault(profile_id, ProfileUsageStats())
    stats.last_used = _now_ms()
    stats.error_count = 0
    stats.cooldown_until = None
    stats.success_count += 1
    return store


def compute_cooldown_ms(failure_type: Union[FailureType, str, None], error_count: int) -> int:
    """
    Cooldown for the error_count-th consecutive failure of the given type.

    Backoff grows 1m, 5m, 25m, then caps at 1h. Billing problems wait five
    times longer (up to a day), auth failures always wait a full day and
    timeouts wait half as long (up to 5m).
    """
    backoff_ms = min(
        _BASE_BACKOFF_MS * _BACKOFF_MULTIPLIER ** max(error_count - 1, 0),
        _MAX_BACKOFF_MS,
    )
    if failure_type == FailureType.BILLING:
        return min(backoff_ms * 5, _DAY_MS)
    if failure_type == FailureType.AUTH:
        return _DAY_MS
    if failure_type == FailureType.RATE_LIMIT:
        return backoff_ms
    if failure_type == FailureType.TIMEOUT:
        return min(backoff_ms // 2, _MAX_TIMEOUT_COOLDOWN_MS)
    return backoff_ms


def mark_profile_failure(
    store: AuthProfileStore,
    profile_id: str,
    failure_type: Union[FailureType, str],
) -> AuthProfileStore:
    stats = store.usage_stats.setdefault(profile_id, ProfileUsageStats())
    stats.error_count += 1

    failure_value = failure_type.value if isinstance(failure_type, FailureType) else str(failure_type)
    cooldown_ms = compute_cooldown_ms(failure_value, stats.error_count)
    now = _now_ms()

    stats.last_failure = now
    stats.last_failure_type = failure_value
    stats.cooldown_until = now + cooldown_ms

    logger.warning(
        "profile=%s enter cooldown for %.1fs (failure=%s errors=%d)",
        profile_id,
        cooldown_ms / 1000.0,
        failure_value,
        stats.error_count,
    )
    return store


def reset_profile_cooldown(store: AuthProfileStore, profile_id: str) -> AuthProfileStore:
    """
    Manual operator override: clear cooldown and error streak, keep history.
    """
    stats = store.usage_stats.get(profile_id)
    if stats is not None:
        stats.cooldown_until = None
        stats.error_count = 0
    return store


def order_profiles_by_availability(
    store: AuthProfileStore, profile_ids: Sequence[str]
) -> List[str]:
    """
    Available profiles first, least recently used first (round robin),
    then cooling profiles, soonest to recover first.
    """
    available: List[str] = []
    cooling: List[str] = []
    for pid in profile_ids:
        if is_profile_in_cooldown(store, pid):
            cooling.append(pid)
        else:
            available.append(pid)

    def _stat(pid: str, attr: str) -> int:
        stats = store.usage_stats.get(pid)
        return (getattr(stats, attr) or 0) if stats is not None else 0

    available.sort(key=lambda pid: _stat(pid, "last_used"))
    cooling.sort(key=lambda pid: _stat(pid, "cooldown_until"))
    return available + cooling


def get_next_available_profile(store: AuthProfileStore, provider: str) -> Optional[str]:
    profiles = list_profiles_for_provider(store, provider)
    for pid in order_profiles_by_availability(store, profiles):
        if not is_profile_in_cooldown(store, pid):
            return pid
    return None


def get_profile_stats(store: AuthProfileStore, profile_id: str) -> Optional[ProfileStats]:
    profile = store.profiles.get(profile_id)
    if profile is None:
        return None
    stats = store.usage_stats.get(profile_id) or ProfileUsageStats()
    return ProfileStats(
        profile_id=profile_id,
        type=profile.type,
        created_at=profile.created_at,
        last_used=stats.last_used,
        success_count=stats.success_count,
        error_count=stats.error_count,
        last_failure=stats.last_failure,
        last_failure_type=stats.last_failure_type,
        in_cooldown=is_profile_in_cooldown(store, profile_id),
        cooldown_remaining=get_cooldown_remaining(store, profile_id),
    )


__all__ = [
    "AUTH_PROFILES_FILE",
    "InvalidProfileId",
    "add_profile",
    "compute_cooldown_ms",
    "get_auth_profiles_path",
    "get_cooldown_remaining",
    "get_next_available_profile",
    "get_profile_stats",
    "is_profile_in_cooldown",
    "list_profiles_for_provider",
    "load_auth_profiles",
    "mark_profile_failure",
    "mark_profile_used",
    "order_profiles_by_availability",
    "parse_profile_id",
    "remove_profile",
    "reset_profile_cooldown",
    "resolve_api_key_for_profile",
    "save_auth_profiles",
]
